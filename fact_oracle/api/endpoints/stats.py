"""Query statistics endpoints."""

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...domain.services.oracle_service import OracleService, UnknownDomainError
from ...infrastructure.dependencies import get_oracle_service

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/{domain}")
async def domain_stats(
    domain: str,
    service: OracleService = Depends(get_oracle_service),
) -> Dict[str, Any]:
    """Daily counters, hourly histogram and recent queries for one domain."""
    if domain not in service.domains:
        raise UnknownDomainError(domain)

    stats = await asyncio.to_thread(service.query_log.snapshot, domain)
    return {
        "domain": domain,
        "stats": stats.to_document(),
        "average_confidence": stats.average_confidence,
        "safety": await asyncio.to_thread(service.governor.status, domain),
    }
