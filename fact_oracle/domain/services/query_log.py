"""Durable log of query outcomes per domain."""

import logging
from typing import Optional

from ..models.stats import DomainStats, QueryLogEntry
from ..models.verification import VerificationResult
from .safety_governor import Admission
from .safety_state import SafetyStateAccessor

logger = logging.getLogger(__name__)


class QueryLog:
    """Record query outcomes; the only writer of the safety state."""

    def __init__(self, state: SafetyStateAccessor, breaker_window: int = 5):
        """Initialize the log.

        Args:
            state: Owner of the per-domain safety state
            breaker_window: Number of trailing failures that trips the breaker
        """
        self._state = state
        self._breaker_window = breaker_window

    def record(
        self,
        result: VerificationResult,
        admission: Optional[Admission] = None,
    ) -> DomainStats:
        """Append one outcome to its domain's stats.

        Args:
            result: The computed result
            admission: Safety admission to release, if the query held one

        Returns:
            Copy of the updated stats
        """
        entry = QueryLogEntry(
            timestamp=result.timestamp.isoformat(),
            query=result.query.model_dump(mode="json") if result.query else None,
            success=result.success,
            subject=result.subject,
            confidence=result.confidence,
            error=result.error_kind.value if result.error_kind else None,
        )

        with self._state.transaction(result.domain, write=True) as state:
            was_tripped = state.stats.is_tripped(self._breaker_window)
            state.stats.apply(entry, state.now)
            if admission is not None and admission.allowed and not admission.released:
                state.in_flight -= 1
                admission.released = True
            tripped = state.stats.is_tripped(self._breaker_window)
            snapshot = state.stats.model_copy(deep=True)

        if tripped and not was_tripped:
            logger.warning(f"Circuit breaker tripped for {result.domain}")
        elif was_tripped and not tripped:
            logger.info(f"Circuit breaker cleared for {result.domain}")
        return snapshot

    def snapshot(self, domain: str) -> DomainStats:
        """Consistent copy of a domain's stats."""
        with self._state.transaction(domain) as state:
            return state.stats.model_copy(deep=True)
