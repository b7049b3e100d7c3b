"""Payment-gated oracle endpoints."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from ...domain.models.verification import VerificationResult
from ...domain.services.oracle_service import OracleService, UnknownDomainError
from ...domain.services.payment_gate import PaymentError, PaymentGate
from ...infrastructure.dependencies import get_oracle_service, get_payment_gate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["oracle"])

CREDENTIAL_HEADER = "payment-signature"


class OracleRequest(BaseModel):
    """Request model for oracle questions."""

    question: str = Field(..., min_length=1, description="Natural-language question")


PAID_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Malformed body or missing question"},
    401: {"description": "Invalid or insufficient credits, or verification failed"},
    402: {"description": "Payment required - include x402 access token"},
    500: {"description": "Unexpected failure while processing the query"},
}


def paid_operation(example_question: str) -> Dict[str, Any]:
    """OpenAPI additions for an endpoint that costs one credit."""
    return {
        "x-credits-per-query": 1,
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "question": {"type": "string", "example": example_question},
                        },
                        "required": ["question"],
                    }
                }
            },
        },
    }


def error_response(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    """JSON error body with a machine-readable code."""
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, **extra},
    )


def extract_credential(request: Request) -> Optional[str]:
    """Access token from the payment-signature header or a bearer token."""
    token = request.headers.get(CREDENTIAL_HEADER)
    if token and token.strip():
        return token.strip()
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


async def handle_oracle_request(
    domain: str,
    request: Request,
    service: OracleService,
    gate: PaymentGate,
):
    """Run one paid oracle query.

    The credential is checked before the body is read, so an unpaid request
    never reaches the oracle.
    """
    if domain not in service.domains:
        return error_response(404, "not_found", f"Unknown oracle domain: {domain}")

    session = gate.open_session(domain, extract_credential(request), endpoint=request.url.path)
    gate.require_credential(session)

    try:
        body = await request.json()
    except ValueError:
        return error_response(400, "invalid_json", "Request body must be valid JSON")

    try:
        payload = OracleRequest.model_validate(body)
    except ValidationError:
        return error_response(400, "missing_question", 'Request must include a "question" field')

    try:
        return await service.answer(domain, payload.question, session)
    except (PaymentError, UnknownDomainError):
        raise
    except Exception as e:
        logger.error(f"{domain} oracle error: {type(e).__name__}: {e}", exc_info=True)
        return error_response(500, "oracle_error", "Failed to process query", details=str(e))


@router.post(
    "/sports",
    response_model=VerificationResult,
    responses=PAID_RESPONSES,
    summary="Verify a sports game result",
    description="Query the oracle to verify who won a sports game. Costs 1 credit per query.",
    openapi_extra=paid_operation("Who won the Lakers game on 2026-01-30?"),
)
async def sports_oracle(
    request: Request,
    service: OracleService = Depends(get_oracle_service),
    gate: PaymentGate = Depends(get_payment_gate),
):
    return await handle_oracle_request("sports", request, service, gate)


@router.post(
    "/verify",
    response_model=VerificationResult,
    responses=PAID_RESPONSES,
    summary="Verify a sports game result (alias of /api/sports)",
    description="Query the oracle to verify who won a sports game. Costs 1 credit per query.",
    openapi_extra=paid_operation("Who won the Lakers game yesterday?"),
)
async def verify_sports_result(
    request: Request,
    service: OracleService = Depends(get_oracle_service),
    gate: PaymentGate = Depends(get_payment_gate),
):
    return await handle_oracle_request("sports", request, service, gate)


@router.post(
    "/reddit",
    response_model=VerificationResult,
    responses=PAID_RESPONSES,
    summary="Query Reddit data",
    description="Fetch and analyze Reddit subreddit data. Costs 1 credit per query.",
    openapi_extra=paid_operation("What's hot on r/wallstreetbets?"),
)
async def reddit_oracle(
    request: Request,
    service: OracleService = Depends(get_oracle_service),
    gate: PaymentGate = Depends(get_payment_gate),
):
    return await handle_oracle_request("reddit", request, service, gate)


@router.post("/{domain}", include_in_schema=False)
async def domain_oracle(
    domain: str,
    request: Request,
    service: OracleService = Depends(get_oracle_service),
    gate: PaymentGate = Depends(get_payment_gate),
):
    return await handle_oracle_request(domain, request, service, gate)
