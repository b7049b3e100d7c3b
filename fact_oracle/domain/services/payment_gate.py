"""Two-phase payment protocol guarding every paid query.

A ``PaymentSession`` moves through explicit states:

    PENDING -> VERIFIED -> SETTLED | SETTLEMENT_FAILED
    PENDING -> REJECTED

Verification must succeed before any provider is called. Settlement runs
once the result exists and never raises: its failure is reported on the
result instead of withholding it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.verification import ErrorKind, SettlementOutcome
from ..ports.payment_provider import PaymentDescriptor, PaymentProvider

logger = logging.getLogger(__name__)


class PaymentState(str, Enum):
    """States of a per-request payment session."""

    PENDING = "pending"
    VERIFIED = "verified"
    SETTLED = "settled"
    SETTLEMENT_FAILED = "settlement_failed"
    REJECTED = "rejected"


_TRANSITIONS = {
    PaymentState.PENDING: {PaymentState.VERIFIED, PaymentState.REJECTED},
    PaymentState.VERIFIED: {PaymentState.SETTLED, PaymentState.SETTLEMENT_FAILED},
    PaymentState.SETTLED: set(),
    PaymentState.SETTLEMENT_FAILED: set(),
    PaymentState.REJECTED: set(),
}


class PaymentError(Exception):
    """Base class for payment failures that reject a request."""

    status_code = 401
    error_kind = ErrorKind.VERIFICATION_FAILED

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_body(self) -> Dict[str, Any]:
        """JSON body returned to the client."""
        return {"error": self.error_kind.value, "message": self.message, **self.details}


class PaymentRequiredError(PaymentError):
    """No credential was presented."""

    status_code = 402
    error_kind = ErrorKind.PAYMENT_REQUIRED


class InvalidCredentialError(PaymentError):
    """The credential is invalid or its plan lacks credits."""

    error_kind = ErrorKind.INSUFFICIENT_CREDITS


class VerificationUnavailableError(PaymentError):
    """The payment service could not be reached or failed."""

    error_kind = ErrorKind.VERIFICATION_FAILED


class PaymentStateError(RuntimeError):
    """An illegal payment session transition was attempted."""


class PlanConfig(BaseModel):
    """Credit plan that pays for one oracle domain."""

    plan_id: Optional[str] = Field(None, description="Credit plan identifier")
    agent_id: Optional[str] = Field(None, description="Agent identifier")
    price_per_query: str = Field("$0.05", description="Advertised price")
    credits_per_query: int = Field(1, ge=1, description="Credits burned per query")
    purchase_base_url: str = Field("https://nevermined.app/agents", description="Where to buy credits")

    @property
    def purchase_url(self) -> str:
        return f"{self.purchase_base_url}/{self.agent_id}"


@dataclass
class PaymentSession:
    """Inspectable state of one request's payment."""

    domain: str
    descriptor: PaymentDescriptor
    credential: Optional[str]
    cost: int = 1
    state: PaymentState = PaymentState.PENDING
    history: List[PaymentState] = field(default_factory=list)
    outcome: Optional[SettlementOutcome] = None

    def transition(self, new_state: PaymentState) -> None:
        """Move to ``new_state`` or raise ``PaymentStateError``."""
        if new_state not in _TRANSITIONS[self.state]:
            raise PaymentStateError(
                f"Illegal payment transition {self.state.value} -> {new_state.value}"
            )
        self.history.append(self.state)
        self.state = new_state

    @property
    def is_verified(self) -> bool:
        return self.state is PaymentState.VERIFIED


class PaymentGate:
    """Verify credentials before work and settle credits after it."""

    def __init__(self, provider: PaymentProvider, plans: Dict[str, PlanConfig]):
        """Initialize the gate.

        Args:
            provider: External payment-verification service
            plans: Credit plan per oracle domain
        """
        self._provider = provider
        self._plans = dict(plans)

    def plan_for(self, domain: str) -> PlanConfig:
        """Credit plan of a domain."""
        return self._plans.get(domain) or PlanConfig()

    def purchase_details(self, domain: str) -> Dict[str, Any]:
        """Purchase guidance included in payment errors."""
        plan = self.plan_for(domain)
        return {
            "plan_id": plan.plan_id,
            "agent_id": plan.agent_id,
            "price_per_query": plan.price_per_query,
            "purchase_url": plan.purchase_url,
        }

    def open_session(
        self,
        domain: str,
        credential: Optional[str],
        endpoint: str,
        http_verb: str = "POST",
    ) -> PaymentSession:
        """Create a pending session for one request."""
        plan = self.plan_for(domain)
        descriptor = PaymentDescriptor(
            endpoint=endpoint,
            http_verb=http_verb,
            plan_id=plan.plan_id,
            agent_id=plan.agent_id,
        )
        return PaymentSession(
            domain=domain,
            descriptor=descriptor,
            credential=credential or None,
            cost=plan.credits_per_query,
        )

    def require_credential(self, session: PaymentSession) -> None:
        """Reject a session that carries no credential.

        Raises:
            PaymentRequiredError: If no credential was presented
        """
        if session.credential:
            return
        session.transition(PaymentState.REJECTED)
        raise PaymentRequiredError(
            "This API requires credits. Include an x402 access token in the "
            "payment-signature header.",
            details=self.purchase_details(session.domain),
        )

    async def verify(self, session: PaymentSession) -> PaymentSession:
        """Check with the payment service that the credential can pay.

        Raises:
            PaymentRequiredError: If no credential was presented
            InvalidCredentialError: If the credential is invalid or lacks credits
            VerificationUnavailableError: If the payment service failed
        """
        self.require_credential(session)
        purchase_url = {"purchase_url": self.plan_for(session.domain).purchase_url}

        try:
            response = await self._provider.verify(
                session.descriptor, session.credential, session.cost
            )
        except Exception as e:
            session.transition(PaymentState.REJECTED)
            logger.error(f"{session.domain} verification error: {e}")
            raise VerificationUnavailableError(
                str(e) or "Failed to verify access token", details=purchase_url
            )

        if not response.is_valid:
            session.transition(PaymentState.REJECTED)
            logger.info(f"{session.domain} verification rejected: {response.reason}")
            raise InvalidCredentialError(
                "Access token is invalid or you have insufficient credits",
                details=purchase_url,
            )

        session.transition(PaymentState.VERIFIED)
        return session

    async def settle(self, session: PaymentSession) -> SettlementOutcome:
        """Burn the query's credits. Never raises for service failures.

        Raises:
            PaymentStateError: If the session is not verified (for example
                when settling twice)
        """
        if not session.is_verified:
            raise PaymentStateError(
                f"Cannot settle a session in state {session.state.value}"
            )

        try:
            response = await self._provider.settle(
                session.descriptor, session.credential, session.cost
            )
        except Exception as e:
            logger.error(f"{session.domain} settlement error: {e}")
            return self._fail(session, str(e) or type(e).__name__)

        if not response.success:
            logger.error(f"{session.domain} settlement rejected: {response.reason}")
            return self._fail(session, response.reason or "Settlement rejected")

        outcome = SettlementOutcome(
            credits_debited=response.credits_burned or session.cost,
            reference=response.tx_hash,
        )
        session.transition(PaymentState.SETTLED)
        session.outcome = outcome
        logger.info(f"[{session.domain}] Credits settled: {outcome.reference}")
        return outcome

    def _fail(self, session: PaymentSession, message: str) -> SettlementOutcome:
        outcome = SettlementOutcome(
            credits_debited=0,
            error=ErrorKind.SETTLEMENT_FAILED,
            message=message,
        )
        session.transition(PaymentState.SETTLEMENT_FAILED)
        session.outcome = outcome
        return outcome
