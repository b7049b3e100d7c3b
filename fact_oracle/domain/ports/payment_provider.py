"""Payment provider interface for x402 credit verification and settlement."""

from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, Field


class PaymentDescriptor(BaseModel):
    """What a paid endpoint charges for, in x402 terms."""

    endpoint: str = Field(..., description="Resource being paid for")
    http_verb: str = Field("POST", description="HTTP method of the resource")
    plan_id: Optional[str] = Field(None, description="Credit plan identifier")
    agent_id: Optional[str] = Field(None, description="Agent identifier")
    scheme: str = Field("nvm:erc4337", description="Payment scheme")
    network: str = Field("eip155:8453", description="Settlement network")

    class Config:
        """Pydantic model configuration."""
        frozen = True

    def to_payment_required(self) -> Dict[str, Any]:
        """Build the x402 ``paymentRequired`` object."""
        return {
            "x402Version": 2,
            "resource": {"url": self.endpoint},
            "accepts": [
                {
                    "scheme": self.scheme,
                    "network": self.network,
                    "planId": self.plan_id,
                    "extra": {"agentId": self.agent_id, "httpVerb": self.http_verb},
                }
            ],
            "extensions": {},
        }


class VerifyResponse(BaseModel):
    """Answer of the payment service to a verify request."""

    is_valid: bool
    reason: Optional[str] = None


class SettleResponse(BaseModel):
    """Answer of the payment service to a settle request."""

    success: bool
    tx_hash: Optional[str] = None
    credits_burned: int = 0
    reason: Optional[str] = None


class PaymentProvider(Protocol):
    """Protocol for the external payment-verification service.

    Both calls are remote and may raise on transport failure.
    """

    async def initialize(self) -> None:
        """Create the HTTP client."""
        ...

    async def verify(
        self,
        descriptor: PaymentDescriptor,
        credential: str,
        cost: int = 1,
    ) -> VerifyResponse:
        """Check that the credential may spend ``cost`` credits."""
        ...

    async def settle(
        self,
        descriptor: PaymentDescriptor,
        credential: str,
        cost: int = 1,
    ) -> SettleResponse:
        """Burn ``cost`` credits from the credential's plan."""
        ...

    async def shutdown(self) -> None:
        """Release resources."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...
