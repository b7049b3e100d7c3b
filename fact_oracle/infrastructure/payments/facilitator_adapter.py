"""x402 facilitator implementation of the payment provider interface.

Speaks the same HTTP contract as the facilitator client of the Nevermined
payments SDK (``payments.facilitator.verifyPermissions`` and
``settlePermissions``): a bearer-authenticated POST of
``{paymentRequired, x402AccessToken, maxAmount}`` to
``/api/v1/x402/verify`` or ``/api/v1/x402/settle`` on the backend of the
configured environment.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.ports.payment_provider import (
    PaymentDescriptor,
    PaymentProvider,
    SettleResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

# Nevermined backend per environment
NVM_BACKENDS = {
    "live": "https://api.live.nevermined.app",
    "sandbox": "https://api.sandbox.nevermined.app",
}


class FacilitatorConfig(BaseModel):
    """Configuration for the payment facilitator adapter."""

    api_key: str = Field(default="", description="Nevermined API key")
    environment: str = Field(default="live", description="Nevermined environment")
    base_url: Optional[str] = Field(
        default=None,
        description="Backend URL; derived from the environment when unset",
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    verify_path: str = Field(default="/api/v1/x402/verify", description="Verify endpoint path")
    settle_path: str = Field(default="/api/v1/x402/settle", description="Settle endpoint path")

    @property
    def backend_url(self) -> str:
        """Backend the facilitator calls go to.

        Raises:
            ValueError: If no base URL is set and the environment is unknown
        """
        if self.base_url:
            return self.base_url
        if self.environment not in NVM_BACKENDS:
            raise ValueError(f"Unknown Nevermined environment: {self.environment}")
        return NVM_BACKENDS[self.environment]


class FacilitatorPaymentAdapter(PaymentProvider):
    """Verify and settle x402 access tokens through a remote facilitator.

    Transport failures and error statuses propagate as ``httpx`` exceptions;
    the payment gate decides what they mean for the request.
    """

    def __init__(
        self,
        config: Optional[FacilitatorConfig] = None,
        provider_name: str = "x402 Facilitator",
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            provider_name: Name of the provider
        """
        self._config = config or FacilitatorConfig()
        self._name = provider_name
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            if not self._config.api_key:
                logger.warning("⚠️ Payment facilitator API key is not configured")
            self._client = httpx.AsyncClient(
                base_url=self._config.backend_url,
                timeout=self._config.timeout,
                headers={"Authorization": f"Bearer {self._config.api_key}"},
            )

    def _body(self, descriptor: PaymentDescriptor, credential: str, cost: int) -> Dict[str, Any]:
        return {
            "paymentRequired": descriptor.to_payment_required(),
            "x402AccessToken": credential,
            "maxAmount": str(cost),
        }

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._client is None:
            raise RuntimeError("Provider not initialized")
        response = await self._client.post(path, json=body)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Unexpected facilitator response")
        return data

    async def verify(
        self,
        descriptor: PaymentDescriptor,
        credential: str,
        cost: int = 1,
    ) -> VerifyResponse:
        """Check that the token may spend ``cost`` credits."""
        data = await self._post(self._config.verify_path, self._body(descriptor, credential, cost))
        return VerifyResponse(
            is_valid=bool(data.get("isValid")),
            reason=data.get("invalidReason"),
        )

    async def settle(
        self,
        descriptor: PaymentDescriptor,
        credential: str,
        cost: int = 1,
    ) -> SettleResponse:
        """Burn ``cost`` credits for the token."""
        data = await self._post(self._config.settle_path, self._body(descriptor, credential, cost))
        return SettleResponse(
            success=bool(data.get("success")),
            tx_hash=data.get("transaction") or data.get("txHash"),
            credits_burned=int(data.get("creditsRedeemed") or cost),
            reason=data.get("errorReason"),
        )

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        return self._name

    @property
    def is_available(self) -> bool:
        """Check if the provider is ready."""
        return self._client is not None
