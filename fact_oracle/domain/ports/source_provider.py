"""Source provider interface for external fact data."""

from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, Field

from ..models.query import RedditQuery, SportsQuery
from ..models.verification import ErrorKind


class SourceResponse(BaseModel):
    """Normalized answer from one external data provider."""

    success: bool = Field(..., description="Whether the provider answered")
    source: str = Field(..., description="Provider identifier")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Normalized provider data")
    error_kind: Optional[ErrorKind] = Field(None, description="Classified failure")
    message: Optional[str] = Field(None, description="Failure details")

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @classmethod
    def ok(cls, source: str, payload: Dict[str, Any]) -> "SourceResponse":
        """Successful provider response."""
        return cls(success=True, source=source, payload=payload)

    @classmethod
    def error(
        cls,
        source: str,
        error_kind: ErrorKind,
        message: Optional[str] = None,
    ) -> "SourceResponse":
        """Failed provider response."""
        return cls(success=False, source=source, error_kind=error_kind, message=message)


class SourceProvider(Protocol):
    """Protocol for adapters around a single external data provider.

    Implementations make exactly one outbound attempt per request and never
    retry; retry policy belongs to the caller.
    """

    async def initialize(self) -> None:
        """Create the HTTP client."""
        ...

    async def query(self, query: SportsQuery | RedditQuery) -> SourceResponse:
        """Answer a structured query."""
        ...

    async def shutdown(self) -> None:
        """Release resources."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the provider is ready."""
        ...
