"""Domain models for verification results and related entities."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .query import RedditQuery, SportsQuery

# Never report a successful answer with less confidence than this.
DEFAULT_CONFIDENCE_FLOOR = 0.5


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class ErrorCategory(str, Enum):
    """Where in the pipeline an error originated."""

    PARSE = "parse"
    SAFETY = "safety"
    UPSTREAM = "upstream"
    PAYMENT = "payment"
    SETTLEMENT = "settlement"
    INTERNAL = "internal"


class ErrorKind(str, Enum):
    """Closed set of error codes reported by the oracle."""

    # Parse errors: required field could not be extracted
    COULD_NOT_PARSE_TEAM_NAME = "could_not_parse_team_name"
    COULD_NOT_PARSE_SUBREDDIT = "could_not_parse_subreddit"
    COULD_NOT_PARSE_POST_ID = "could_not_parse_post_id"
    COULD_NOT_PARSE_SEARCH_KEYWORD = "could_not_parse_search_keyword"

    # Safety rails
    CIRCUIT_BREAKER_TRIPPED = "circuit_breaker_tripped"
    DAILY_LIMIT_REACHED = "daily_limit_reached"

    # Sports provider
    TEAM_NOT_FOUND = "team_not_found"
    NO_EVENTS = "no_events"
    EVENT_NOT_FOUND_ON_DATE = "event_not_found_on_date"

    # Reddit provider
    SUBREDDIT_NOT_FOUND = "subreddit_not_found"
    SUBREDDIT_PRIVATE = "subreddit_private"
    POST_NOT_FOUND = "post_not_found"

    # Any provider
    RATE_LIMITED = "rate_limited"
    ACCESS_DENIED = "access_denied"
    INVALID_RESPONSE = "invalid_response"
    NETWORK_ERROR = "network_error"
    UPSTREAM_ERROR = "upstream_error"

    # Payments
    PAYMENT_REQUIRED = "payment_required"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    VERIFICATION_FAILED = "verification_failed"
    SETTLEMENT_FAILED = "settlement_failed"

    INTERNAL_ERROR = "internal_error"

    @property
    def category(self) -> ErrorCategory:
        """Pipeline stage this error belongs to."""
        return _CATEGORIES.get(self, ErrorCategory.UPSTREAM)


_CATEGORIES = {
    ErrorKind.COULD_NOT_PARSE_TEAM_NAME: ErrorCategory.PARSE,
    ErrorKind.COULD_NOT_PARSE_SUBREDDIT: ErrorCategory.PARSE,
    ErrorKind.COULD_NOT_PARSE_POST_ID: ErrorCategory.PARSE,
    ErrorKind.COULD_NOT_PARSE_SEARCH_KEYWORD: ErrorCategory.PARSE,
    ErrorKind.CIRCUIT_BREAKER_TRIPPED: ErrorCategory.SAFETY,
    ErrorKind.DAILY_LIMIT_REACHED: ErrorCategory.SAFETY,
    ErrorKind.PAYMENT_REQUIRED: ErrorCategory.PAYMENT,
    ErrorKind.INSUFFICIENT_CREDITS: ErrorCategory.PAYMENT,
    ErrorKind.VERIFICATION_FAILED: ErrorCategory.PAYMENT,
    ErrorKind.SETTLEMENT_FAILED: ErrorCategory.SETTLEMENT,
    ErrorKind.INTERNAL_ERROR: ErrorCategory.INTERNAL,
}


class SettlementOutcome(BaseModel):
    """Result of debiting credits after a query has been answered."""

    credits_debited: int = Field(0, ge=0, description="Credits burned for this query")
    reference: Optional[str] = Field(None, description="Settlement transaction reference")
    error: Optional[ErrorKind] = Field(None, description="Settlement error code")
    message: Optional[str] = Field(None, description="Settlement error details")
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @property
    def settled(self) -> bool:
        """Whether the credits were actually debited."""
        return self.error is None and self.credits_debited > 0


class VerificationResult(BaseModel):
    """Outcome of answering one question.

    A failed result always carries zero confidence; a successful one never
    reports less than the confidence floor.
    """

    success: bool = Field(..., description="Whether the question was answered")
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Confidence score (0-1)")
    domain: str = Field(..., description="Oracle domain that produced the result")
    payload: Optional[Dict[str, Any]] = Field(None, description="Domain-specific answer data")
    error_kind: Optional[ErrorKind] = Field(None, description="Error code when success is false")
    message: Optional[str] = Field(None, description="Human-readable error details")
    suggestion: Optional[str] = Field(None, description="How to rephrase the question")
    query: Optional[Union[SportsQuery, RedditQuery]] = Field(None, description="Parsed query")
    sources: List[str] = Field(default_factory=list, description="Providers consulted")
    safety_triggered: bool = Field(False, description="Rejected by a safety rail")
    timestamp: datetime = Field(default_factory=utcnow)
    payment: Optional[SettlementOutcome] = Field(None, description="Settlement of the query credit")

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @model_validator(mode="after")
    def _check_confidence(self) -> "VerificationResult":
        if not self.success and self.confidence != 0.0:
            raise ValueError("Failed results must have zero confidence")
        if self.success and self.confidence < DEFAULT_CONFIDENCE_FLOOR:
            raise ValueError(
                f"Successful results must have confidence >= {DEFAULT_CONFIDENCE_FLOOR}"
            )
        if not self.success and self.error_kind is None:
            raise ValueError("Failed results must carry an error kind")
        return self

    @classmethod
    def failure(
        cls,
        domain: str,
        error_kind: ErrorKind,
        message: Optional[str] = None,
        **kwargs: Any,
    ) -> "VerificationResult":
        """Build a failed result."""
        return cls(
            success=False,
            confidence=0.0,
            domain=domain,
            error_kind=error_kind,
            message=message,
            **kwargs,
        )

    def with_payment(self, payment: SettlementOutcome) -> "VerificationResult":
        """Return a copy of this result with the settlement attached."""
        return self.model_copy(update={"payment": payment})

    @property
    def subject(self) -> Optional[str]:
        """Primary entity the result is about, if one was parsed."""
        return self.query.subject if self.query is not None else None
