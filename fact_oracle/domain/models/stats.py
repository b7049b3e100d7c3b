"""Domain model for the per-domain query statistics and safety state."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# Number of recent outcomes kept for the circuit breaker and the dashboard.
RECENT_QUERIES_LIMIT = 50
HOURS_PER_DAY = 24


class QueryLogEntry(BaseModel):
    """One recorded query outcome."""

    timestamp: str
    query: Optional[Dict[str, Any]] = None
    success: bool
    subject: Optional[str] = None
    confidence: float = 0.0
    error: Optional[str] = None


class DomainStats(BaseModel):
    """Persisted statistics for one oracle domain.

    Field aliases match the JSON document read by the dashboard.
    """

    total_queries: int = Field(0, alias="totalQueries")
    today_queries: int = Field(0, alias="todayQueries")
    success_count: int = Field(0, alias="successCount")
    error_count: int = Field(0, alias="errorCount")
    confidence_sum: float = Field(0.0, alias="confidenceSum")
    hourly_data: List[int] = Field(
        default_factory=lambda: [0] * HOURS_PER_DAY,
        alias="hourlyData",
        min_length=HOURS_PER_DAY,
        max_length=HOURS_PER_DAY,
    )
    recent_queries: List[QueryLogEntry] = Field(default_factory=list, alias="recentQueries")
    last_reset: Optional[str] = Field(None, alias="lastReset")

    class Config:
        """Pydantic model configuration."""
        populate_by_name = True
        validate_assignment = True

    @classmethod
    def empty(cls, today: date) -> "DomainStats":
        """Zero state for a given day."""
        return cls(last_reset=today.isoformat())

    def roll_over(self, today: date) -> bool:
        """Reset daily counters if the recorded day is not ``today``.

        Returns:
            True if a reset happened
        """
        if self.last_reset == today.isoformat():
            return False
        self.today_queries = 0
        self.hourly_data = [0] * HOURS_PER_DAY
        self.last_reset = today.isoformat()
        return True

    def apply(self, entry: QueryLogEntry, now: datetime) -> None:
        """Count one query outcome recorded at ``now``."""
        self.roll_over(now.date())
        self.total_queries += 1
        self.today_queries += 1
        hourly = list(self.hourly_data)
        hourly[now.hour] += 1
        self.hourly_data = hourly
        if entry.success:
            self.success_count += 1
            self.confidence_sum += entry.confidence
        else:
            self.error_count += 1
        self.recent_queries = [entry, *self.recent_queries][:RECENT_QUERIES_LIMIT]

    def consecutive_failures(self, window: int) -> int:
        """Failures since the last success, looking at most ``window`` back."""
        count = 0
        for entry in self.recent_queries[:window]:
            if entry.success:
                break
            count += 1
        return count

    def is_tripped(self, window: int) -> bool:
        """Circuit breaker: the ``window`` most recent outcomes all failed."""
        recent = self.recent_queries[:window]
        return len(recent) >= window and all(not q.success for q in recent)

    @property
    def average_confidence(self) -> float:
        """Mean confidence over successful queries."""
        if self.success_count == 0:
            return 0.0
        return self.confidence_sum / self.success_count

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the persisted JSON document."""
        return self.model_dump(mode="json", by_alias=True)
