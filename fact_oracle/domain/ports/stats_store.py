"""Persistence interface for per-domain query statistics."""

from datetime import date
from typing import Protocol

from ..models.stats import DomainStats


class StatsStore(Protocol):
    """Protocol for durable storage of ``DomainStats``.

    Implementations are called with the domain's lock held and must not
    raise on a missing or unreadable document.
    """

    def load(self, domain: str, today: date) -> DomainStats:
        """Load the stats for a domain, or zero state if none exist."""
        ...

    def save(self, domain: str, stats: DomainStats) -> None:
        """Persist the stats for a domain."""
        ...
