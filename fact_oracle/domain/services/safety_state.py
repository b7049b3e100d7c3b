"""Single-writer access to the per-domain safety state."""

import contextlib
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterator

from ..models.stats import DomainStats
from ..ports.stats_store import StatsStore


@dataclass
class SafetyState:
    """Mutable view of one domain's state, valid only inside a transaction."""

    domain: str
    stats: DomainStats
    now: datetime
    in_flight: int = 0


class SafetyStateAccessor:
    """Owns the safety state of every domain.

    All reads and writes go through ``transaction``, which holds the
    domain's lock for the whole load-modify-save sequence. The lock is a
    ``threading.Lock`` and nothing awaits while it is held, so concurrent
    requests on any event loop or worker thread are serialized.
    """

    def __init__(self, store: StatsStore, clock: Callable[[], datetime] = datetime.now):
        """Initialize the accessor.

        Args:
            store: Persistence for the stats documents
            clock: Local wall clock; its date drives the daily reset
        """
        self._store = store
        self._clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._in_flight: Dict[str, int] = {}

    def _lock_for(self, domain: str) -> threading.Lock:
        with self._locks_guard:
            if domain not in self._locks:
                self._locks[domain] = threading.Lock()
            return self._locks[domain]

    @contextlib.contextmanager
    def transaction(self, domain: str, write: bool = False) -> Iterator[SafetyState]:
        """Serialized access to a domain's state.

        Args:
            domain: Oracle domain
            write: Persist the stats when the block exits without error

        Yields:
            The domain's state, rolled over to the day of ``state.now``
        """
        with self._lock_for(domain):
            now = self._clock()
            stats = self._store.load(domain, now.date())
            stats.roll_over(now.date())
            state = SafetyState(
                domain=domain,
                stats=stats,
                now=now,
                in_flight=self._in_flight.get(domain, 0),
            )
            yield state
            self._in_flight[domain] = max(0, state.in_flight)
            if write:
                self._store.save(domain, state.stats)
