"""Safety rails consulted before any external call.

Three independent protections per domain:

1. Circuit breaker - the K most recent recorded outcomes all failed
2. Daily quota - too many queries today
3. Pacing - a minimum interval between outbound provider calls

The breaker has no timer-based recovery: it clears only when a success is
recorded, so it stays tripped while no traffic arrives.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, Field

from ..models.verification import ErrorKind
from .safety_state import SafetyStateAccessor

logger = logging.getLogger(__name__)


class BreakerState(str, Enum):
    """Circuit breaker states."""

    NORMAL = "normal"
    TRIPPED = "tripped"


class SafetyLimits(BaseModel):
    """Limits enforced by the safety governor."""

    max_queries_per_day: int = Field(default=500, ge=1, description="Daily query limit per domain")
    max_consecutive_errors: int = Field(default=5, ge=1, description="Circuit breaker window")
    min_interval_seconds: Dict[str, float] = Field(
        default_factory=lambda: {"reddit": 2.0, "sports": 1.0},
        description="Minimum delay between provider calls per domain",
    )


@dataclass
class Admission:
    """Outcome of a safety pre-check.

    An allowed admission holds a slot of the daily quota until it is
    released by recording the query outcome (or by ``SafetyGovernor.release``).
    """

    domain: str
    allowed: bool
    reason: Optional[ErrorKind] = None
    message: Optional[str] = None
    released: bool = False


class RatePacer:
    """Serialize outbound calls so consecutive calls per domain are spaced.

    Each caller reserves the next free slot under a lock and then sleeps
    until it, so a burst is spread out instead of rejected.
    """

    def __init__(
        self,
        intervals: Dict[str, float],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._intervals = dict(intervals)
        self._clock = clock
        self._sleep = sleep
        self._next_slot: Dict[str, float] = {}
        self._lock = threading.Lock()

    async def wait(self, domain: str) -> float:
        """Wait for the domain's next call slot.

        Returns:
            Seconds spent waiting
        """
        interval = self._intervals.get(domain, 0.0)
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_slot.get(domain, now))
            self._next_slot[domain] = slot + interval
        delay = slot - now
        if delay > 0:
            await self._sleep(delay)
        return delay


class SafetyGovernor:
    """Circuit breaker, daily quota and pacing for every domain."""

    def __init__(
        self,
        state: SafetyStateAccessor,
        limits: Optional[SafetyLimits] = None,
        pacer: Optional[RatePacer] = None,
    ):
        """Initialize the governor.

        Args:
            state: Owner of the per-domain safety state
            limits: Safety limits
            pacer: Outbound call pacer, built from the limits if omitted
        """
        self._state = state
        self._limits = limits or SafetyLimits()
        self._pacer = pacer or RatePacer(self._limits.min_interval_seconds)

    @property
    def limits(self) -> SafetyLimits:
        return self._limits

    def check(self, domain: str) -> Admission:
        """Pre-check a query before any external call.

        Args:
            domain: Oracle domain

        Returns:
            Admission; when not allowed, ``reason`` says which rail fired
        """
        window = self._limits.max_consecutive_errors
        with self._state.transaction(domain) as state:
            if state.stats.is_tripped(window):
                logger.warning(f"SAFETY RAIL [{domain}]: circuit breaker tripped")
                return Admission(
                    domain=domain,
                    allowed=False,
                    reason=ErrorKind.CIRCUIT_BREAKER_TRIPPED,
                    message=f"{window} consecutive errors detected. Operations paused.",
                )

            limit = self._limits.max_queries_per_day
            if state.stats.today_queries + state.in_flight >= limit:
                logger.warning(f"SAFETY RAIL [{domain}]: daily limit reached")
                return Admission(
                    domain=domain,
                    allowed=False,
                    reason=ErrorKind.DAILY_LIMIT_REACHED,
                    message=f"Daily query limit ({limit}) reached.",
                )

            state.in_flight += 1
            return Admission(domain=domain, allowed=True)

    def release(self, admission: Admission) -> None:
        """Give back an admission's quota slot without recording an outcome."""
        if not admission.allowed or admission.released:
            return
        with self._state.transaction(admission.domain) as state:
            state.in_flight -= 1
            admission.released = True

    async def pace(self, domain: str) -> float:
        """Wait until the next outbound call for ``domain`` is allowed."""
        delay = await self._pacer.wait(domain)
        if delay > 0:
            logger.debug(f"Paced {domain} call by {delay:.2f}s")
        return delay

    def breaker_state(self, domain: str) -> BreakerState:
        """Current circuit breaker state of a domain."""
        with self._state.transaction(domain) as state:
            if state.stats.is_tripped(self._limits.max_consecutive_errors):
                return BreakerState.TRIPPED
            return BreakerState.NORMAL

    def status(self, domain: str) -> Dict[str, Any]:
        """Safety summary for dashboards."""
        window = self._limits.max_consecutive_errors
        with self._state.transaction(domain) as state:
            tripped = state.stats.is_tripped(window)
            return {
                "breaker": (BreakerState.TRIPPED if tripped else BreakerState.NORMAL).value,
                "consecutive_failures": state.stats.consecutive_failures(window),
                "today_queries": state.stats.today_queries,
                "in_flight": state.in_flight,
                "max_queries_per_day": self._limits.max_queries_per_day,
            }
