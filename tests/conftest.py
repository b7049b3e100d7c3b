"""Test configuration and common fixtures."""

from datetime import datetime, timedelta
from typing import List

import pytest

from fact_oracle.domain.services.payment_gate import PlanConfig
from fact_oracle.domain.services.query_log import QueryLog
from fact_oracle.domain.services.safety_governor import RatePacer, SafetyGovernor, SafetyLimits
from fact_oracle.domain.services.safety_state import SafetyStateAccessor
from fact_oracle.infrastructure.storage.json_stats_store import JsonStatsStore


class FakeClock:
    """Settable wall clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingSleep:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def clock() -> FakeClock:
    """Wall clock fixed at 2026-01-19 14:30 local time."""
    return FakeClock(datetime(2026, 1, 19, 14, 30))


@pytest.fixture
def stats_store(tmp_path) -> JsonStatsStore:
    """Stats store writing into a temporary directory."""
    return JsonStatsStore(tmp_path / "stats")


@pytest.fixture
def safety_state(stats_store: JsonStatsStore, clock: FakeClock) -> SafetyStateAccessor:
    return SafetyStateAccessor(stats_store, clock=clock)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def governor(safety_state: SafetyStateAccessor, recording_sleep: RecordingSleep) -> SafetyGovernor:
    """Governor with default limits and a pacer that never really sleeps."""
    limits = SafetyLimits()
    pacer = RatePacer(limits.min_interval_seconds, sleep=recording_sleep)
    return SafetyGovernor(safety_state, limits, pacer)


@pytest.fixture
def query_log(safety_state: SafetyStateAccessor) -> QueryLog:
    return QueryLog(safety_state, breaker_window=5)


@pytest.fixture
def plans() -> dict:
    """Credit plans for both oracle domains."""
    return {
        "sports": PlanConfig(plan_id="plan-sports", agent_id="agent-sports"),
        "reddit": PlanConfig(plan_id="plan-reddit", agent_id="agent-reddit"),
    }
