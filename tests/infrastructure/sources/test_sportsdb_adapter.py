"""Tests for TheSportsDB adapter."""

from typing import Callable, List

import httpx
import pytest
import pytest_asyncio

from fact_oracle.domain.models.query import SportsQuery
from fact_oracle.domain.models.verification import ErrorKind
from fact_oracle.infrastructure.sources.sportsdb_adapter import (
    SportsDBAdapter,
    SportsDBConfig,
    matches_secondary,
)

LAKERS = {"idTeam": "134867", "strTeam": "Los Angeles Lakers"}

EVENTS = [
    {
        "idEvent": "2001",
        "dateEvent": "2026-01-19",
        "strHomeTeam": "Los Angeles Lakers",
        "strAwayTeam": "Boston Celtics",
        "intHomeScore": "112",
        "intAwayScore": "108",
        "strLeague": "NBA",
    },
    {
        "idEvent": "2000",
        "dateEvent": "2026-01-17",
        "strHomeTeam": "Golden State Warriors",
        "strAwayTeam": "Los Angeles Lakers",
        "intHomeScore": "99",
        "intAwayScore": "99",
        "strLeague": "NBA",
    },
]


def sportsdb_handler(teams=None, events=None, requests: List[httpx.Request] = None) -> Callable:
    """Mock TheSportsDB endpoints."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.path.endswith("/searchteams.php"):
            return httpx.Response(200, json={"teams": teams})
        if request.url.path.endswith("/eventslast.php"):
            return httpx.Response(200, json={"results": events})
        return httpx.Response(404)

    return handler


@pytest_asyncio.fixture
async def make_adapter():
    """Build adapters whose HTTP traffic goes to a mock transport."""
    adapters = []

    def factory(handler: Callable) -> SportsDBAdapter:
        config = SportsDBConfig(base_url="https://sportsdb.test/api/v1/json/3", timeout=1.0)
        adapter = SportsDBAdapter(config=config)
        adapter._client = httpx.AsyncClient(
            base_url=config.base_url,
            transport=httpx.MockTransport(handler),
        )
        adapters.append(adapter)
        return adapter

    yield factory
    for adapter in adapters:
        await adapter.shutdown()


def lakers_query(**kwargs) -> SportsQuery:
    values = {"team": "Los Angeles Lakers", "team_mention": "Lakers", "date": "2026-01-19"}
    values.update(kwargs)
    return SportsQuery(**values)


@pytest.mark.asyncio
async def test_query_finds_game(make_adapter):
    """Test a successful team, events and date lookup."""
    requests = []
    adapter = make_adapter(sportsdb_handler([LAKERS], EVENTS, requests))

    response = await adapter.query(lakers_query())

    assert response.success
    assert response.source == "thesportsdb"
    assert response.payload == {
        "home_team": "Los Angeles Lakers",
        "away_team": "Boston Celtics",
        "home_score": 112,
        "away_score": 108,
        "winner": "Los Angeles Lakers",
        "final_score": "112-108",
        "league": "NBA",
        "date": "2026-01-19",
        "event_id": "2001",
        "opponent_matched": None,
    }
    assert requests[0].url.params["t"] == "Los Angeles Lakers"
    assert requests[1].url.params["id"] == "134867"


@pytest.mark.asyncio
async def test_tie_game(make_adapter):
    adapter = make_adapter(sportsdb_handler([LAKERS], EVENTS))

    response = await adapter.query(lakers_query(date="2026-01-17"))

    assert response.payload["winner"] == "tie"
    assert response.payload["final_score"] == "99-99"


@pytest.mark.asyncio
async def test_opponent_substring_match(make_adapter):
    adapter = make_adapter(sportsdb_handler([LAKERS], EVENTS))

    matched = await adapter.query(lakers_query(opponent="celtics"))
    missed = await adapter.query(lakers_query(opponent="New York Knicks"))

    assert matched.payload["opponent_matched"] is True
    assert missed.payload["opponent_matched"] is False


@pytest.mark.asyncio
async def test_team_lookup_is_cached(make_adapter):
    requests = []
    adapter = make_adapter(sportsdb_handler([LAKERS], EVENTS, requests))

    await adapter.query(lakers_query())
    await adapter.query(lakers_query(date="2026-01-17"))

    searches = [r for r in requests if r.url.path.endswith("/searchteams.php")]
    assert len(searches) == 1


@pytest.mark.asyncio
async def test_team_not_found(make_adapter):
    adapter = make_adapter(sportsdb_handler(None, EVENTS))

    response = await adapter.query(lakers_query(team="Nowhere Nobodies"))

    assert not response.success
    assert response.error_kind is ErrorKind.TEAM_NOT_FOUND


@pytest.mark.asyncio
async def test_no_events(make_adapter):
    adapter = make_adapter(sportsdb_handler([LAKERS], None))

    response = await adapter.query(lakers_query())

    assert response.error_kind is ErrorKind.NO_EVENTS


@pytest.mark.asyncio
async def test_event_not_found_on_date(make_adapter):
    adapter = make_adapter(sportsdb_handler([LAKERS], EVENTS))

    response = await adapter.query(lakers_query(date="2025-12-25"))

    assert response.error_kind is ErrorKind.EVENT_NOT_FOUND_ON_DATE
    assert "2025-12-25" in response.message


@pytest.mark.asyncio
async def test_missing_scores_are_invalid(make_adapter):
    events = [dict(EVENTS[0], intHomeScore=None, intAwayScore=None)]
    adapter = make_adapter(sportsdb_handler([LAKERS], events))

    response = await adapter.query(lakers_query())

    assert response.error_kind is ErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_kind",
    [
        (429, ErrorKind.RATE_LIMITED),
        (403, ErrorKind.ACCESS_DENIED),
        (404, ErrorKind.UPSTREAM_ERROR),
        (503, ErrorKind.UPSTREAM_ERROR),
    ],
)
async def test_http_errors_are_classified(make_adapter, status, error_kind):
    adapter = make_adapter(lambda request: httpx.Response(status))

    response = await adapter.query(lakers_query())

    assert not response.success
    assert response.error_kind is error_kind


@pytest.mark.asyncio
async def test_non_json_body(make_adapter):
    adapter = make_adapter(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    response = await adapter.query(lakers_query())

    assert response.error_kind is ErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_timeout_is_network_error(make_adapter):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    adapter = make_adapter(handler)

    response = await adapter.query(lakers_query())

    assert response.error_kind is ErrorKind.NETWORK_ERROR


@pytest.mark.asyncio
async def test_query_before_initialize():
    adapter = SportsDBAdapter()
    assert not adapter.is_available

    with pytest.raises(RuntimeError):
        await adapter.query(lakers_query())


@pytest.mark.asyncio
async def test_initialize_and_shutdown():
    adapter = SportsDBAdapter()

    await adapter.initialize()
    assert adapter.is_available
    assert adapter.provider_name == "TheSportsDB"

    await adapter.shutdown()
    assert not adapter.is_available


def test_matches_secondary():
    assert matches_secondary("Celtics", ["Boston Celtics", "Los Angeles Lakers"])
    assert not matches_secondary("Knicks", ["Boston Celtics", None])
