"""Tests for the FastAPI application."""

from datetime import date
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from fact_oracle.api.app import app
from fact_oracle.domain.models.verification import ErrorKind, VerificationResult
from fact_oracle.domain.ports.payment_provider import SettleResponse, VerifyResponse
from fact_oracle.domain.ports.source_provider import SourceResponse
from fact_oracle.domain.services.domain_handlers import RedditHandler, SportsHandler
from fact_oracle.domain.services.oracle_service import OracleService
from fact_oracle.domain.services.payment_gate import PaymentGate
from fact_oracle.infrastructure.dependencies import get_oracle_service, get_payment_gate

QUESTION = {"question": "Who won the Lakers game on 2026-01-19?"}
PAID = {"payment-signature": "token-123"}

GAME = {
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


@pytest.fixture
def sports_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.query.return_value = SourceResponse.ok("thesportsdb", dict(GAME))
    return provider


@pytest.fixture
def reddit_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.query.return_value = SourceResponse.ok("reddit", {"subreddit": "python", "posts": [], "count": 0})
    return provider


@pytest.fixture
def payment_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.verify.return_value = VerifyResponse(is_valid=True)
    provider.settle.return_value = SettleResponse(success=True, tx_hash="0xfeed", credits_burned=1)
    return provider


@pytest.fixture
def client(governor, query_log, plans, sports_provider, reddit_provider, payment_provider):
    """Test client wired to mocked providers."""
    gate = PaymentGate(payment_provider, plans)
    service = OracleService(
        governor=governor,
        query_log=query_log,
        providers={"sports": sports_provider, "reddit": reddit_provider},
        payments=gate,
        handlers={
            "sports": SportsHandler(today=lambda: date(2026, 1, 20)),
            "reddit": RedditHandler(),
        },
    )
    app.dependency_overrides[get_oracle_service] = lambda: service
    app.dependency_overrides[get_payment_gate] = lambda: gate
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "1.0.0"
    assert data["timestamp"]


def test_openapi_describes_paid_endpoints(client):
    """Test that the OpenAPI document lists the paid endpoints and their cost."""
    response = client.get("/openapi.json")

    assert response.status_code == 200
    paths = response.json()["paths"]
    for path in ("/api/sports", "/api/reddit", "/api/verify"):
        operation = paths[path]["post"]
        assert operation["x-credits-per-query"] == 1
        assert "question" in operation["requestBody"]["content"]["application/json"]["schema"]["properties"]
        assert {"200", "400", "401", "402", "500"} <= set(operation["responses"])
    assert "/health" in paths
    assert "/api/stats/{domain}" in paths


def test_missing_credential_returns_402(client, sports_provider, payment_provider):
    response = client.post("/api/sports", json=QUESTION)

    assert response.status_code == 402
    data = response.json()
    assert data["error"] == "payment_required"
    assert data["plan_id"] == "plan-sports"
    assert data["agent_id"] == "agent-sports"
    assert data["price_per_query"] == "$0.05"
    assert data["purchase_url"].endswith("/agent-sports")
    sports_provider.query.assert_not_awaited()
    payment_provider.verify.assert_not_awaited()


def test_missing_credential_checked_before_body(client):
    response = client.post("/api/reddit", content="not json", headers={"content-type": "application/json"})

    assert response.status_code == 402


def test_invalid_credential_returns_401(client, sports_provider, payment_provider):
    payment_provider.verify.return_value = VerifyResponse(is_valid=False, reason="no credits")

    response = client.post("/api/sports", json=QUESTION, headers={"Authorization": "Bearer bad"})

    assert response.status_code == 401
    data = response.json()
    assert data["error"] == "insufficient_credits"
    assert "purchase_url" in data
    sports_provider.query.assert_not_awaited()


def test_verification_failure_returns_401(client, payment_provider):
    payment_provider.verify.side_effect = ConnectionError("facilitator down")

    response = client.post("/api/sports", json=QUESTION, headers=PAID)

    assert response.status_code == 401
    assert response.json()["error"] == "verification_failed"


def test_invalid_json_returns_400(client):
    response = client.post(
        "/api/sports",
        content="{question:",
        headers={**PAID, "content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_json"


@pytest.mark.parametrize("body", [{}, {"question": ""}, {"q": "Who won?"}, ["Who won?"]])
def test_missing_question_returns_400(client, body):
    response = client.post("/api/sports", json=body, headers=PAID)

    assert response.status_code == 400
    assert response.json()["error"] == "missing_question"


def test_sports_success(client, sports_provider, payment_provider):
    """Test a paid sports question end to end."""
    response = client.post("/api/sports", json=QUESTION, headers=PAID)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["confidence"] == 0.75
    assert data["payload"]["winner"] == "Los Angeles Lakers"
    assert data["query"]["team"] == "Los Angeles Lakers"
    assert data["query"]["team_mention"] == "Lakers"
    assert data["payment"]["credits_debited"] == 1
    assert data["payment"]["reference"] == "0xfeed"
    assert data["payment"]["error"] is None
    payment_provider.settle.assert_awaited_once()


def test_verify_alias_uses_sports(client, sports_provider):
    response = client.post("/api/verify", json=QUESTION, headers={"Authorization": "Bearer token-123"})

    assert response.status_code == 200
    assert response.json()["domain"] == "sports"
    sports_provider.query.assert_awaited_once()


def test_reddit_success(client, reddit_provider):
    response = client.post("/api/reddit", json={"question": "What's hot on r/python?"}, headers=PAID)

    assert response.status_code == 200
    data = response.json()
    assert data["domain"] == "reddit"
    assert data["confidence"] == 0.85
    assert data["query"]["query_type"] == "hot"


def test_settlement_failure_still_returns_result(client, payment_provider):
    payment_provider.settle.side_effect = ConnectionError("settle unavailable")

    response = client.post("/api/sports", json=QUESTION, headers=PAID)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["payment"]["error"] == "settlement_failed"
    assert data["payment"]["credits_debited"] == 0
    assert data["payment"]["message"] == "settle unavailable"


def test_parse_failure_is_a_paid_200(client, sports_provider):
    response = client.post("/api/sports", json={"question": "who won?"}, headers=PAID)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["confidence"] == 0.0
    assert data["error_kind"] == "could_not_parse_team_name"
    assert data["payment"]["credits_debited"] == 1
    sports_provider.query.assert_not_awaited()


def test_safety_rejection_is_settled(client, query_log, sports_provider, payment_provider):
    for _ in range(5):
        query_log.record(VerificationResult.failure("sports", ErrorKind.NO_EVENTS))

    response = client.post("/api/sports", json=QUESTION, headers=PAID)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["safety_triggered"] is True
    assert data["error_kind"] == "circuit_breaker_tripped"
    assert data["payment"]["credits_debited"] == 1
    sports_provider.query.assert_not_awaited()
    payment_provider.settle.assert_awaited_once()


def test_unexpected_error_returns_500(client, sports_provider):
    sports_provider.query.side_effect = RuntimeError("boom")

    response = client.post("/api/sports", json=QUESTION, headers=PAID)

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "oracle_error"
    assert data["details"] == "boom"


def test_unknown_domain_returns_404(client):
    response = client.post("/api/weather", json=QUESTION, headers=PAID)

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_stats_endpoint(client):
    client.post("/api/sports", json=QUESTION, headers=PAID)

    response = client.get("/api/stats/sports")

    assert response.status_code == 200
    data = response.json()
    assert data["domain"] == "sports"
    assert data["stats"]["totalQueries"] == 1
    assert data["stats"]["successCount"] == 1
    assert data["average_confidence"] == 0.75
    assert data["safety"]["breaker"] == "normal"


def test_stats_unknown_domain(client):
    response = client.get("/api/stats/weather")

    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "message": "Unknown oracle domain: weather"}
