"""Tests for the HTTP wiring of the rate limiter.

Each test builds its own app so counters and registered policies never leak
between tests. TestClient connects as peer "testclient".
"""

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from quota_gate.core.app_factory import create_app
from quota_gate.core.config import settings
from quota_gate.core.rate_limit import rate_limit
from quota_gate.services.registry import Policy


@pytest.fixture
def app(clock: Mock) -> FastAPI:
    return create_app(clock=clock)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def test_limited_route_throttles_after_five_requests(client: TestClient) -> None:
    for _ in range(5):
        assert client.get("/api/limited").status_code == 200

    resp = client.get("/api/limited")

    assert resp.status_code == 429
    assert resp.json() == {"detail": "Rate limit exceeded. Try again later."}


def test_throttled_response_carries_headers(client: TestClient, clock: Mock) -> None:
    for _ in range(5):
        client.get("/api/limited")

    clock.return_value = 1010.2
    resp = client.get("/api/limited")

    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "20"
    assert resp.headers["X-RateLimit-Limit"] == "5"
    assert resp.headers["X-RateLimit-Remaining"] == "0"


def test_headers_can_be_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)
    for _ in range(5):
        client.get("/api/limited")

    resp = client.get("/api/limited")

    assert resp.status_code == 429
    assert "Retry-After" not in resp.headers


def test_limited_route_recovers_after_window(client: TestClient, clock: Mock) -> None:
    for _ in range(6):
        client.get("/api/limited")

    clock.return_value = 1031.0

    assert client.get("/api/limited").status_code == 200


def test_unlimited_route_is_never_throttled(client: TestClient) -> None:
    for _ in range(100):
        assert client.get("/api/unlimited").status_code == 200


def test_disabled_rate_limiting_allows_everything(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_enabled", False)

    for _ in range(10):
        assert client.get("/api/limited").status_code == 200


def test_rate_info_before_any_guarded_request(client: TestClient) -> None:
    resp = client.get("/api/rate-info")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ip"] == "testclient"
    assert body["limits"] == {}
    assert body["message"] == "No rate limits are currently active for this IP address"


def test_rate_info_reports_usage(client: TestClient, clock: Mock) -> None:
    for _ in range(6):
        client.get("/api/limited")
    client.get("/api/hello")

    clock.return_value = 1005.0
    body = client.get("/api/rate-info").json()

    assert "message" not in body
    assert body["limits"]["/api/limited"] == {
        "description": "limited (limit: 5 requests per 30 seconds)",
        "limit": 5,
        "time_window_seconds": 30,
        "current": 6,
        "remaining": 0,
        "resets_in_seconds": 25,
    }
    hello = body["limits"]["/api/hello"]
    assert hello["limit"] == settings.app.rate_limit_default_limit
    assert hello["current"] == 1


def test_rate_info_is_not_counted(client: TestClient) -> None:
    client.get("/api/limited")
    for _ in range(10):
        client.get("/api/rate-info")

    body = client.get("/api/rate-info").json()

    assert set(body["limits"]) == {"/api/limited"}
    assert body["limits"]["/api/limited"]["current"] == 1


def test_fails_open_without_store(clock: Mock) -> None:
    client = TestClient(create_app(clock=clock, store_factory=lambda: None))

    for _ in range(10):
        assert client.get("/api/limited").status_code == 200

    limited = client.get("/api/rate-info").json()["limits"]["/api/limited"]
    assert limited["current"] == 0
    assert limited["remaining"] == 5


def test_invalid_policy_returns_configuration_error(app: FastAPI) -> None:
    @app.get("/broken", dependencies=[Depends(rate_limit(Policy(limit=0, window_seconds=60)))])
    async def broken() -> dict:
        return {}

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/broken")

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "invalid_rate_limit_policy"


def test_custom_identity_extractor(app: FastAPI) -> None:
    policy = Policy(limit=1, window_seconds=60, description="tenant")

    @app.get(
        "/tenant",
        dependencies=[Depends(rate_limit(policy, lambda request: request.query_params["t"]))],
    )
    async def tenant() -> dict:
        return {}

    client = TestClient(app)

    assert client.get("/tenant?t=a").status_code == 200
    assert client.get("/tenant?t=a").status_code == 429
    assert client.get("/tenant?t=b").status_code == 200


def test_health_reports_counts(client: TestClient) -> None:
    client.get("/api/limited")

    body = client.get("/health").json()

    assert body == {"status": "ok", "registered_policies": 1, "tracked_windows": 1}
