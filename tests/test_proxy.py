"""Rates proxy: validation, caching, rate limiting, housekeeping routes."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from transfer_ai.proxy.app import build_cache_key, create_app
from transfer_ai.proxy.cache import TTLCache

QUERY = {
    "pickup": "ChIJm74aR6tVbEcRS5vSjRBSeiQ",
    "dropoff": "Hotel Sacher",
    "pickupEstablishment": "Vienna Airport",
    "dropoffEstablishment": "Hotel Sacher",
    "pickupType": "airport",
    "dropoffType": "establishment",
    "pickupDateTime": "2025-06-10T14:30:00",
    "passenger": "2",
}


class Upstream:
    """MockTransport handler counting marketplace calls."""

    def __init__(self, status_code: int = 200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"journeys": [{"legs": [{"results": []}]}]}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def upstream():
    return Upstream()


def _client(upstream, **kwargs) -> TestClient:
    cache = kwargs.pop("cache", None) or TTLCache(ttl_seconds=300, max_keys=100, redis_url="")
    app = create_app(cache=cache, upstream_transport=httpx.MockTransport(upstream), **kwargs)
    return TestClient(app)


def test_missing_required_parameters_is_400(upstream):
    response = _client(upstream).get("/api/transfers", params={"pickup": "x"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["required"] == ["pickup", "dropoff", "pickupDateTime", "passenger"]
    assert body["requestId"]
    assert upstream.requests == []


def test_upstream_call_carries_fixed_flags_and_headers(upstream):
    response = _client(upstream).get("/api/transfers", params=QUERY)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["cached"] is False
    assert body["source"] == "booking.com"
    assert body["requestParams"]["currency"] == "EUR"
    assert body["requestParams"]["language"] == "en-gb"

    sent = upstream.requests[0]
    assert sent.url.params["affiliate"] == "booking-taxi"
    assert sent.url.params["format"] == "envelope"
    assert sent.url.params["populateSupplierName"] == "true"
    assert sent.headers["Referer"] == "https://www.booking.com/"
    assert "br" not in [e.strip() for e in sent.headers["Accept-Encoding"].split(",")]


def test_identical_requests_are_served_from_cache(upstream):
    client = _client(upstream)

    first = client.get("/api/transfers", params=QUERY).json()
    second = client.get("/api/transfers", params=QUERY).json()

    assert len(upstream.requests) == 1
    assert second["cached"] is True
    assert second["data"] == first["data"]
    assert second["requestId"] != first["requestId"]

    stats = client.get("/api/cache/stats").json()
    assert stats["keys"] == 1
    assert stats["stats"]["hits"] == 1
    assert stats["stats"]["misses"] == 1


def test_cache_clear_forces_refetch(upstream):
    client = _client(upstream)
    client.get("/api/transfers", params=QUERY)

    cleared = client.delete("/api/cache/clear").json()
    client.get("/api/transfers", params=QUERY)

    assert cleared["success"] is True
    assert len(upstream.requests) == 2


def test_upstream_failure_is_500():
    failing = Upstream(status_code=503, payload={"error": "down"})

    response = _client(failing).get("/api/transfers", params=QUERY)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Internal server error"
    assert "503" in body["message"]


def test_rate_limit_returns_429_after_max_requests(upstream):
    client = _client(upstream, rate_limit_max=2, rate_limit_window_ms=60000)

    statuses = [client.get("/api/cache/stats").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
    body = client.get("/api/cache/stats").json()
    assert body["error"].startswith("Too many requests")
    assert body["retryAfter"] == 1


def test_transfer_search_is_rate_limited_per_window(upstream):
    client = _client(upstream, rate_limit_max=1, rate_limit_window_ms=60000)

    statuses = [client.get("/api/transfers", params=QUERY).status_code for _ in range(3)]

    assert statuses == [200, 429, 429]
    assert len(upstream.requests) == 1


def test_health_is_not_rate_limited(upstream):
    client = _client(upstream, rate_limit_max=1, rate_limit_window_ms=60000)

    responses = [client.get("/health") for _ in range(3)]

    assert all(r.status_code == 200 for r in responses)
    body = responses[-1].json()
    assert body["status"] == "healthy"
    assert "stats" in body["cache"]


def test_unknown_route_is_404_json(upstream):
    response = _client(upstream).get("/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "Not found"


def test_security_and_request_id_headers(upstream):
    response = _client(upstream).get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Request-ID"]


def test_ttl_cache_expiry_and_eviction():
    expiring = TTLCache(ttl_seconds=0, max_keys=10, redis_url="")
    expiring.set("a", {"v": 1})
    assert expiring.get("a") is None

    cache = TTLCache(ttl_seconds=300, max_keys=2, redis_url="")
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.keys() == ["b", "c"]
    assert cache.stats() == {"hits": 0, "misses": 0, "keys": 2}


def test_cache_key_depends_on_every_parameter():
    base = dict(QUERY, currency="EUR", language="en-gb")
    assert build_cache_key(base) != build_cache_key(dict(base, passenger="3"))
    assert build_cache_key(base).startswith("transfer_")
