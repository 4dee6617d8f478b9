from fastapi.testclient import TestClient

from app.core.middleware import FixedWindowRateLimiter
from main import create_app


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_rate_limiter_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert limiter.hit("a") == (True, 60)
    assert limiter.hit("a")[0] is True
    allowed, retry_after = limiter.hit("a")
    assert allowed is False
    assert retry_after == 60
    assert limiter.hit("b")[0] is True

    clock.now = 61
    assert limiter.hit("a")[0] is True


def test_rate_limit_middleware(settings):
    app = create_app(settings.model_copy(update={"rate_limit_max_requests": 2}))
    client = TestClient(app)

    assert client.get("/api/v1/events").status_code == 200
    assert client.get("/api/v1/events").status_code == 200
    response = client.get("/api/v1/events")
    assert response.status_code == 429
    assert response.json()["error"] == "Too many requests"
    assert int(response.headers["retry-after"]) >= 1

    # Health checks are never throttled
    assert client.get("/health").status_code == 200


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"


def test_cors_allows_configured_origin(client, settings):
    origin = settings.cors_origins[0]
    response = client.get("/health", headers={"Origin": origin})
    assert response.headers["access-control-allow-origin"] == origin
