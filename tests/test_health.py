from app.core.config import APP_VERSION


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["version"] == APP_VERSION
    assert body["uptime"] >= 0
    assert body["timestamp"]


def test_database_health(client):
    response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


def test_database_health_reports_outage(client, app, monkeypatch):
    monkeypatch.setattr("app.routers.health.check_connection", lambda engine: False)
    response = client.get("/health/db")
    assert response.status_code == 503
    assert response.json()["status"] == "ERROR"
