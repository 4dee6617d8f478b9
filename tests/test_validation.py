import pytest


@pytest.mark.parametrize("query", [
    {"sort": "sideways"},
    {"limit": "0"},
    {"limit": "101"},
    {"limit": "ten"},
    {"offset": "-1"},
    {"year": "1899"},
    {"year": "2101"},
])
def test_invalid_menu_query_is_rejected(client, query):
    response = client.get("/api/v1/events", params=query)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    assert body["details"]


@pytest.mark.parametrize("path", [
    "/api/v1/events/0",
    "/api/v1/events/abc",
    "/api/v1/events/year/1800",
    "/api/v1/photos/-3",
])
def test_invalid_path_parameters_are_rejected(client, path):
    assert client.get(path).status_code == 400


def test_bounds_are_accepted(client):
    assert client.get("/api/v1/events", params={"limit": 1, "year": 1900}).status_code == 200
    assert client.get("/api/v1/events", params={"limit": 100, "year": 2100}).status_code == 200


def test_invalid_view_query_renders_error_page(client):
    response = client.get("/", params={"sort": "up"})
    assert response.status_code == 400
    assert "text/html" in response.headers["content-type"]
    assert "Validation failed" in response.text
