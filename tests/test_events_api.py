from datetime import date

NEW_EVENT = {
    "event_name": "Thanksgiving Dinner",
    "event_type": "Dinner",
    "event_location": "Lake House",
    "event_date": "2022-11-24",
    "event_description": "Smoked turkey and three pies.",
    "menu_title": "Lake House 2022",
    "menu_image_filename": "lake-2022.jpg",
}


def test_list_events_returns_envelope(client, make_event):
    make_event(date(2020, 11, 26))
    make_event(date(2021, 11, 25))

    response = client.get("/api/v1/events", params={"sort": "asc"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert [menu["year"] for menu in body["data"]] == [2020, 2021]


def test_legacy_path_serves_same_listing(client, make_event):
    make_event()
    assert client.get("/api/events").json()["data"] == client.get("/api/v1/events").json()["data"]


def test_events_by_year(client, make_event):
    make_event(date(2020, 11, 26))
    make_event(date(2021, 11, 25))

    body = client.get("/api/v1/events/year/2021").json()
    assert body["count"] == 1
    assert body["data"][0]["date"] == "2021-11-25"


def test_get_missing_event_is_404(client):
    response = client.get("/api/v1/events/999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Menu not found"}


def test_stats_endpoint(client, make_event):
    make_event(date(2019, 11, 28))
    make_event(date(2021, 11, 25))

    data = client.get("/api/v1/stats").json()["data"]
    assert data == {"totalMenus": 2, "years": [2021, 2019], "mostRecentYear": 2021, "oldestYear": 2019}


def test_create_requires_admin(client, user_headers):
    assert client.post("/api/v1/events", json=NEW_EVENT).status_code == 401
    assert client.post("/api/v1/events", json=NEW_EVENT, headers=user_headers).status_code == 403


def test_admin_can_create_update_and_delete(client, admin_headers):
    response = client.post("/api/v1/events", json=NEW_EVENT, headers=admin_headers)
    assert response.status_code == 201
    menu_id = response.json()["data"]["id"]

    response = client.put(f"/api/v1/events/{menu_id}", json={"menu_title": "Renamed"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["menu_title"] == "Renamed"
    assert response.json()["data"]["event_location"] == "Lake House"

    assert client.delete(f"/api/v1/events/{menu_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/v1/events/{menu_id}").status_code == 404
    assert client.delete(f"/api/v1/events/{menu_id}", headers=admin_headers).status_code == 404


def test_create_rejects_missing_fields(client, admin_headers):
    payload = {key: value for key, value in NEW_EVENT.items() if key != "menu_title"}
    response = client.post("/api/v1/events", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_event_date_must_be_an_iso_string(client, admin_headers):
    for bad_date in (1606348800, "26/11/2020", "2020-13-01"):
        response = client.post("/api/v1/events", json={**NEW_EVENT, "event_date": bad_date}, headers=admin_headers)
        assert response.status_code == 400, bad_date
        assert response.json()["error"] == "Validation failed"


def test_update_rejects_timestamp_date(client, admin_headers, make_event):
    event = make_event()
    response = client.put(f"/api/v1/events/{event.id}", json={"event_date": 1606348800}, headers=admin_headers)
    assert response.status_code == 400
    assert client.get(f"/api/v1/events/{event.id}").json()["data"]["event_date"] == "2021-11-25"


def test_text_fields_are_length_bounded(client, admin_headers):
    response = client.post("/api/v1/events", json={**NEW_EVENT, "menu_title": "x" * 256}, headers=admin_headers)
    assert response.status_code == 400
    assert any("menu_title" in detail for detail in response.json()["details"])


def test_text_fields_are_trimmed(client, admin_headers):
    payload = {**NEW_EVENT, "menu_title": "  Lake House 2022  ", "event_location": "\tLake House\n"}
    data = client.post("/api/v1/events", json=payload, headers=admin_headers).json()["data"]
    assert data["menu_title"] == "Lake House 2022"
    assert data["event_location"] == "Lake House"


def test_blank_text_field_is_rejected(client, admin_headers):
    response = client.post("/api/v1/events", json={**NEW_EVENT, "event_name": "   "}, headers=admin_headers)
    assert response.status_code == 400
