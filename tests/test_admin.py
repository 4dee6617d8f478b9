from app.models import User
from conftest import login_headers


def test_list_users_requires_admin(client, user_headers, admin_headers):
    assert client.get("/api/v1/admin/users").status_code == 401
    assert client.get("/api/v1/admin/users", headers=user_headers).status_code == 403

    body = client.get("/api/v1/admin/users", headers=admin_headers).json()
    assert body["count"] == 2
    assert {user["username"] for user in body["data"]} == {"alice", "admin"}


def test_change_role(client, db, user, admin_headers):
    response = client.put(f"/api/v1/admin/users/{user.id}/role", headers=admin_headers, json={"role": "admin"})
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "admin"

    # Role is re-read per request, so the new admin is recognized immediately
    headers = login_headers(client, "alice")
    assert client.get("/api/v1/admin/users", headers=headers).status_code == 200


def test_invalid_role_is_rejected(client, user, admin_headers):
    response = client.put(f"/api/v1/admin/users/{user.id}/role", headers=admin_headers, json={"role": "root"})
    assert response.status_code == 400


def test_admin_cannot_demote_or_delete_self(client, admin, admin_headers):
    assert client.put(f"/api/v1/admin/users/{admin.id}/role", headers=admin_headers,
                      json={"role": "user"}).status_code == 400
    assert client.delete(f"/api/v1/admin/users/{admin.id}", headers=admin_headers).status_code == 400


def test_delete_user(client, db, user, admin_headers):
    user_id = user.id
    assert client.delete(f"/api/v1/admin/users/{user_id}", headers=admin_headers).status_code == 200
    db.expire_all()
    assert db.get(User, user_id) is None
    assert client.delete(f"/api/v1/admin/users/{user_id}", headers=admin_headers).status_code == 404


def test_dashboard_views(client, admin, make_event):
    make_event()
    client.post("/auth/login", data={"username": "admin", "password": "correct-horse-1"})

    dashboard = client.get("/admin")
    assert dashboard.status_code == 200
    assert "Admin Dashboard" in dashboard.text
    assert "Menu 2021" in dashboard.text

    users = client.get("/admin/users")
    assert users.status_code == 200
    assert "admin@example.com" in users.text


def test_dashboard_forbidden_for_regular_users(client, user):
    client.post("/auth/login", data={"username": "alice", "password": "correct-horse-1"})
    response = client.get("/admin")
    assert response.status_code == 403
    assert "You do not have permission to access this page." in response.text


def test_dashboard_redirects_anonymous_users(client):
    response = client.get("/admin", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login?return=/admin"
