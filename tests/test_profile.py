from app.models import User
from conftest import PASSWORD, login_headers


def stored_hash(db, user_id):
    db.expire_all()
    return db.get(User, user_id).password_hash


def test_change_password(client, db, user, user_headers):
    response = client.put("/api/v1/profile/password", headers=user_headers, json={
        "current_password": PASSWORD,
        "new_password": "cranberry-sauce",
        "confirm_password": "cranberry-sauce",
    })
    assert response.status_code == 200
    login_headers(client, "alice", "cranberry-sauce")


def test_wrong_current_password_leaves_hash_unchanged(client, db, user, user_headers):
    before = stored_hash(db, user.id)
    response = client.put("/api/v1/profile/password", headers=user_headers, json={
        "current_password": "not-my-password",
        "new_password": "cranberry-sauce",
        "confirm_password": "cranberry-sauce",
    })
    assert response.status_code == 401
    assert stored_hash(db, user.id) == before


def test_short_new_password_is_rejected(client, db, user, user_headers):
    before = stored_hash(db, user.id)
    response = client.put("/api/v1/profile/password", headers=user_headers, json={
        "current_password": PASSWORD,
        "new_password": "short",
        "confirm_password": "short",
    })
    assert response.status_code == 400
    assert stored_hash(db, user.id) == before


def test_mismatched_confirmation_is_rejected(client, user_headers):
    response = client.put("/api/v1/profile/password", headers=user_headers, json={
        "current_password": PASSWORD,
        "new_password": "cranberry-sauce",
        "confirm_password": "cranberry-jelly",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "Password confirmation does not match"


def test_missing_fields_are_rejected(client, user_headers):
    response = client.put("/api/v1/profile/password", headers=user_headers, json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Current password is required"


def test_new_password_must_differ(client, user_headers):
    response = client.put("/api/v1/profile/password", headers=user_headers, json={
        "current_password": PASSWORD,
        "new_password": PASSWORD,
        "confirm_password": PASSWORD,
    })
    assert response.status_code == 400


def test_update_profile(client, user_headers):
    response = client.put("/api/v1/profile", headers=user_headers, json={
        "email": "Alice.New@Example.com",
        "first_name": "Alicia",
        "current_password": PASSWORD,
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "alice.new@example.com"
    assert data["full_name"] == "Alicia Baker"


def test_update_profile_rejects_taken_email(client, make_user, user_headers):
    make_user("bob")
    response = client.put("/api/v1/profile", headers=user_headers, json={
        "email": "bob@example.com",
        "current_password": PASSWORD,
    })
    assert response.status_code == 409


def test_update_profile_requires_current_password(client, user_headers):
    response = client.put("/api/v1/profile", headers=user_headers, json={
        "first_name": "Mallory",
        "current_password": "guess-guess",
    })
    assert response.status_code == 401
