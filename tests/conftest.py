import base64
import os
from datetime import date

# main builds a module-level app on import; keep it off the real database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "0")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.models import Event
from app.models.user import ROLE_ADMIN, ROLE_USER
from app.services.user_service import UserService
from main import create_app

PASSWORD = "correct-horse-1"
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        database_url="sqlite://",
        bcrypt_rounds=4,
        rate_limit_max_requests=0,
        upload_path=str(tmp_path / "uploads"),
        max_file_size=1024 * 1024,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username="alice", email=None, password=PASSWORD, role=ROLE_USER, **names):
        return UserService(db).create_user(username, email or f"{username}@example.com", password,
                                           role=role, **names)
    return _make_user


@pytest.fixture
def user(make_user):
    return make_user("alice", first_name="Alice", last_name="Baker")


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=ROLE_ADMIN)


@pytest.fixture
def make_event(db):
    def _make_event(event_date=date(2021, 11, 25), **fields):
        values = {
            "event_name": "Thanksgiving Dinner",
            "event_type": "Dinner",
            "event_location": "Grandma's House",
            "event_date": event_date,
            "event_description": "Turkey, stuffing and pie.",
            "menu_title": f"Menu {event_date.year}",
            "menu_image_filename": f"menu-{event_date.year}.jpg",
        }
        values.update(fields)
        event = Event(**values)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event
    return _make_event


def login_headers(client, username, password=PASSWORD) -> dict:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


@pytest.fixture
def user_headers(client, user):
    return login_headers(client, user.username)


@pytest.fixture
def admin_headers(client, admin):
    return login_headers(client, admin.username)
