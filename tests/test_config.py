from app.core.config import Settings
from app.core.database import normalize_database_url
from app.services.user_service import UserService
from main import create_app


def test_defaults_apply_when_environment_is_empty():
    settings = Settings.from_env({})
    assert settings.port == 3000
    assert settings.database_url == "sqlite:///./menus.db"
    assert settings.photo_storage == "database"
    assert settings.is_development


def test_environment_variables_override_defaults():
    settings = Settings.from_env({
        "PORT": "8080",
        "ENVIRONMENT": "production",
        "DATABASE_URL": "postgresql://u:p@db/menus",
        "MAX_FILE_SIZE": "2048",
        "PHOTO_STORAGE": "filesystem",
        "CORS_ORIGIN": "https://a.example, https://b.example",
    })
    assert settings.port == 8080
    assert settings.is_production
    assert settings.max_file_size == 2048
    assert settings.photo_storage == "filesystem"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_postgres_url_is_used_when_database_url_is_missing():
    settings = Settings.from_env({"POSTGRES_URL": "postgres://u:p@db/menus"})
    assert settings.database_url == "postgres://u:p@db/menus"
    assert normalize_database_url(settings.database_url) == "postgresql://u:p@db/menus"


def test_bootstrap_admin_is_created_at_startup(tmp_path):
    settings = Settings(database_url="sqlite://", bcrypt_rounds=4, rate_limit_max_requests=0,
                        upload_path=str(tmp_path), admin_username="Root",
                        admin_email="root@example.com", admin_password="bootstrap-pass")
    app = create_app(settings)
    db = app.state.session_factory()
    try:
        admin = UserService(db).get_by_username("root")
        assert admin is not None
        assert admin.is_admin
    finally:
        db.close()


def test_default_secrets_are_detected():
    assert Settings().uses_default_secrets
    assert not Settings(jwt_secret="a", session_secret="b").uses_default_secrets
