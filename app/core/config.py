import os
from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from fastapi import Request
from pydantic import BaseModel

APP_VERSION = "1.2.0"
API_PREFIX = "/api/v1"

DEV_JWT_SECRET = "menu-archive-jwt-secret-change-in-production"
DEV_SESSION_SECRET = "menu-archive-session-secret-change-in-production"


class Settings(BaseModel):
    port: int = 3000
    environment: str = "development"

    database_url: str = "sqlite:///./menus.db"
    db_pool_size: int = 5
    db_max_overflow: int = 0
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    session_secret: str = DEV_SESSION_SECRET
    session_cookie_name: str = "menu_session"
    session_max_age_seconds: int = 60 * 60 * 24
    password_reset_max_age_seconds: int = 60 * 60
    recovery_max_attempts: int = 3
    recovery_window_seconds: int = 60 * 60

    cors_origin: str = "http://localhost:3000"
    max_file_size: int = 10 * 1024 * 1024
    upload_path: str = "./uploads"
    photo_storage: Literal["database", "filesystem"] = "database"
    image_base_url: str = "/images"

    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    log_level: str = "INFO"
    bcrypt_rounds: int = 12

    # Optional bootstrap admin account, created or promoted at startup
    admin_username: Optional[str] = None
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_default_secrets(self) -> bool:
        return self.jwt_secret == DEV_JWT_SECRET or self.session_secret == DEV_SESSION_SECRET

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from environment variables.

        Unset variables keep their defaults. When ``environ`` is omitted the
        process environment is used, after loading a ``.env`` file if present.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        mapping = {
            "port": "PORT",
            "environment": "ENVIRONMENT",
            "database_url": "DATABASE_URL",
            "db_pool_size": "DB_POOL_SIZE",
            "db_max_overflow": "DB_MAX_OVERFLOW",
            "db_pool_timeout": "DB_POOL_TIMEOUT",
            "db_pool_recycle": "DB_POOL_RECYCLE",
            "jwt_secret": "JWT_SECRET",
            "jwt_algorithm": "JWT_ALGORITHM",
            "access_token_expire_minutes": "ACCESS_TOKEN_EXPIRE_MINUTES",
            "session_secret": "SESSION_SECRET",
            "session_cookie_name": "SESSION_COOKIE_NAME",
            "session_max_age_seconds": "SESSION_MAX_AGE_SECONDS",
            "password_reset_max_age_seconds": "PASSWORD_RESET_MAX_AGE_SECONDS",
            "recovery_max_attempts": "RECOVERY_MAX_ATTEMPTS",
            "recovery_window_seconds": "RECOVERY_WINDOW_SECONDS",
            "cors_origin": "CORS_ORIGIN",
            "max_file_size": "MAX_FILE_SIZE",
            "upload_path": "UPLOAD_PATH",
            "photo_storage": "PHOTO_STORAGE",
            "image_base_url": "IMAGE_BASE_URL",
            "rate_limit_window_seconds": "RATE_LIMIT_WINDOW_SECONDS",
            "rate_limit_max_requests": "RATE_LIMIT_MAX_REQUESTS",
            "log_level": "LOG_LEVEL",
            "bcrypt_rounds": "BCRYPT_ROUNDS",
            "admin_username": "ADMIN_USERNAME",
            "admin_email": "ADMIN_EMAIL",
            "admin_password": "ADMIN_PASSWORD",
        }
        values = {field: environ[var] for field, var in mapping.items() if environ.get(var)}

        # Older deployments only export the postgres URL
        if "database_url" not in values and environ.get("POSTGRES_URL"):
            values["database_url"] = environ["POSTGRES_URL"]

        return cls.model_validate(values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
