import logging
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import APP_VERSION, Settings, get_settings
from app.core.database import build_engine, build_session_factory, init_db
from app.core.error_handlers import register_error_handlers
from app.core.jwt.security import configure_password_hashing
from app.core.logging import configure_logging
from app.core.middleware import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    UploadSizeLimitMiddleware,
)
from app.core.sessions import SessionStore
from app.routers import (
    admin_api,
    admin_views,
    auth_api,
    auth_views,
    events,
    health,
    photos,
    profile,
    recovery_views,
    views,
)
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

# Multipart and base64 framing add overhead on top of the raw file size
BODY_OVERHEAD = 2


def bootstrap(app: FastAPI, settings: Settings) -> None:
    db = app.state.session_factory()
    try:
        SessionStore(db, settings).purge_expired()
        if settings.admin_username and settings.admin_email and settings.admin_password:
            admin = UserService(db).ensure_admin(settings.admin_username, settings.admin_email,
                                                 settings.admin_password)
            logger.info("Bootstrap admin account is %s", admin.username)
    except HTTPException as e:
        logger.error("Could not ensure bootstrap admin %s: %s", settings.admin_username, e.detail)
    except SQLAlchemyError:
        logger.exception("Startup maintenance failed")
    finally:
        db.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    configure_password_hashing(settings.bcrypt_rounds)
    if settings.is_production and settings.uses_default_secrets:
        logger.warning("JWT_SECRET or SESSION_SECRET is unset; using the built-in development secrets")

    app = FastAPI(title="Thanksgiving Menu Archive", version=APP_VERSION)
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.recovery_limiter = FixedWindowRateLimiter(settings.recovery_max_attempts,
                                                        settings.recovery_window_seconds)

    try:
        init_db(app.state.engine)
        bootstrap(app, settings)
    except SQLAlchemyError:
        # Requests will surface the failure through the error handlers and /health/db
        logger.exception("Database initialisation failed")

    app.add_middleware(UploadSizeLimitMiddleware, max_body_size=settings.max_file_size * BODY_OVERHEAD)
    if settings.rate_limit_max_requests > 0:
        limiter = FixedWindowRateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)
        app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth_api.router)
    app.include_router(profile.router)
    app.include_router(admin_api.router)
    app.include_router(events.router)
    app.include_router(events.legacy_router)
    app.include_router(photos.router)
    app.include_router(auth_views.router)
    app.include_router(recovery_views.router)
    app.include_router(admin_views.router)
    app.include_router(views.router)

    logger.info("Menu archive %s started in %s mode", APP_VERSION, settings.environment)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
