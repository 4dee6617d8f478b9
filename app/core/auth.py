"""Request principal resolution.

A request is authenticated either by a bearer token (API clients) or by the
session cookie (browser views). Both strategies resolve to the same
``Principal`` and both re-check the user against the database.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session as DbSession

from app.core.config import Settings, get_app_settings
from app.core.database import get_db
from app.core.exceptions import (
    AppError,
    raise_authentication_required,
    raise_jwt_invalid_or_expired,
    raise_user_not_permitted,
)
from app.core.jwt.security import extract_bearer_token, verify_access_token
from app.core.sessions import SessionStore
from app.models import Session, User

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"


@dataclass
class Principal:
    user: User
    source: str
    session: Optional[Session] = None

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def username(self) -> str:
        return self.user.username

    @property
    def role(self) -> str:
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin


class LoginRequired(AppError):
    """Raised by view routes; rendered as a redirect to the login page."""

    def __init__(self, return_to: str = "/"):
        super().__init__("Authentication required", status.HTTP_303_SEE_OTHER)
        self.location = f"{LOGIN_PATH}?return={quote(return_to, safe='/')}"


class BearerTokenStrategy:
    source = "token"

    def extract(self, request: Request, db: DbSession, settings: Settings) -> Optional[Principal]:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return None

        payload = verify_access_token(token, settings)
        subject = payload.get("sub")
        if not subject or not str(subject).isdigit():
            raise_jwt_invalid_or_expired()

        user = db.get(User, int(subject))
        if not user:
            raise_jwt_invalid_or_expired()
        return Principal(user=user, source=self.source)


class SessionCookieStrategy:
    source = "session"

    def extract(self, request: Request, db: DbSession, settings: Settings) -> Optional[Principal]:
        store = SessionStore(db, settings)
        record = store.load(request.cookies.get(settings.session_cookie_name))
        if record is None or record.user_id is None:
            return None

        user = db.get(User, record.user_id)
        if user is None:
            db.delete(record)
            db.commit()
            return None
        return Principal(user=user, source=self.source, session=record)


STRATEGIES = (BearerTokenStrategy(), SessionCookieStrategy())
_UNRESOLVED = object()


def resolve_principal(request: Request, db: DbSession, settings: Settings,
                      strict: bool = True) -> Optional[Principal]:
    cached = getattr(request.state, "principal", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached

    principal = None
    for strategy in STRATEGIES:
        try:
            principal = strategy.extract(request, db, settings)
        except HTTPException:
            if strict:
                raise
            logger.debug("Ignoring invalid %s credentials on %s", strategy.source, request.url.path)
            principal = None
        if principal is not None:
            break

    request.state.principal = principal
    return principal


def optional_principal(request: Request, db: DbSession = Depends(get_db),
                       settings: Settings = Depends(get_app_settings)) -> Optional[Principal]:
    return resolve_principal(request, db, settings, strict=False)


def require_auth(request: Request, db: DbSession = Depends(get_db),
                 settings: Settings = Depends(get_app_settings)) -> Principal:
    principal = resolve_principal(request, db, settings)
    if principal is None:
        raise_authentication_required()
    return principal


def require_admin(principal: Principal = Depends(require_auth)) -> Principal:
    if not principal.is_admin:
        raise_user_not_permitted()
    return principal


def require_auth_view(request: Request, db: DbSession = Depends(get_db),
                      settings: Settings = Depends(get_app_settings)) -> Principal:
    principal = resolve_principal(request, db, settings, strict=False)
    if principal is None:
        raise LoginRequired(request.url.path)
    return principal


def require_admin_view(principal: Principal = Depends(require_auth_view)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this page.",
        )
    return principal
