"""Server-side sessions stored in the ``Sessions`` table.

The browser only ever holds a signed, opaque session id; the user reference
and payload live in the database row, which expires server-side.
"""

import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Response
from itsdangerous import BadSignature, TimestampSigner
from sqlalchemy.orm import Session as DbSession

from app.core.config import Settings
from app.models import Session, User

logger = logging.getLogger(__name__)


def as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStore:
    def __init__(self, db: DbSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.signer = TimestampSigner(settings.session_secret, salt="menu-archive.session")

    def sign(self, session_id: str) -> str:
        return self.signer.sign(session_id).decode("ascii")

    def unsign(self, cookie_value: str) -> Optional[str]:
        try:
            return self.signer.unsign(cookie_value, max_age=self.settings.session_max_age_seconds).decode("ascii")
        except BadSignature:
            return None

    def create(self, user: User, **data) -> Session:
        now = datetime.now(timezone.utc)
        record = Session(
            id=secrets.token_urlsafe(48),
            user_id=user.id,
            expires=now + timedelta(seconds=self.settings.session_max_age_seconds),
            data=json.dumps({"username": user.username, "role": user.role, **data}),
            created_at=now,
        )
        self.db.add(record)
        self.db.commit()
        return record

    def load(self, cookie_value: Optional[str]) -> Optional[Session]:
        if not cookie_value:
            return None
        session_id = self.unsign(cookie_value)
        if session_id is None:
            return None

        record = self.db.get(Session, session_id)
        if record is None:
            return None
        if as_aware(record.expires) <= datetime.now(timezone.utc):
            self.db.delete(record)
            self.db.commit()
            return None
        return record

    def destroy(self, cookie_value: Optional[str]) -> None:
        session_id = self.unsign(cookie_value) if cookie_value else None
        if session_id is None:
            return
        record = self.db.get(Session, session_id)
        if record is not None:
            self.db.delete(record)
            self.db.commit()

    def purge_expired(self) -> int:
        removed = (
            self.db.query(Session)
            .filter(Session.expires <= datetime.now(timezone.utc))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed

    def set_cookie(self, response: Response, record: Session) -> None:
        response.set_cookie(
            self.settings.session_cookie_name,
            self.sign(record.id),
            max_age=self.settings.session_max_age_seconds,
            httponly=True,
            samesite="lax",
            secure=self.settings.is_production,
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(self.settings.session_cookie_name)


def session_payload(record: Session) -> dict:
    return json.loads(record.data) if record.data else {}
