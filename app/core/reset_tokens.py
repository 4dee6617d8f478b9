"""Signed, time-limited password reset tokens.

The token carries the user id and a fingerprint of the current password hash,
so it stops working as soon as the password changes.
"""

import hashlib
import logging
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session as DbSession

from app.core.config import Settings
from app.models import User

logger = logging.getLogger(__name__)

RESET_SALT = "menu-archive.password-reset"


def password_fingerprint(user: User) -> str:
    return hashlib.sha256(user.password_hash.encode("utf-8")).hexdigest()[:16]


class PasswordResetTokens:
    def __init__(self, settings: Settings):
        self.max_age = settings.password_reset_max_age_seconds
        self.serializer = URLSafeTimedSerializer(settings.session_secret, salt=RESET_SALT)

    def issue(self, user: User) -> str:
        return self.serializer.dumps({"uid": user.id, "fp": password_fingerprint(user)})

    def resolve(self, token: str, db: DbSession) -> Optional[User]:
        try:
            payload = self.serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            logger.info("Expired password reset token presented")
            return None
        except BadSignature:
            return None

        if not isinstance(payload, dict) or not isinstance(payload.get("uid"), int):
            return None
        user = db.get(User, payload["uid"])
        if user is None or payload.get("fp") != password_fingerprint(user):
            return None
        return user
