from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Enum

from app.core.database import Base
from app.core.jwt.security import verify_password

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


def utcnow():
    return datetime.now(timezone.utc)


def normalize_username(username: str) -> str:
    return username.strip().lower()


class User(Base):
    __tablename__ = "Users"

    id = Column("user_id", Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default=ROLE_USER)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
