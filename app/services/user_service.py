import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.exceptions import (
    raise_bad_request,
    raise_invalid_credentials,
    raise_invalid_current_password,
    raise_user_not_found,
)
from app.core.jwt.security import MIN_PASSWORD_LENGTH, hash_password, is_strong_password
from app.models import User
from app.models.user import ROLE_ADMIN, ROLE_USER, normalize_username
from app.schemas.change_password_schema import ChangePasswordRequest
from app.schemas.user_schema import ProfileUpdateRequest, RegisterRequest

logger = logging.getLogger(__name__)


def raise_duplicate(detail: str):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == normalize_username(username)).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def find_for_recovery(self, identifier: str) -> Optional[User]:
        """Look an account up by username or email."""
        return self.get_by_username(identifier) or self.get_by_email(identifier)

    def list_users(self, newest_first: bool = False) -> list[User]:
        order = User.created_at.desc() if newest_first else User.created_at.asc()
        return self.db.query(User).order_by(order, User.id).all()

    def count_users(self) -> int:
        return self.db.query(func.count(User.id)).scalar()

    def create_user(self, username: str, email: str, password: str, role: str = ROLE_USER,
                    first_name: Optional[str] = None, last_name: Optional[str] = None) -> User:
        username = normalize_username(username)
        email = email.strip().lower()

        existing = self.db.query(User).filter(or_(User.username == username, User.email == email)).first()
        if existing:
            raise_duplicate("Username or email already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
            first_name=first_name or None,
            last_name=last_name or None,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("New user registered: %s", user.username)
        return user

    def register(self, request: RegisterRequest) -> User:
        return self.create_user(
            username=request.username,
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
        )

    def authenticate(self, username: str, password: str) -> User:
        user = self.get_by_username(username)
        if not user or not user.verify_password(password):
            logger.info("Login failed for username: %s", username)
            raise_invalid_credentials()
        return user

    def update_profile(self, user: User, request: ProfileUpdateRequest) -> User:
        if not user.verify_password(request.current_password):
            raise_invalid_current_password()

        if request.email is not None:
            email = request.email.strip().lower()
            if email != user.email:
                taken = self.db.query(User).filter(User.email == email, User.id != user.id).first()
                if taken:
                    raise_duplicate("Email already exists")
                user.email = email
        if request.first_name is not None:
            user.first_name = request.first_name.strip() or None
        if request.last_name is not None:
            user.last_name = request.last_name.strip() or None

        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s updated their profile", user.username)
        return user

    def change_password(self, user: User, request: ChangePasswordRequest) -> None:
        if not request.current_password:
            raise_bad_request("Current password is required")
        if not request.new_password:
            raise_bad_request("New password is required")
        if not request.confirm_password:
            raise_bad_request("Password confirmation is required")
        if request.new_password != request.confirm_password:
            raise_bad_request("Password confirmation does not match")
        if not is_strong_password(request.new_password):
            raise_bad_request(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        if not user.verify_password(request.current_password):
            raise_invalid_current_password()

        if request.new_password == request.current_password:
            raise_bad_request("New password must differ from the current password")

        user.password_hash = hash_password(request.new_password)
        self.db.commit()
        logger.info("User %s changed their password", user.username)

    def reset_password(self, user: User, new_password: str, confirm_password: str) -> None:
        if not new_password or not confirm_password:
            raise_bad_request("Password and confirmation are required")
        if new_password != confirm_password:
            raise_bad_request("Passwords do not match")
        if not is_strong_password(new_password):
            raise_bad_request(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        user.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info("Password reset completed for user %s", user.username)

    def update_role(self, actor: User, user_id: int, role: str) -> User:
        user = self.get_by_id(user_id)
        if not user:
            raise_user_not_found()
        if user.id == actor.id:
            raise_bad_request("You cannot change your own role")

        user.role = role
        self.db.commit()
        self.db.refresh(user)
        logger.info("Admin %s set role of %s to %s", actor.username, user.username, role)
        return user

    def delete_user(self, actor: User, user_id: int) -> None:
        user = self.get_by_id(user_id)
        if not user:
            raise_user_not_found()
        if user.id == actor.id:
            raise_bad_request("Cannot delete your own account")

        self.db.delete(user)
        self.db.commit()
        logger.info("Admin %s deleted user %s", actor.username, user.username)

    def ensure_admin(self, username: str, email: str, password: str) -> User:
        """Create the bootstrap admin, or promote the account if it already exists."""
        user = self.get_by_username(username)
        if user is None:
            return self.create_user(username, email, password, role=ROLE_ADMIN)
        if not user.is_admin:
            user.role = ROLE_ADMIN
            self.db.commit()
        return user
