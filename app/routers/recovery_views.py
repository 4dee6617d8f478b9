import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from sqlalchemy.orm import Session as DbSession

from app.core.config import Settings, get_app_settings
from app.core.database import get_db
from app.core.reset_tokens import PasswordResetTokens
from app.core.templating import redirect, render
from app.services.dependencies import get_user_service
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth-views"], include_in_schema=False)

RESET_REQUESTED = ("If an account with that username exists, we have sent password reset "
                   "instructions to the registered email address.")
USERNAME_REQUESTED = "If an account with that email exists, we have sent your username to that email address."
TOO_MANY_REQUESTS = "Too many requests. Please try again later."
INVALID_LINK = "Reset link is invalid or has expired"


def recovery_allowed(request: Request, identifier: str) -> bool:
    allowed, _ = request.app.state.recovery_limiter.hit(identifier.strip().lower())
    return allowed


@router.get("/forgot-password")
def show_forgot_password(request: Request, error: Optional[str] = None, success: Optional[str] = None):
    return render(request, "auth/forgot_password.html",
                  {"title": "Forgot Password", "error": error, "success": success})


@router.post("/forgot-password")
def forgot_password(request: Request, username: str = Form(""),
                    users: UserService = Depends(get_user_service),
                    settings: Settings = Depends(get_app_settings)):
    if not username.strip():
        return redirect("/auth/forgot-password", error="Username is required")
    if not recovery_allowed(request, username):
        return redirect("/auth/forgot-password", error=TOO_MANY_REQUESTS)

    # Same answer whether or not the account exists
    user = users.find_for_recovery(username)
    if user is not None:
        token = PasswordResetTokens(settings).issue(user)
        reset_url = f"{str(request.base_url).rstrip('/')}/auth/reset-password/{token}"
        logger.info("No mail backend configured; password reset link for %s <%s>: %s",
                    user.username, user.email, reset_url)
    else:
        logger.info("Password reset requested for unknown account %r", username.strip())

    return redirect("/auth/forgot-password", success=RESET_REQUESTED)


@router.get("/reset-password/{token}")
def show_reset_password(token: str, request: Request, error: Optional[str] = None,
                        db: DbSession = Depends(get_db), settings: Settings = Depends(get_app_settings)):
    user = PasswordResetTokens(settings).resolve(token, db)
    if user is None:
        return render(request, "auth/reset_password.html",
                      {"title": "Invalid Reset Link", "error": INVALID_LINK, "valid": False},
                      status_code=status.HTTP_400_BAD_REQUEST)
    return render(request, "auth/reset_password.html", {
        "title": "Reset Password",
        "token": token,
        "username": user.username,
        "valid": True,
        "error": error,
    })


@router.post("/reset-password/{token}")
def reset_password(token: str, request: Request, password: str = Form(""), confirm_password: str = Form(""),
                   db: DbSession = Depends(get_db), users: UserService = Depends(get_user_service),
                   settings: Settings = Depends(get_app_settings)):
    user = PasswordResetTokens(settings).resolve(token, db)
    if user is None:
        return redirect("/auth/login", error=INVALID_LINK)

    try:
        users.reset_password(user, password, confirm_password)
    except HTTPException as e:
        return render(request, "auth/reset_password.html", {
            "title": "Reset Password",
            "token": token,
            "username": user.username,
            "valid": True,
            "error": e.detail,
        }, status_code=e.status_code)

    return redirect("/auth/login", success="Password reset successfully. You can now login with your new password.")


@router.get("/forgot-username")
def show_forgot_username(request: Request, error: Optional[str] = None, success: Optional[str] = None):
    return render(request, "auth/forgot_username.html",
                  {"title": "Forgot Username", "error": error, "success": success})


@router.post("/forgot-username")
def forgot_username(request: Request, email: str = Form(""), users: UserService = Depends(get_user_service)):
    if not email.strip():
        return redirect("/auth/forgot-username", error="Email address is required")
    if not recovery_allowed(request, email):
        return redirect("/auth/forgot-username", error=TOO_MANY_REQUESTS)

    user = users.get_by_email(email)
    if user is not None:
        logger.info("No mail backend configured; username reminder for %s: %s", user.email, user.username)
    else:
        logger.info("Username reminder requested for unknown email %r", email.strip())

    return redirect("/auth/forgot-username", success=USERNAME_REQUESTED)
