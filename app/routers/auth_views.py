import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session as DbSession

from app.core.auth import Principal, optional_principal, require_auth_view
from app.core.config import Settings, get_app_settings
from app.core.database import get_db
from app.core.sessions import SessionStore, session_payload
from app.core.templating import redirect, render
from app.core.validation import validation_messages
from app.schemas.user_schema import ProfileUpdateRequest, RegisterRequest
from app.services.dependencies import get_user_service
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth-views"], include_in_schema=False)


def safe_return_url(value: Optional[str]) -> str:
    # Only same-site paths; "//host" would be protocol-relative
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return "/"


@router.get("/login")
def show_login(request: Request, error: Optional[str] = None, success: Optional[str] = None,
               principal: Optional[Principal] = Depends(optional_principal)):
    return render(request, "auth/login.html", {"title": "Login", "error": error, "success": success,
                                               "return_url": request.query_params.get("return", "/")})


@router.post("/login")
def login(request: Request, username: str = Form(""), password: str = Form(""),
          users: UserService = Depends(get_user_service), db: DbSession = Depends(get_db),
          settings: Settings = Depends(get_app_settings)):
    return_url = safe_return_url(request.query_params.get("return"))
    username = username.strip()
    if len(username) < 3 or not password:
        return render(request, "auth/login.html", {
            "title": "Login",
            "error": "Please check your input and try again.",
            "return_url": return_url,
        }, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        user = users.authenticate(username, password)
    except HTTPException:
        return render(request, "auth/login.html", {
            "title": "Login",
            "error": "Invalid username or password",
            "return_url": return_url,
        }, status_code=status.HTTP_401_UNAUTHORIZED)

    store = SessionStore(db, settings)
    record = store.create(user)
    logger.info("User %s logged in", user.username)

    response = RedirectResponse(return_url, status_code=status.HTTP_303_SEE_OTHER)
    store.set_cookie(response, record)
    return response


@router.get("/register")
def show_register(request: Request, principal: Optional[Principal] = Depends(optional_principal)):
    return render(request, "auth/register.html", {"title": "Register"})


@router.post("/register")
def register(request: Request, username: str = Form(""), email: str = Form(""),
             password: str = Form(""), confirm_password: str = Form(""),
             first_name: str = Form(""), last_name: str = Form(""),
             users: UserService = Depends(get_user_service)):
    try:
        registration = RegisterRequest(
            username=username, email=email, password=password, confirm_password=confirm_password,
            first_name=first_name or None, last_name=last_name or None,
        )
    except ValidationError as e:
        return render(request, "auth/register.html", {
            "title": "Register",
            "error": "Please check your input and try again.",
            "errors": validation_messages(e),
        }, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        users.register(registration)
    except HTTPException as e:
        return render(request, "auth/register.html", {"title": "Register", "error": e.detail},
                      status_code=e.status_code)

    return redirect("/auth/login", success="Registration successful. Please log in.")


@router.post("/logout")
def logout(request: Request, db: DbSession = Depends(get_db), settings: Settings = Depends(get_app_settings),
           principal: Optional[Principal] = Depends(optional_principal)):
    store = SessionStore(db, settings)
    username = session_payload(principal.session).get("username") if principal and principal.session else None
    store.destroy(request.cookies.get(settings.session_cookie_name))
    logger.info("User %s logged out", username or "unknown")

    response = redirect("/auth/login", success="You have been logged out successfully.")
    store.clear_cookie(response)
    return response


@router.get("/profile")
def show_profile(request: Request, principal: Principal = Depends(require_auth_view)):
    return render(request, "auth/profile.html", {"title": "Profile", "user": principal.user})


@router.post("/profile")
def update_profile(request: Request, email: str = Form(""), first_name: str = Form(""),
                   last_name: str = Form(""), current_password: str = Form(""),
                   principal: Principal = Depends(require_auth_view),
                   users: UserService = Depends(get_user_service)):
    context = {"title": "Profile", "user": principal.user}
    try:
        update = ProfileUpdateRequest(email=email or None, first_name=first_name, last_name=last_name,
                                      current_password=current_password)
        user = users.update_profile(principal.user, update)
    except ValidationError as e:
        return render(request, "auth/profile.html", {**context, "error": "Please check your input and try again.",
                                                     "errors": validation_messages(e)},
                      status_code=status.HTTP_400_BAD_REQUEST)
    except HTTPException as e:
        return render(request, "auth/profile.html", {**context, "error": e.detail}, status_code=e.status_code)

    return render(request, "auth/profile.html", {"title": "Profile", "user": user,
                                                 "success": "Profile updated successfully"})
