from fastapi import APIRouter, Depends, status

from app.core.config import API_PREFIX, Settings, get_app_settings
from app.core.jwt.security import create_access_token
from app.models import User
from app.schemas.envelope import success
from app.schemas.login_request import LoginRequest, TokenResponse
from app.schemas.user_schema import RegisterRequest, UserResponse
from app.services.dependencies import get_user_service
from app.services.user_service import UserService

router = APIRouter(prefix=f"{API_PREFIX}/auth", tags=["auth"])


def issue_token(user: User, settings: Settings) -> dict:
    token = create_access_token(data={"sub": str(user.id), "username": user.username}, role=user.role,
                                settings=settings)
    return {
        **TokenResponse(access_token=token).model_dump(),
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
    }


@router.post("/login")
def login(login_request: LoginRequest, users: UserService = Depends(get_user_service),
          settings: Settings = Depends(get_app_settings)):
    user = users.authenticate(login_request.username, login_request.password)
    return success(issue_token(user, settings), "Login successful")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, users: UserService = Depends(get_user_service),
             settings: Settings = Depends(get_app_settings)):
    user = users.register(request)
    return success(issue_token(user, settings), "Registration successful")
