from fastapi import APIRouter, Depends

from app.core.auth import Principal, require_auth
from app.core.config import API_PREFIX
from app.schemas.change_password_schema import ChangePasswordRequest
from app.schemas.envelope import success
from app.schemas.user_schema import ProfileUpdateRequest, UserResponse
from app.services.dependencies import get_user_service
from app.services.user_service import UserService

router = APIRouter(prefix=f"{API_PREFIX}/profile", tags=["profile"])


@router.get("")
def get_profile(principal: Principal = Depends(require_auth)):
    return success(UserResponse.model_validate(principal.user).model_dump(mode="json"))


@router.put("")
def update_profile(request: ProfileUpdateRequest, principal: Principal = Depends(require_auth),
                   users: UserService = Depends(get_user_service)):
    user = users.update_profile(principal.user, request)
    return success(UserResponse.model_validate(user).model_dump(mode="json"), "Profile updated successfully")


@router.put("/password")
def change_password(request: ChangePasswordRequest, principal: Principal = Depends(require_auth),
                    users: UserService = Depends(get_user_service)):
    users.change_password(principal.user, request)
    return success(message="Password changed successfully")
