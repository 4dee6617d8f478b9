from fastapi import APIRouter, Depends

from app.core.auth import Principal, require_admin
from app.core.config import API_PREFIX
from app.core.validation import IdParam
from app.schemas.envelope import success
from app.schemas.user_schema import RoleUpdateRequest, UserResponse
from app.services.dependencies import get_user_service
from app.services.user_service import UserService

router = APIRouter(prefix=f"{API_PREFIX}/admin", tags=["admin"])


@router.get("/users")
def list_users(admin: Principal = Depends(require_admin), users: UserService = Depends(get_user_service)):
    results = users.list_users()
    return success([UserResponse.model_validate(user).model_dump(mode="json") for user in results],
                   count=len(results))


@router.put("/users/{user_id}/role")
def update_user_role(user_id: IdParam, request: RoleUpdateRequest,
                     admin: Principal = Depends(require_admin),
                     users: UserService = Depends(get_user_service)):
    user = users.update_role(admin.user, user_id, request.role)
    return success(UserResponse.model_validate(user).model_dump(mode="json"), "User role updated successfully")


@router.delete("/users/{user_id}")
def delete_user(user_id: IdParam, admin: Principal = Depends(require_admin),
                users: UserService = Depends(get_user_service)):
    users.delete_user(admin.user, user_id)
    return success(message="User deleted successfully")
