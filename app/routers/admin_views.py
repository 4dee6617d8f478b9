from fastapi import APIRouter, Depends, Request

from app.core.auth import Principal, require_admin_view
from app.core.templating import render
from app.services.dependencies import get_menu_service, get_photo_service, get_user_service
from app.services.menu_service import MenuService
from app.services.photo_service import PhotoService
from app.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["admin-views"], include_in_schema=False)

RECENT_EVENTS = 5


@router.get("")
def dashboard(request: Request, admin: Principal = Depends(require_admin_view),
              users: UserService = Depends(get_user_service),
              menus: MenuService = Depends(get_menu_service),
              photos: PhotoService = Depends(get_photo_service)):
    stats = {
        "totalUsers": users.count_users(),
        "totalEvents": menus.count_menus(),
        "totalPhotos": photos.count_photos(),
    }
    return render(request, "admin/dashboard.html", {
        "title": "Admin Dashboard",
        "stats": stats,
        "recent_events": menus.get_featured_menus(RECENT_EVENTS),
    })


@router.get("/users")
def user_management(request: Request, admin: Principal = Depends(require_admin_view),
                    users: UserService = Depends(get_user_service)):
    return render(request, "admin/users.html", {"title": "User Management",
                                                "users": users.list_users(newest_first=True)})
