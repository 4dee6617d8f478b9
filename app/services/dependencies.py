from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_app_settings
from app.core.database import get_db
from app.services.menu_service import MenuService
from app.services.photo_service import PhotoService
from app.services.user_service import UserService


def get_menu_service(db: Session = Depends(get_db),
                     settings: Settings = Depends(get_app_settings)) -> MenuService:
    return MenuService(db, image_base_url=settings.image_base_url)


def get_photo_service(db: Session = Depends(get_db),
                      settings: Settings = Depends(get_app_settings)) -> PhotoService:
    return PhotoService(db, settings)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)
