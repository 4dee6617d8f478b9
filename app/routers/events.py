from fastapi import APIRouter, Depends, status

from app.core.auth import Principal, require_admin
from app.core.config import API_PREFIX
from app.core.exceptions import raise_menu_not_found
from app.core.validation import IdParam, MenuQueryParams, YearParam, menu_query_params
from app.schemas.envelope import success
from app.schemas.event_schema import EventCreate, EventUpdate
from app.services.dependencies import get_menu_service, get_photo_service
from app.services.menu_service import MenuService
from app.services.photo_service import PhotoService

router = APIRouter(prefix=API_PREFIX, tags=["events"])
legacy_router = APIRouter(prefix="/api", tags=["events"], include_in_schema=False)


def dump(menus) -> list[dict]:
    return [menu.model_dump(mode="json") for menu in menus]


@router.get("/events")
def list_events(params: MenuQueryParams = Depends(menu_query_params),
                menus: MenuService = Depends(get_menu_service)):
    results = menus.get_all_menus(**params.as_dict())
    return success(dump(results), count=len(results), query=params.as_dict())


@legacy_router.get("/events")
def list_events_legacy(params: MenuQueryParams = Depends(menu_query_params),
                       menus: MenuService = Depends(get_menu_service)):
    return list_events(params, menus)


@router.post("/events", status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, menus: MenuService = Depends(get_menu_service),
                 admin: Principal = Depends(require_admin)):
    menu = menus.create_menu(payload)
    return success(menu.model_dump(mode="json"), "Menu created successfully")


@router.get("/events/year/{year}")
def list_events_by_year(year: YearParam, menus: MenuService = Depends(get_menu_service)):
    results = menus.get_menus_by_year(year)
    return success(dump(results), count=len(results), year=year)


@router.get("/events/{menu_id}")
def get_event(menu_id: IdParam, menus: MenuService = Depends(get_menu_service)):
    menu = menus.get_menu_by_id(menu_id)
    if menu is None:
        raise_menu_not_found()
    return success(menu.model_dump(mode="json"))


@router.put("/events/{menu_id}")
def update_event(menu_id: IdParam, payload: EventUpdate, menus: MenuService = Depends(get_menu_service),
                 admin: Principal = Depends(require_admin)):
    menu = menus.update_menu(menu_id, payload)
    if menu is None:
        raise_menu_not_found()
    return success(menu.model_dump(mode="json"), "Menu updated successfully")


@router.delete("/events/{menu_id}")
def delete_event(menu_id: IdParam, menus: MenuService = Depends(get_menu_service),
                 photos: PhotoService = Depends(get_photo_service),
                 admin: Principal = Depends(require_admin)):
    stored_files = photos.stored_paths(menu_id)
    if not menus.delete_menu(menu_id):
        raise_menu_not_found()
    photos.remove_files(stored_files)
    return success(message="Menu deleted successfully")


@router.get("/stats")
def get_stats(menus: MenuService = Depends(get_menu_service)):
    return success(menus.get_menu_stats().model_dump())
