from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from app.core.auth import Principal, optional_principal
from app.core.templating import render
from app.core.validation import IdParam, MenuQueryParams, YearParam, menu_query_params
from app.services.dependencies import get_menu_service, get_photo_service
from app.services.menu_service import MenuService
from app.services.photo_service import PhotoService

router = APIRouter(tags=["views"], include_in_schema=False)

SITE_TITLE = "Thanksgiving Menus Through the Years"


@router.get("/")
def index(request: Request, params: MenuQueryParams = Depends(menu_query_params),
          menus: MenuService = Depends(get_menu_service),
          principal: Optional[Principal] = Depends(optional_principal)):
    events = menus.get_all_menus(**params.as_dict())
    return render(request, "index.html", {"title": SITE_TITLE, "events": events, "query": params.as_dict()})


@router.get("/menu/{menu_id}")
def menu_detail(menu_id: IdParam, request: Request, menus: MenuService = Depends(get_menu_service),
                photos: PhotoService = Depends(get_photo_service),
                principal: Optional[Principal] = Depends(optional_principal)):
    menu = menus.get_menu_by_id(menu_id)
    if menu is None:
        return render(request, "error.html", {
            "title": "Menu not found",
            "message": "Menu not found",
            "error": "The requested menu could not be found.",
            "status_code": status.HTTP_404_NOT_FOUND,
        }, status_code=status.HTTP_404_NOT_FOUND)
    return render(request, "detail.html", {
        "title": menu.menu_title,
        "event": menu,
        "photos": photos.list_for_event(menu_id),
    })


@router.get("/year/{year}")
def menus_for_year(year: YearParam, request: Request, menus: MenuService = Depends(get_menu_service),
                   principal: Optional[Principal] = Depends(optional_principal)):
    events = menus.get_menus_by_year(year)
    return render(request, "index.html", {"title": f"Thanksgiving Menus for {year}", "events": events,
                                          "year": year, "query": {}})
