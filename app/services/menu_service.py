import logging
from datetime import date
from typing import Optional

from sqlalchemy import asc, desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ServiceError
from app.models import Event
from app.schemas.event_schema import EventCreate, EventUpdate, MenuResponse, MenuStats

logger = logging.getLogger(__name__)

DEFAULT_SORT = "desc"
UPDATABLE_FIELDS = (
    "event_name",
    "event_type",
    "event_location",
    "event_date",
    "event_description",
    "menu_title",
    "menu_image_filename",
)


def menu_image_url(filename: str, base_url: str = "/images") -> str:
    if filename.startswith(("http://", "https://", "/")):
        return filename
    return f"{base_url.rstrip('/')}/{filename}"


def year_window(year: int) -> tuple[date, date]:
    """Half-open ``[Jan 1 year, Jan 1 year+1)`` range."""
    return date(year, 1, 1), date(year + 1, 1, 1)


class MenuService:
    """Queries and writes Events, returning them as menus."""

    def __init__(self, db: Session, image_base_url: str = "/images"):
        self.db = db
        self.image_base_url = image_base_url

    def to_menu(self, event: Event) -> MenuResponse:
        return MenuResponse(
            id=event.id,
            event_name=event.event_name,
            event_type=event.event_type,
            event_location=event.event_location,
            event_date=event.event_date,
            event_description=event.event_description,
            menu_title=event.menu_title,
            menu_image_filename=event.menu_image_filename,
            menu_image_url=menu_image_url(event.menu_image_filename, self.image_base_url),
            title=event.event_name,
            description=event.event_description,
            date=event.event_date,
            location=event.event_location,
            year=event.year,
        )

    def to_menus(self, events) -> list[MenuResponse]:
        return [self.to_menu(event) for event in events]

    def _ordered_query(self, sort: str):
        direction = asc if sort == "asc" else desc
        # Tie-break on id so asc and desc are exact reverses of each other
        return self.db.query(Event).order_by(direction(Event.event_date), direction(Event.id))

    def get_all_menus(self, sort: str = DEFAULT_SORT, limit: Optional[int] = None,
                      year: Optional[int] = None, offset: int = 0) -> list[MenuResponse]:
        try:
            query = self._ordered_query(sort)
            if year is not None:
                start, end = year_window(year)
                query = query.filter(Event.event_date >= start, Event.event_date < end)
            if offset:
                query = query.offset(offset)
            if limit:
                query = query.limit(limit)
            return self.to_menus(query.all())
        except SQLAlchemyError as e:
            logger.exception("Error fetching all menus")
            raise ServiceError("Failed to fetch menus") from e

    def get_menu_by_id(self, menu_id: int) -> Optional[MenuResponse]:
        event = self.get_event(menu_id)
        return self.to_menu(event) if event else None

    def get_event(self, event_id: int) -> Optional[Event]:
        try:
            return self.db.get(Event, event_id)
        except SQLAlchemyError as e:
            logger.exception("Error fetching menu %s", event_id)
            raise ServiceError("Failed to fetch menu") from e

    def get_menus_by_year(self, year: int) -> list[MenuResponse]:
        return self.get_all_menus(sort="desc", year=year)

    def get_featured_menus(self, limit: int = 6) -> list[MenuResponse]:
        return self.get_all_menus(sort="desc", limit=limit)

    def count_menus(self) -> int:
        try:
            return self.db.query(func.count(Event.id)).scalar()
        except SQLAlchemyError as e:
            logger.exception("Error counting menus")
            raise ServiceError("Failed to count menus") from e

    def create_menu(self, payload: EventCreate) -> MenuResponse:
        event = Event(**payload.model_dump())
        try:
            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Error creating menu")
            raise ServiceError("Failed to create menu") from e
        logger.info("Created menu %s (%s)", event.id, event.menu_title)
        return self.to_menu(event)

    def update_menu(self, menu_id: int, payload: EventUpdate) -> Optional[MenuResponse]:
        event = self.get_event(menu_id)
        if event is None:
            return None

        changes = payload.model_dump(exclude_unset=True)
        for field in UPDATABLE_FIELDS:
            if changes.get(field) is not None:
                setattr(event, field, changes[field])

        try:
            self.db.commit()
            self.db.refresh(event)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Error updating menu %s", menu_id)
            raise ServiceError("Failed to update menu") from e
        return self.to_menu(event)

    def delete_menu(self, menu_id: int) -> bool:
        event = self.get_event(menu_id)
        if event is None:
            return False
        try:
            self.db.delete(event)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Error deleting menu %s", menu_id)
            raise ServiceError("Failed to delete menu") from e
        logger.info("Deleted menu %s", menu_id)
        return True

    def get_menu_stats(self) -> MenuStats:
        try:
            total = self.count_menus()
            dates = self.db.query(Event.event_date).order_by(Event.event_date.asc()).all()
        except SQLAlchemyError as e:
            logger.exception("Error fetching menu stats")
            raise ServiceError("Failed to fetch menu statistics") from e

        years = sorted({event_date.year for (event_date,) in dates}, reverse=True)
        return MenuStats(
            totalMenus=total,
            years=years,
            mostRecentYear=years[0] if years else 0,
            oldestYear=years[-1] if years else 0,
        )
