import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def parse_iso_date(value):
    # JSON numbers would otherwise be read as Unix timestamps
    if value is None or isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        raise ValueError("Date must be an ISO-8601 string (YYYY-MM-DD)")
    try:
        return datetime.date.fromisoformat(value.strip())
    except ValueError:
        raise ValueError("Date must be an ISO-8601 string (YYYY-MM-DD)")


class EventCreate(BaseModel):
    event_name: str = Field(min_length=1, max_length=255)
    event_type: str = Field(min_length=1, max_length=255)
    event_location: str = Field(min_length=1, max_length=255)
    event_date: datetime.date
    event_description: str = Field(min_length=1)
    menu_title: str = Field(min_length=1, max_length=255)
    menu_image_filename: str = Field(min_length=1, max_length=255)

    @field_validator("event_date", mode="before")
    @classmethod
    def event_date_is_iso(cls, value):
        return parse_iso_date(value)

    class Config:
        str_strip_whitespace = True
        extra = "ignore"


class EventUpdate(BaseModel):
    event_name: Optional[str] = Field(None, min_length=1, max_length=255)
    event_type: Optional[str] = Field(None, min_length=1, max_length=255)
    event_location: Optional[str] = Field(None, min_length=1, max_length=255)
    event_date: Optional[datetime.date] = None
    event_description: Optional[str] = Field(None, min_length=1)
    menu_title: Optional[str] = Field(None, min_length=1, max_length=255)
    menu_image_filename: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("event_date", mode="before")
    @classmethod
    def event_date_is_iso(cls, value):
        return parse_iso_date(value)

    class Config:
        str_strip_whitespace = True
        extra = "ignore"


class MenuResponse(BaseModel):
    """An Event as shown to clients, with the display aliases the views use."""

    id: int
    event_name: str
    event_type: str
    event_location: str
    event_date: datetime.date
    event_description: str
    menu_title: str
    menu_image_filename: str
    menu_image_url: str
    title: str
    description: str
    date: datetime.date
    location: str
    year: int


class MenuStats(BaseModel):
    totalMenus: int
    years: list[int]
    mostRecentYear: int
    oldestYear: int
