from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import API_PREFIX


class PhotoMetadata(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    caption: Optional[str] = Field(None, max_length=200)

    class Config:
        str_strip_whitespace = True


class PhotoCreate(PhotoMetadata):
    """JSON upload: ``file_data`` is plain base64 or a ``data:<mime>;base64,`` URL."""

    file_data: str = Field(min_length=1)
    original_filename: Optional[str] = Field(None, max_length=255)
    mime_type: Optional[str] = Field(None, max_length=100)
    taken_date: Optional[datetime] = None

    @field_validator("taken_date", mode="before")
    @classmethod
    def taken_date_is_iso(cls, value):
        if value is None or isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise ValueError("taken_date must be an ISO-8601 string")
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("taken_date must be an ISO-8601 string")


class PhotoUpdate(PhotoMetadata):
    pass


class PhotoResponse(BaseModel):
    id: int
    event_id: int
    filename: str
    original_filename: Optional[str] = None
    description: Optional[str] = None
    caption: Optional[str] = None
    taken_date: datetime
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @property
    def file_url(self) -> str:
        return f"{API_PREFIX}/photos/{self.id}/file"

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["file_url"] = self.file_url
        return data
