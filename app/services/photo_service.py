import base64
import binascii
import logging
import mimetypes
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import raise_bad_request, raise_payload_too_large
from app.models import Event, Photo
from app.schemas.photo_schema import PhotoCreate, PhotoMetadata

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp", "image/heic"}
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class DecodedUpload:
    content: bytes
    mime_type: str
    original_filename: Optional[str]

    @property
    def size(self) -> int:
        return len(self.content)


def parse_data_url(value: str) -> tuple[Optional[str], str]:
    """Split ``data:<mime>;base64,<payload>`` into (mime, payload); plain base64 passes through."""
    if value.startswith("data:") and "," in value:
        header, payload = value.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0] or None
        return mime, payload
    return None, value


def decode_base64_upload(payload: PhotoCreate) -> DecodedUpload:
    mime, data = parse_data_url(payload.file_data.strip())
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise_bad_request("Invalid base64 photo data")
    if not content:
        raise_bad_request("No photo file provided")

    mime_type = payload.mime_type or mime or guess_mime_type(payload.original_filename)
    return DecodedUpload(content=content, mime_type=mime_type, original_filename=payload.original_filename)


def guess_mime_type(filename: Optional[str]) -> str:
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return DEFAULT_MIME_TYPE


def generate_filename(original_filename: Optional[str], mime_type: str) -> str:
    ext = ""
    if original_filename:
        ext = os.path.splitext(original_filename)[1].lower()
    if not ext:
        ext = mimetypes.guess_extension(mime_type) or ""
    return f"photo_{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}"


class PhotoService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    @property
    def upload_dir(self) -> Path:
        return Path(self.settings.upload_path)

    def get_photo(self, photo_id: int) -> Optional[Photo]:
        return self.db.get(Photo, photo_id)

    def list_for_event(self, event_id: int) -> list[Photo]:
        return (
            self.db.query(Photo)
            .filter(Photo.event_id == event_id)
            .order_by(Photo.taken_date.desc(), Photo.created_at.desc(), Photo.id.desc())
            .all()
        )

    def search(self, term: str, limit: int = 50) -> list[Photo]:
        pattern = f"%{term.strip()}%"
        return (
            self.db.query(Photo)
            .filter(or_(Photo.description.ilike(pattern),
                        Photo.caption.ilike(pattern),
                        Photo.original_filename.ilike(pattern)))
            .order_by(Photo.taken_date.desc(), Photo.id.desc())
            .limit(limit)
            .all()
        )

    def count_photos(self) -> int:
        return self.db.query(Photo).count()

    def validate_upload(self, upload: DecodedUpload) -> None:
        if upload.size > self.settings.max_file_size:
            raise_payload_too_large(self.settings.max_file_size)
        if upload.mime_type not in ALLOWED_MIME_TYPES:
            raise HTTPException(
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                detail=f"Unsupported photo type: {upload.mime_type}",
            )

    def add_photo(self, event: Event, upload: DecodedUpload, metadata: PhotoMetadata,
                  taken_date=None) -> Photo:
        self.validate_upload(upload)

        filename = generate_filename(upload.original_filename, upload.mime_type)
        photo = Photo(
            event_id=event.id,
            filename=filename,
            original_filename=upload.original_filename,
            description=metadata.description or None,
            caption=metadata.caption or None,
            mime_type=upload.mime_type,
            file_size=upload.size,
        )
        if taken_date is not None:
            photo.taken_date = taken_date

        if self.settings.photo_storage == "filesystem":
            photo.file_path = self._write_file(event.id, filename, upload.content)
        else:
            encoded = base64.b64encode(upload.content).decode("ascii")
            photo.file_data = f"data:{upload.mime_type};base64,{encoded}"

        try:
            self.db.add(photo)
            self.db.commit()
            self.db.refresh(photo)
        except Exception:
            self.db.rollback()
            if photo.file_path:
                self._remove_file(photo.file_path)
            raise

        logger.info("Stored photo %s for event %s (%d bytes, %s)",
                    photo.id, event.id, upload.size, self.settings.photo_storage)
        return photo

    def update_photo(self, photo: Photo, metadata: PhotoMetadata) -> Photo:
        changes = metadata.model_dump(exclude_unset=True)
        for field in ("description", "caption"):
            if field in changes:
                setattr(photo, field, changes[field] or None)
        self.db.commit()
        self.db.refresh(photo)
        return photo

    def delete_photo(self, photo: Photo) -> None:
        file_path = photo.file_path
        self.db.delete(photo)
        self.db.commit()
        if file_path:
            self._remove_file(file_path)
        logger.info("Deleted photo %s", photo.id)

    def read_payload(self, photo: Photo) -> tuple[bytes, str]:
        mime_type = photo.mime_type or DEFAULT_MIME_TYPE
        if photo.file_data:
            mime, data = parse_data_url(photo.file_data)
            return base64.b64decode(data), mime or mime_type
        if photo.file_path:
            path = self.upload_dir / photo.file_path
            if path.is_file():
                return path.read_bytes(), mime_type
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo file not found")

    def stored_paths(self, event_id: int) -> list[str]:
        rows = self.db.query(Photo.file_path).filter(Photo.event_id == event_id,
                                                     Photo.file_path.isnot(None)).all()
        return [file_path for (file_path,) in rows]

    def remove_files(self, paths: list[str]) -> None:
        for file_path in paths:
            self._remove_file(file_path)

    def _write_file(self, event_id: int, filename: str, content: bytes) -> str:
        relative = Path(f"event_{event_id}") / filename
        target = self.upload_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return relative.as_posix()

    def _remove_file(self, file_path: str) -> None:
        try:
            (self.upload_dir / file_path).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove photo file %s", file_path, exc_info=True)
