from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.core.auth import Principal, require_auth
from app.core.config import API_PREFIX
from app.core.exceptions import raise_bad_request, raise_event_not_found, raise_photo_not_found
from app.core.validation import IdParam
from app.schemas.envelope import success
from app.schemas.photo_schema import PhotoCreate, PhotoMetadata, PhotoResponse, PhotoUpdate
from app.services.dependencies import get_menu_service, get_photo_service
from app.services.menu_service import MenuService
from app.services.photo_service import DecodedUpload, PhotoService, decode_base64_upload, guess_mime_type

router = APIRouter(prefix=API_PREFIX, tags=["photos"])

FILE_FIELDS = ("photo", "file")


def serialize(photo) -> dict:
    return PhotoResponse.model_validate(photo).to_dict()


async def read_upload(request: Request) -> tuple[Optional[DecodedUpload], PhotoMetadata, Optional[object]]:
    """Parse a multipart form or a JSON body into (upload, metadata, taken_date)."""
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("multipart/form-data"):
            form = await request.form()
            metadata = PhotoMetadata(description=form.get("description") or None,
                                     caption=form.get("caption") or None)
            upload = next((form[name] for name in FILE_FIELDS if isinstance(form.get(name), UploadFile)), None)
            if upload is None:
                return None, metadata, None
            content = await upload.read()
            mime_type = upload.content_type or guess_mime_type(upload.filename)
            if mime_type == "application/octet-stream":
                mime_type = guess_mime_type(upload.filename)
            return DecodedUpload(content, mime_type, upload.filename), metadata, None

        if content_type.startswith("application/json"):
            payload = PhotoCreate.model_validate(await request.json())
            metadata = PhotoMetadata(description=payload.description, caption=payload.caption)
            return decode_base64_upload(payload), metadata, payload.taken_date
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    except ValueError:
        raise_bad_request("Malformed request body")

    return None, PhotoMetadata(), None


@router.get("/events/{event_id}/photos")
def list_event_photos(event_id: IdParam, photos: PhotoService = Depends(get_photo_service)):
    results = photos.list_for_event(event_id)
    return success([serialize(photo) for photo in results], count=len(results))


@router.post("/events/{event_id}/photos", status_code=status.HTTP_201_CREATED)
async def upload_event_photo(event_id: IdParam, request: Request,
                             principal: Principal = Depends(require_auth),
                             menus: MenuService = Depends(get_menu_service),
                             photos: PhotoService = Depends(get_photo_service)):
    event = await run_in_threadpool(menus.get_event, event_id)
    if event is None:
        raise_event_not_found()

    upload, metadata, taken_date = await read_upload(request)
    if upload is None or not upload.content:
        raise_bad_request("No photo file provided")

    photo = await run_in_threadpool(photos.add_photo, event, upload, metadata, taken_date)
    return success(serialize(photo), "Photo uploaded successfully")


@router.get("/photos/search")
def search_photos(q: str = Query(..., min_length=1, max_length=100),
                  photos: PhotoService = Depends(get_photo_service)):
    results = photos.search(q)
    return success([serialize(photo) for photo in results], count=len(results), query=q)


@router.get("/photos/{photo_id}")
def get_photo(photo_id: IdParam, photos: PhotoService = Depends(get_photo_service)):
    photo = photos.get_photo(photo_id)
    if photo is None:
        raise_photo_not_found()
    return success(serialize(photo))


@router.get("/photos/{photo_id}/file")
def get_photo_file(photo_id: IdParam, photos: PhotoService = Depends(get_photo_service)):
    photo = photos.get_photo(photo_id)
    if photo is None:
        raise_photo_not_found()
    content, mime_type = photos.read_payload(photo)
    return Response(content=content, media_type=mime_type,
                    headers={"Content-Disposition": f'inline; filename="{photo.filename}"'})


@router.put("/photos/{photo_id}")
def update_photo(photo_id: IdParam, payload: PhotoUpdate,
                 principal: Principal = Depends(require_auth),
                 photos: PhotoService = Depends(get_photo_service)):
    photo = photos.get_photo(photo_id)
    if photo is None:
        raise_photo_not_found()
    photo = photos.update_photo(photo, payload)
    return success(serialize(photo), "Photo updated successfully")


@router.delete("/photos/{photo_id}")
def delete_photo(photo_id: IdParam, principal: Principal = Depends(require_auth),
                 photos: PhotoService = Depends(get_photo_service)):
    photo = photos.get_photo(photo_id)
    if photo is None:
        raise_photo_not_found()
    photos.delete_photo(photo)
    return success(message="Photo deleted successfully")
