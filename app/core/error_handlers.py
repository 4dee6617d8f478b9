import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.auth import LoginRequired
from app.core.exceptions import AppError
from app.core.templating import render
from app.schemas.envelope import failure

logger = logging.getLogger(__name__)

TABLE_MISSING_HINT = (
    "Required database tables do not exist. Start the application once so it can "
    "create them, or run the schema setup against this database."
)


def is_api_request(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def is_development(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_development)


def find_database_error(exc: BaseException) -> Optional[SQLAlchemyError]:
    for candidate in (exc, exc.__cause__):
        if isinstance(candidate, SQLAlchemyError):
            return candidate
    return None


def classify_database_error(exc: SQLAlchemyError) -> tuple[int, str, str]:
    """Map a database error to (status, error, client message)."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig if orig is not None else exc).lower()

    if isinstance(exc, IntegrityError):
        if code == "23505" or "unique" in text or "duplicate" in text:
            return status.HTTP_409_CONFLICT, "Duplicate entry", "A record with this information already exists."
        if code == "23503" or "foreign key" in text:
            return status.HTTP_400_BAD_REQUEST, "Referenced record not found", "The referenced record does not exist."
        return status.HTTP_400_BAD_REQUEST, "Constraint violation", "The data violates a database constraint."

    if code == "42P01" or "no such table" in text or ("relation" in text and "does not exist" in text):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "Database table not found", TABLE_MISSING_HINT

    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return (status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection failed",
                "Unable to connect to the database. Please try again later.")

    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error", "A database error occurred."


def error_response(request: Request, status_code: int, error: str, message: Optional[str] = None,
                   exc: Optional[BaseException] = None, **extra):
    debug = exc is not None and status_code >= 500 and is_development(request)

    if is_api_request(request):
        body = failure(error, message, **extra)
        if debug:
            body["detail"] = str(exc)
            body["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=status_code, content=body)

    context = {
        "title": "Error",
        "message": error,
        "error": message,
        "status_code": status_code,
        "details": extra.get("details"),
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) if debug else None,
    }
    return render(request, "error.html", context, status_code=status_code)


def log_failure(request: Request, status_code: int, exc: BaseException) -> None:
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)


async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)


async def app_error_handler(request: Request, exc: AppError):
    db_error = find_database_error(exc)
    if db_error is not None:
        return await database_error_handler(request, db_error)
    log_failure(request, exc.status_code, exc)
    return error_response(request, exc.status_code, exc.message, exc.detail, exc=exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_401_UNAUTHORIZED and not is_api_request(request):
        return RedirectResponse(LoginRequired(request.url.path).location, status_code=status.HTTP_303_SEE_OTHER)

    log_failure(request, exc.status_code, exc)
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        response = error_response(request, exc.status_code, "Page not found",
                                  "The page you are looking for does not exist.")
    else:
        response = error_response(request, exc.status_code, str(exc.detail))

    for name, value in (exc.headers or {}).items():
        response.headers[name] = value
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        message = error.get("msg", "Invalid value")
        details.append(f"{location}: {message}" if location else message)

    logger.info("%s %s validation failed: %s", request.method, request.url.path, details)
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed",
                          "Please check your input and try again.", details=details)


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    status_code, error, message = classify_database_error(exc)
    log_failure(request, status_code, exc)
    return error_response(request, status_code, error, message, exc=exc)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    message = str(exc) if is_development(request) else "Something went wrong!"
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error",
                          message, exc=exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
