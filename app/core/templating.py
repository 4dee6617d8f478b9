from pathlib import Path
from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from app.core.config import APP_VERSION

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["app_version"] = APP_VERSION


def format_date(value) -> str:
    if not value:
        return ""
    return f"{value:%B} {value.day}, {value.year}"


templates.env.filters["format_date"] = format_date


def render(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    principal = getattr(request.state, "principal", None)
    ctx = {
        "current_user": principal.user if principal else None,
        "is_authenticated": principal is not None,
        "is_admin": bool(principal and principal.is_admin),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)


def redirect(path: str, **params) -> RedirectResponse:
    """303 redirect, with any flash-style messages carried in the query string."""
    query = urlencode({key: value for key, value in params.items() if value})
    return RedirectResponse(f"{path}?{query}" if query else path, status_code=status.HTTP_303_SEE_OTHER)
