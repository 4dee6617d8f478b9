import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.core.config import APP_VERSION
from app.core.database import check_connection

router = APIRouter(prefix="/health", tags=["health"])


def uptime(request: Request) -> float:
    return round(time.monotonic() - request.app.state.started_at, 3)


@router.get("")
def health(request: Request):
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": uptime(request),
        "version": APP_VERSION,
    }


@router.get("/db")
def database_health(request: Request):
    connected = check_connection(request.app.state.engine)
    body = {
        "status": "OK" if connected else "ERROR",
        "database": "connected" if connected else "unreachable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": uptime(request),
    }
    return JSONResponse(status_code=status.HTTP_200_OK if connected else status.HTTP_503_SERVICE_UNAVAILABLE,
                        content=body)
