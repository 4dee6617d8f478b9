from typing import Any


def success(data: Any = None, message: str | None = None, **meta) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(meta)
    return body


def failure(error: str, message: str | None = None, **extra) -> dict:
    body = {"success": False, "error": error}
    if message:
        body["message"] = message
    body.update(extra)
    return body
