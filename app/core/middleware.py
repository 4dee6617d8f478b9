import logging
import threading
import time

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.error_handlers import error_response

logger = logging.getLogger("app.requests")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
}
UNLIMITED_PATHS = ("/health",)
BODY_METHODS = {"POST", "PUT", "PATCH"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class UploadSizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_size``.

    A declared ``Content-Length`` is checked before anything is read; bodies
    without one (chunked uploads) are counted as they stream in.
    """

    def __init__(self, app: ASGIApp, max_body_size: int):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in BODY_METHODS:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_size:
            logger.warning("Rejected %s %s: body of %s bytes", request.method, request.url.path, declared)
            response = error_response(request, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Payload too large",
                                      self.too_large_message)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    logger.warning("Rejected %s %s: streamed body over %d bytes",
                                   request.method, request.url.path, self.max_body_size)
                    # Raised inside the route's body read, so the error handlers render it
                    raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                                        detail="Payload too large")
            return message

        await self.app(scope, limited_receive, send)

    @property
    def too_large_message(self) -> str:
        return f"Request body exceeds the maximum size of {self.max_body_size} bytes"


class FixedWindowRateLimiter:
    def __init__(self, max_requests: int, window_seconds: int, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> tuple[bool, int]:
        """Count a request for ``key``; returns (allowed, seconds until the window resets)."""
        now = self.clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)

            if len(self._windows) > 10_000:
                self._evict(now)

        retry_after = max(int(self.window_seconds - (now - started)), 1)
        return count <= self.max_requests, retry_after

    def _evict(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: FixedWindowRateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(UNLIMITED_PATHS):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        allowed, retry_after = self.limiter.hit(client)
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", client, request.url.path)
            response = error_response(request, status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests",
                                      "Too many requests from this client, please try again later.")
            response.headers["Retry-After"] = str(retry_after)
            return response
        return await call_next(request)
