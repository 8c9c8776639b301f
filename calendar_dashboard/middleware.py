"""HTTP plumbing: error envelopes, security headers and per-IP rate limiting.

Status code mapping for ``CalendarDashboardError`` subclasses comes from the
exception's ``status_code``; anything else becomes a 500 with a generic
message. Both use the ``{"error": ..., "details": ...}`` body.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from calendar_dashboard.errors import CalendarDashboardError
from calendar_dashboard.schemas import ErrorResponse

logger = logging.getLogger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


def error_body(message: str, details: str | None = None) -> dict:
    return ErrorResponse(error=message, details=details).model_dump()


async def _handle_dashboard_error(request: Request, exc: CalendarDashboardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds a fixed set of hardening headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


@dataclass
class _Window:
    started: float
    count: int = 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request counter keyed by client IP.

    Windows are kept per IP in memory; lapsed ones are dropped on every
    request so addresses that never come back do not accumulate.
    """

    def __init__(
        self,
        app,
        max_requests: int = 60,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def _client_key(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def purge_expired(self, now: float) -> int:
        stale = [key for key, w in self._windows.items() if now - w.started >= self.window_seconds]
        for key in stale:
            del self._windows[key]
        return len(stale)

    def hit(self, key: str, now: float) -> _Window:
        """Count one request from ``key`` and return its current window."""
        self.purge_expired(now)
        window = self._windows.get(key)
        if window is None:
            window = self._windows[key] = _Window(started=now)
        window.count += 1
        return window

    async def dispatch(self, request: Request, call_next):
        now = self._clock()
        key = self._client_key(request)
        window = self.hit(key, now)

        remaining = max(self.max_requests - window.count, 0)
        reset_in = max(math.ceil(window.started + self.window_seconds - now), 0)

        if window.count > self.max_requests:
            logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
            return JSONResponse(
                status_code=429,
                content=error_body("Too many requests"),
                headers={"Retry-After": str(reset_in)},
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(self.max_requests)
        response.headers["RateLimit-Remaining"] = str(remaining)
        response.headers["RateLimit-Reset"] = str(reset_in)
        return response


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """Turns any unhandled exception into the standard 500 envelope."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error(
                "Unhandled exception on %s %s",
                request.method,
                request.url.path,
                exc_info=True,
            )
            return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_middleware(
    app: FastAPI,
    rate_limit_max: int,
    rate_limit_window: float,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Attach error handlers and middleware; the last one added runs first."""
    app.add_exception_handler(CalendarDashboardError, _handle_dashboard_error)  # type: ignore[arg-type]
    app.add_middleware(CatchAllErrorMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=rate_limit_max,
        window_seconds=rate_limit_window,
        clock=clock,
    )
    app.add_middleware(SecurityHeadersMiddleware)
