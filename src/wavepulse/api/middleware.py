"""Request timing plus request/channel ids bound into the structlog context."""

from __future__ import annotations

import time
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from wavepulse.observability.logger import get_logger

logger = get_logger("middleware")

QUIET_PATHS = frozenset({"/health"})


def channel_from_path(path: str) -> str | None:
    """``/channels/{id}/...`` -> ``id``."""
    parts = path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "channels":
        return parts[1]
    return None


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        path = request.url.path
        start = time.monotonic()

        structlog.contextvars.clear_contextvars()
        context = {"request_id": request_id}
        channel_id = channel_from_path(path)
        if channel_id:
            context["channel_id"] = channel_id
        structlog.contextvars.bind_contextvars(**context)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                error=str(e),
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
            raise

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Duration-MS"] = str(duration_ms)
        log = logger.debug if path in QUIET_PATHS else logger.info
        log(
            "request_completed",
            method=request.method,
            path=path,
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response
