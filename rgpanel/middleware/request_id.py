"""
Request ID tracking.

Each request gets an ID (taken from ``X-Request-ID`` or generated) that is
kept in a ContextVar so log records emitted while serving it can carry it.
"""

from __future__ import annotations

import contextvars
import logging
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from fastapi import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id",
    default=None,
)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return _request_id.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to track request IDs across async contexts."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        """Process request and set request ID in context."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = _request_id.set(request_id)

        # Health probes are too frequent to be worth logging
        should_log = not request.url.path.startswith("/health")

        if should_log:
            logger.info(
                "Request started",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                },
            )

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            if should_log:
                logger.info(
                    "Request completed",
                    extra={"status_code": response.status_code},
                )

            return response
        finally:
            _request_id.reset(token)
