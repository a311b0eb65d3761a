"""ricesync API error handling.

Maps store errors onto a JSON error envelope with request_id tracing:

    {"code": ..., "message": ..., "details": ..., "request_id": ...}

- PersistentConflictError -> 503 STORE_CONFLICT (client may retry later)
- TransportError -> 502 STORE_UNAVAILABLE
- PathTraversalError -> 400 INVALID_PATH
- any other StoreError -> 500 STORE_ERROR
- unhandled Exception -> 500 INTERNAL_ERROR (no internals exposed)
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from ricesync.storage.errors import (
    PathTraversalError,
    PersistentConflictError,
    StoreError,
    TransportError,
)

logger = logging.getLogger(__name__)


def _get_request_id(request: Request) -> str:
    """Return the request ID set by middleware, the header, or a new UUID."""
    request_id: str | None = getattr(request.state, "request_id", None)
    if request_id is not None:
        return str(request_id)
    return request.headers.get("X-Request-Id") or str(uuid.uuid4())


def make_error_response(
    request: Request,
    *,
    code: str,
    message: str,
    http_status: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error JSON response carrying the X-Request-Id header."""
    request_id = _get_request_id(request)
    response = JSONResponse(
        status_code=http_status,
        content={
            "code": code,
            "message": message,
            "details": details,
            "request_id": request_id,
        },
    )
    response.headers["X-Request-Id"] = request_id
    return response


def _classify(exc: StoreError) -> tuple[int, str]:
    if isinstance(exc, PersistentConflictError):
        return 503, "STORE_CONFLICT"
    if isinstance(exc, TransportError):
        return 502, "STORE_UNAVAILABLE"
    if isinstance(exc, PathTraversalError):
        return 400, "INVALID_PATH"
    return 500, "STORE_ERROR"


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for StoreError and subclasses."""
    assert isinstance(exc, StoreError)

    http_status, code = _classify(exc)
    details: dict[str, Any] = {"path": exc.path} if exc.path else {}
    if isinstance(exc, PersistentConflictError):
        details["attempts"] = exc.attempts

    logger.warning(
        "Store error %s on %s: %s",
        type(exc).__name__,
        request.url.path,
        exc,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return make_error_response(
        request,
        code=code,
        message=exc.message,
        http_status=http_status,
        details=details or None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: 500 with a generic message, exception logged."""
    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
    )
