"""JSON error envelope shared by every failure the API reports.

Whatever goes wrong, clients receive::

    {"error": {"code": ..., "message": ..., "request_id": ...}, "detail": ...}

``code`` is a snake_case string for classified failures (see
``starextract.core.exceptions``) and the HTTP status integer for plain
``HTTPException``s raised by validation and auth. ``detail`` repeats the
message for clients written against FastAPI's default error body.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from starextract.core.exceptions import ExtractionError

__all__: list[str] = ["add_exception_handlers", "build_error_payload"]

logger = structlog.get_logger("errors")


def build_error_payload(
    code: str | int,
    message: str,
    request_id: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Return the error envelope; **extra** keys are merged into ``error``."""
    error: Dict[str, Any] = {"code": code, "message": message, "request_id": request_id}
    error.update(extra or {})
    return {"error": error, "detail": message}


def _request_id(request: Request) -> Optional[str]:
    # Bound by RequestLoggingMiddleware; the header covers apps without it.
    bound = structlog.contextvars.get_contextvars().get("request_id")
    return bound or request.headers.get("x-request-id")


def _respond(
    request: Request,
    status_code: int,
    code: str | int,
    message: str,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    payload = build_error_payload(code, message, _request_id(request), extra)
    return JSONResponse(status_code=status_code, content=payload)


async def _extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    """Classified pipeline failure: answer with its fixed user-facing message.

    The internal message (``str(exc)``) is logged but never sent to clients.
    """
    logger.warning(
        "extraction_error_response",
        code=exc.code,
        status_code=exc.status_code,
        error=str(exc),
    )
    extra = None
    media_type = getattr(exc, "media_type", None)
    if media_type is not None:
        extra = {"media_type": media_type}
    return _respond(request, exc.status_code, exc.code, exc.user_message, extra)


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.warning("http_exception", status_code=exc.status_code, detail=str(exc.detail))
    return _respond(request, exc.status_code, exc.status_code, str(exc.detail))


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request, typically a missing ``file`` form field."""
    details = jsonable_encoder(exc.errors())
    logger.warning("validation_error", errors=details)
    return _respond(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Invalid request parameters.",
        {"details": details},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return _respond(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_server_error",
        "An unexpected error occurred.",
    )


def add_exception_handlers(app: FastAPI) -> None:  # noqa: D401 – imperative
    """Register all global exception handlers on **app**."""

    app.add_exception_handler(ExtractionError, _extraction_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
