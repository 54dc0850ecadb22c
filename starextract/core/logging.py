"""Process-wide structured logging.

Every record leaves the process as one JSON object per line:

* ``structlog`` loggers (the application) print to *stdout*;
* stdlib records (Uvicorn, Starlette, pandas warnings) go to *stderr* through
  a ``ProcessorFormatter`` so they carry the same keys as application events.

``RequestLoggingMiddleware`` binds the request context (``request_id``,
``path``, ``method``) into ``contextvars`` so that events emitted deep inside
the extraction pipeline can be correlated with the HTTP request that caused
them.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import Any, Awaitable, Callable, Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from structlog.types import EventDict, Processor

__all__: list[str] = [
    "configure_logging",
    "RequestLoggingMiddleware",
]

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_CONTEXT_KEYS = ("request_id", "path", "method")


def _fill_request_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Give every event the request keys, ``None`` outside a request."""
    for key in _REQUEST_CONTEXT_KEYS:
        event_dict.setdefault(key, None)
    return event_dict


# Shared by application events and foreign (stdlib) records.
_PRE_CHAIN: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    _fill_request_context,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]

_APP_PROCESSORS: list[Processor] = _PRE_CHAIN + [
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


def _configure_stdlib_logging(level: int) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_PRE_CHAIN,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Access lines duplicate ``request_completed``.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


_LOGGING_CONFIGURED: bool = False


def configure_logging(debug: bool = False) -> None:
    """Set up ``structlog`` and the stdlib root logger once per process.

    Later calls are ignored, so the first caller decides the level: ``DEBUG``
    when **debug** is true (OCR progress and per-sheet events become
    visible), ``INFO`` otherwise.
    """

    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        return

    level = logging.DEBUG if debug else logging.INFO

    _configure_stdlib_logging(level)
    structlog.configure(
        processors=_APP_PROCESSORS,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _LOGGING_CONFIGURED = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context for the duration of a request and log its outcome.

    The request id is taken from the ``X-Request-ID`` header when the client
    sends one and generated otherwise; it is echoed on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        logger = structlog.get_logger("http")

        started = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
        finally:
            logger.info(
                "request_completed",
                status_code=response.status_code if response is not None else 500,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                content_length=request.headers.get("content-length"),
            )
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
