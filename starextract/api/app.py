"""Star Extract ─ FastAPI application
===================================

Run locally with::

    uvicorn starextract.api.app:app --reload

``app`` is built once at import time by :func:`create_app`; tests may build
their own instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

# third-party
import structlog
from fastapi import FastAPI

# local imports
from starextract import __version__
from starextract.api.errors import add_exception_handlers
from starextract.api.routes import admin, extract
from starextract.core.config import get_settings
from starextract.core.logging import RequestLoggingMiddleware, configure_logging
from starextract.extraction import ExtractionSlot
from starextract.extraction.ocr import configure_tesseract

__all__: list[str] = ["app", "create_app"]

# Logging must be configured before the first logger is bound.
configure_logging(get_settings().debug)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def _lifespan(app_instance: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "fastapi_startup",
        version=__version__,
        commit_sha=settings.commit_sha,
        ocr_languages=settings.ocr_languages,
        auth_enabled=bool(settings.allowed_api_keys),
    )
    yield
    # Stop waiting on an in-flight OCR call so shutdown is not held up.
    slot: ExtractionSlot = app_instance.state.extraction_slot
    if slot.cancel():
        logger.warning("fastapi_shutdown_cancelled_extraction")
    logger.info("fastapi_shutdown")


def create_app() -> FastAPI:  # noqa: D401 – factory
    """Build and configure the FastAPI application."""
    app_instance = FastAPI(
        title="Star Extract",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        lifespan=_lifespan,
    )

    configure_tesseract(get_settings().tesseract_cmd)

    # One extraction at a time per process.
    app_instance.state.extraction_slot = ExtractionSlot()

    app_instance.add_middleware(RequestLoggingMiddleware)

    @app_instance.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"message": "Star Extract – upload an image or workbook to /v1/extract"}

    for router in (extract.router, admin.router):
        app_instance.include_router(router)
    add_exception_handlers(app_instance)

    return app_instance


app: FastAPI = create_app()
