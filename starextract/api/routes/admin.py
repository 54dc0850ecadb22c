"""Operational endpoints: liveness and build information."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from starextract.api.routes.extract import SLOT_DEP
from starextract.api.schemas import HealthSchema, VersionSchema
from starextract.core.config import Settings, get_settings
from starextract.extraction import ExtractionSlot
from starextract.utils.auth import verify_api_key

__all__: list[str] = ["router"]

router = APIRouter(
    prefix="/v1",
    tags=["Admin"],
    dependencies=[Depends(verify_api_key)],
)

SETTINGS_DEP: Settings = Depends(get_settings)


@router.get("/health", response_model=HealthSchema)
async def health(
    settings: Settings = SETTINGS_DEP,
    slot: ExtractionSlot = SLOT_DEP,
) -> HealthSchema:
    """Liveness plus whether the extraction slot is occupied."""
    return HealthSchema(
        extraction="busy" if slot.busy else "idle",
        commit_sha=settings.commit_sha or "unknown",
    )


@router.get("/version", response_model=VersionSchema)
async def version(request: Request, settings: Settings = SETTINGS_DEP) -> VersionSchema:
    return VersionSchema(
        version=request.app.version,
        app_version=settings.app_version,
        ocr_languages=settings.ocr_languages,
        commit_sha=settings.commit_sha,
    )
