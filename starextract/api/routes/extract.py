from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.responses import JSONResponse

from starextract.api.schemas import CancelResponseSchema, ExtractionResponseSchema
from starextract.core.config import Settings, get_settings
from starextract.extraction import ExtractionSlot, SourceFile, SourceFormat
from starextract.ingestion.validators import validate_upload
from starextract.utils.auth import verify_api_key

__all__: list[str] = [
    "router",
    "get_extraction_slot",
    "SLOT_DEP",
]

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/v1",
    tags=["extraction"],
    dependencies=[Depends(verify_api_key)],
)

FILE_PARAM: UploadFile = File(..., description="Image or spreadsheet to extract")

SETTINGS_DEP: Settings = Depends(get_settings)


def get_extraction_slot(request: Request) -> ExtractionSlot:
    """Return the application's single extraction slot."""
    return request.app.state.extraction_slot


SLOT_DEP: ExtractionSlot = Depends(get_extraction_slot)


@router.post(
    "/extract",
    summary="Extract a table from one uploaded image or workbook.",
    response_model=ExtractionResponseSchema,
    status_code=status.HTTP_200_OK,
)
async def extract_file(
    request: Request,
    file: UploadFile = FILE_PARAM,
    settings: Settings = SETTINGS_DEP,
    slot: ExtractionSlot = SLOT_DEP,
) -> JSONResponse:
    """
    Validate the upload, then run the extraction pipeline on it.

    Classified failures (``ExtractionError``) propagate to the handler
    registered in ``starextract.api.errors``.
    """
    request_id = (
        structlog.contextvars.get_contextvars().get("request_id")
        or request.headers.get("x-request-id")
        or uuid.uuid4().hex
    )

    validate_upload(file, settings=settings)

    await file.seek(0)
    content = await file.read()
    source = SourceFile(
        content=content,
        media_type=file.content_type or "",
        filename=file.filename,
    )

    result = await slot.run(source, settings=settings)

    payload = ExtractionResponseSchema(
        request_id=request_id,
        filename=source.filename,
        media_type=source.media_type,
        format=SourceFormat.from_media_type(source.media_type).value,
        **result.dict(),
    )
    logger.info(
        "extract_request_complete",
        filename=source.filename,
        rows=len(result.rows),
    )

    response = JSONResponse(
        content=payload.model_dump(), status_code=status.HTTP_200_OK
    )
    response.headers["X-Request-ID"] = request_id
    return response


@router.post(
    "/extract/cancel",
    summary="Abandon the extraction currently running, if any.",
    response_model=CancelResponseSchema,
)
async def cancel_extraction(slot: ExtractionSlot = SLOT_DEP) -> CancelResponseSchema:
    """The cancelled upload is answered with 409 ``extraction_cancelled``."""
    return CancelResponseSchema(cancelled=slot.cancel())
