"""
Extraction Pipeline Orchestrator

This module is the single entry point of the extraction pipeline. It detects
the format of an uploaded file from its declared media type, runs the matching
branch and returns the tabular result:

- image branch: binarize (``preprocess``) -> OCR (``ocr``) -> one row per
  line (``text``).
- spreadsheet branch: parse every sheet and flatten (``spreadsheet``).

Key Responsibilities:
- Dispatch through the closed ``SourceFormat`` enumeration and the
  ``BRANCHES`` table.
- Classify failures: expected problems (``ExtractionError`` subclasses)
  propagate unchanged, anything else is logged and wrapped in
  ``ExtractionProcessingError``.
- Measure and log processing time.

The orchestrator holds no state between calls; concurrent use is governed by
``starextract.extraction.slot.ExtractionSlot``.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Dict, Final, Optional

import structlog

from starextract.core.config import Settings, get_settings
from starextract.core.exceptions import ExtractionError, ExtractionProcessingError
from starextract.extraction.formats import SourceFormat
from starextract.extraction.ocr import ProgressObserver, recognize
from starextract.extraction.preprocess import preprocess_image
from starextract.extraction.spreadsheet import tabulate_workbook
from starextract.extraction.text import tabulate_text
from starextract.extraction.types import ExtractionResult, SourceFile

__all__: list[str] = ["BRANCHES", "extract"]

logger = structlog.get_logger(__name__)

Branch = Callable[
    [SourceFile, Settings, Optional[ProgressObserver], Optional[asyncio.Event]],
    Awaitable[ExtractionResult],
]


async def _extract_image(
    source: SourceFile,
    settings: Settings,
    on_progress: Optional[ProgressObserver],
    cancel_event: Optional[asyncio.Event],
) -> ExtractionResult:
    binarized = await preprocess_image(source.content)
    raw_text = await recognize(
        binarized,
        languages=settings.ocr_languages,
        page_seg_mode=settings.ocr_page_seg_mode,
        engine_mode=settings.ocr_engine_mode,
        timeout=settings.ocr_timeout_seconds,
        cancel_event=cancel_event,
        on_progress=on_progress,
    )
    return tabulate_text(raw_text)


async def _extract_spreadsheet(
    source: SourceFile,
    settings: Settings,
    on_progress: Optional[ProgressObserver],
    cancel_event: Optional[asyncio.Event],
) -> ExtractionResult:
    return await tabulate_workbook(
        source.content, per_sheet_ids=settings.spreadsheet_per_sheet_ids
    )


# One branch per SourceFormat member.
BRANCHES: Final[Dict[SourceFormat, Branch]] = {
    SourceFormat.IMAGE: _extract_image,
    SourceFormat.SPREADSHEET: _extract_spreadsheet,
}


async def extract(
    source: SourceFile,
    *,
    settings: Optional[Settings] = None,
    on_progress: Optional[ProgressObserver] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ExtractionResult:
    """
    Extract a table from a single uploaded file.

    Args:
        source: The uploaded file and its declared media type
        settings: Optional Settings instance (uses global if not provided)
        on_progress: Observer for OCR progress notifications
        cancel_event: Setting this event abandons an in-flight OCR call

    Returns:
        The rows and columns extracted from the file

    Raises:
        ExtractionError: A classified failure; unexpected errors are wrapped
            in ``ExtractionProcessingError``. No partial result is returned.
    """
    settings = settings or get_settings()
    start_time = time.perf_counter()

    try:
        source_format = SourceFormat.from_media_type(source.media_type)
        logger.info(
            "extraction_started",
            filename=source.filename,
            media_type=source.media_type,
            format=source_format.value,
            size_bytes=source.size_bytes,
        )
        result = await BRANCHES[source_format](
            source, settings, on_progress, cancel_event
        )
    except ExtractionError as e:
        logger.warning(
            "extraction_failed",
            filename=source.filename,
            media_type=source.media_type,
            code=e.code,
            error=str(e),
        )
        raise
    except Exception as e:  # noqa: BLE001 – classify every branch crash
        logger.error(
            "extraction_unexpected_exception",
            filename=source.filename,
            media_type=source.media_type,
            error=str(e),
            exc_info=True,
        )
        raise ExtractionProcessingError(f"Unexpected extraction error: {e}") from e

    processing_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "extraction_complete",
        filename=source.filename,
        format=source_format.value,
        rows=len(result.rows),
        columns=len(result.columns),
        processing_ms=round(processing_ms, 2),
    )
    return result
