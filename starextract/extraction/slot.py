from __future__ import annotations

import asyncio
from typing import Any, Optional

import structlog

from starextract.core.exceptions import ExtractionInProgress
from starextract.extraction.pipeline import extract
from starextract.extraction.types import ExtractionResult, SourceFile

__all__: list[str] = ["ExtractionSlot"]

logger = structlog.get_logger(__name__)


class ExtractionSlot:
    """Runs at most one extraction at a time.

    Starting an extraction while another is in flight is **rejected** with
    :class:`~starextract.core.exceptions.ExtractionInProgress`; nothing is
    queued and the running extraction is left alone. ``busy`` is the loading
    state shown to users and ``cancel()`` abandons the in-flight OCR call.
    """

    def __init__(self) -> None:
        self._current: Optional[SourceFile] = None
        self._cancel_event: Optional[asyncio.Event] = None

    @property
    def busy(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> Optional[SourceFile]:
        return self._current

    def cancel(self) -> bool:
        """Request cancellation of the running extraction; False when idle."""
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        logger.info(
            "extraction_cancel_requested",
            filename=self._current.filename if self._current else None,
        )
        return True

    async def run(self, source: SourceFile, **kwargs: Any) -> ExtractionResult:
        """Extract **source** unless another extraction occupies the slot.

        Keyword arguments are forwarded to
        :func:`~starextract.extraction.pipeline.extract`.
        """
        if self._current is not None:
            logger.warning(
                "extraction_rejected_busy",
                filename=source.filename,
                running=self._current.filename,
            )
            raise ExtractionInProgress()

        # Claimed before the first await so no other coroutine can slip in.
        self._current = source
        self._cancel_event = asyncio.Event()
        try:
            return await extract(source, cancel_event=self._cancel_event, **kwargs)
        finally:
            self._current = None
            self._cancel_event = None
