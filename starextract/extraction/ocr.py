"""starextract/extraction/ocr.py
###############################################################################
Multilingual OCR using pytesseract
###############################################################################
Runs Tesseract on a binarized PNG and returns the raw text.

Design considerations
=====================
1. **Thread off-loading** – Tesseract runs as a subprocess driven by
   pytesseract; the blocking call happens inside `asyncio.to_thread()` so the
   event-loop stays responsive.
2. **Fixed language set** – English, French, Spanish and Arabic are active
   simultaneously (``eng+fra+spa+ara``) with automatic page segmentation and
   orientation detection (``--psm 1``) and the engine's default mode
   (``--oem 3``).
3. **Deadline & cancellation** – callers pass an optional ``timeout`` (seconds)
   and an ``asyncio.Event``.  The deadline is also forwarded to pytesseract so
   the Tesseract subprocess is killed when it expires.  A cancelled call stops
   waiting immediately; the subprocess is left to finish or hit its deadline.
4. **Progress is a side channel** – notifications go to an observer callback
   and never influence the returned text or raised error.

Assumptions / Limitations
-------------------------
• The Tesseract binary and the ``eng``, ``fra``, ``spa``, ``ara`` and ``osd``
  traineddata files must be installed in the runtime image
  (e.g. ``apt-get install tesseract-ocr tesseract-ocr-fra ...``).
• No retry: a failed call surfaces immediately.
"""

from __future__ import annotations

# stdlib
import asyncio
from io import BytesIO
from typing import Callable, Optional, Set

# third-party
import pytesseract
import structlog
from PIL import Image

# local
from starextract.core.config import DEFAULT_OCR_LANGUAGES
from starextract.core.exceptions import (
    ExtractionCancelled,
    OcrEngineError,
    OcrTimeout,
)
from starextract.extraction.types import OcrProgress

__all__: list[str] = [
    "ProgressObserver",
    "build_tesseract_config",
    "configure_tesseract",
    "recognize",
]

logger = structlog.get_logger(__name__)

ProgressObserver = Callable[[OcrProgress], None]

# pytesseract raises a bare RuntimeError with this message when it kills the
# subprocess after ``timeout`` seconds.
_PYTESSERACT_TIMEOUT_MESSAGE = "Tesseract process timeout"


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at **tesseract_cmd**; ``None`` keeps the ``PATH`` lookup.

    Called once by ``create_app``.
    """
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logger.info("tesseract_cmd_configured", tesseract_cmd=tesseract_cmd)


def build_tesseract_config(page_seg_mode: int, engine_mode: int) -> str:
    return f"--psm {page_seg_mode} --oem {engine_mode}"


def _log_progress(update: OcrProgress) -> None:
    logger.debug("ocr_progress", status=update.status, progress=update.progress)


def _notify(observer: ProgressObserver, update: OcrProgress) -> None:
    """Deliver **update**; an observer failure must not affect recognition."""
    try:
        observer(update)
    except Exception as e:  # noqa: BLE001 – observer is caller-supplied
        logger.warning(
            "ocr_progress_observer_failed",
            status=update.status,
            error=str(e),
            exc_info=True,
        )


def _run_tesseract(
    image_content: bytes, languages: str, config: str, timeout: Optional[float]
) -> str:
    try:
        with Image.open(BytesIO(image_content)) as img:
            img.load()
            text = pytesseract.image_to_string(
                img, lang=languages, config=config, timeout=timeout or 0
            )
    except pytesseract.TesseractNotFoundError as e:
        raise OcrEngineError(f"Tesseract binary not available: {e}") from e
    except pytesseract.TesseractError as e:
        raise OcrEngineError(f"Tesseract failed: {e.message}") from e
    except RuntimeError as e:
        if _PYTESSERACT_TIMEOUT_MESSAGE in str(e):
            raise OcrTimeout(f"OCR exceeded {timeout}s") from e
        raise OcrEngineError(f"Tesseract failed: {e}") from e
    except OSError as e:
        raise OcrEngineError(f"OCR input is not a readable image: {e}") from e
    return text or ""


async def recognize(
    content: bytes,
    *,
    languages: str = DEFAULT_OCR_LANGUAGES,
    page_seg_mode: int = 1,
    engine_mode: int = 3,
    timeout: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
    on_progress: Optional[ProgressObserver] = None,
) -> str:
    """
    Extract raw text from a (binarized) image with Tesseract.

    Args:
        content: Image bytes, normally the PNG produced by ``preprocess_image``
        languages: Tesseract language specification
        page_seg_mode: Tesseract ``--psm`` value
        engine_mode: Tesseract ``--oem`` value
        timeout: Deadline in seconds, ``None`` waits indefinitely
        cancel_event: Setting this event abandons the call
        on_progress: Observer receiving progress notifications

    Returns:
        The recognized text, possibly empty

    Raises:
        OcrEngineError: The engine failed or is not installed
        OcrTimeout: The deadline expired
        ExtractionCancelled: ``cancel_event`` was set first
    """
    observer: ProgressObserver = on_progress or _log_progress
    config = build_tesseract_config(page_seg_mode, engine_mode)

    _notify(observer, OcrProgress(status="initializing tesseract", progress=0.0))

    ocr_task = asyncio.ensure_future(
        asyncio.to_thread(_run_tesseract, content, languages, config, timeout)
    )
    waiters: Set[asyncio.Future] = {ocr_task}
    cancel_task: Optional[asyncio.Future] = None
    if cancel_event is not None:
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_task)

    _notify(observer, OcrProgress(status="recognizing text", progress=0.0))

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for waiter in waiters:
            if not waiter.done():
                waiter.cancel()

    if ocr_task not in done:
        if cancel_task is not None and cancel_task in done:
            logger.info("ocr_cancelled", languages=languages)
            raise ExtractionCancelled("OCR cancelled by caller")
        logger.warning("ocr_timeout", languages=languages, timeout=timeout)
        raise OcrTimeout(f"OCR exceeded {timeout}s")

    text = ocr_task.result()
    _notify(observer, OcrProgress(status="recognizing text", progress=1.0))
    logger.debug("ocr_complete", languages=languages, characters=len(text))
    return text
