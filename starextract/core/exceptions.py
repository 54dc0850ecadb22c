"""
Core Custom Exceptions

This module defines the failure taxonomy of the extraction pipeline. Every
failure an extraction can end in is an :class:`ExtractionError` subclass so
the orchestrator (``starextract.extraction.pipeline``) and the API layer can
classify outcomes without resorting to broad ``except Exception`` blocks.

Each class carries three class-level attributes:

- ``code``: machine-readable snake_case identifier, surfaced in the JSON
  error envelope.
- ``user_message``: the sentence shown to the person who uploaded the file.
- ``status_code``: HTTP status the API layer answers with.

All failures are recoverable: no partial results are produced and the same
(or another) file can be submitted again.
"""

from __future__ import annotations

from typing import Optional

__all__: list[str] = [
    "ExtractionError",
    "UnsupportedFileType",
    "ImageDecodeError",
    "OcrEngineError",
    "OcrTimeout",
    "SpreadsheetParseError",
    "ExtractionCancelled",
    "ExtractionInProgress",
    "ExtractionProcessingError",
]


class ExtractionError(Exception):
    """Base class for every classified extraction failure."""

    code: str = "extraction_failed"
    user_message: str = "Error extracting text from the file."
    status_code: int = 500

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.user_message)


class UnsupportedFileType(ExtractionError):
    """The declared media type matches neither the image nor the spreadsheet branch."""

    code = "unsupported_file_type"
    user_message = "Unsupported file type. Please upload an image or Excel file."
    status_code = 415

    def __init__(self, media_type: str) -> None:
        self.media_type = media_type
        super().__init__(f"Unsupported media type: {media_type!r}")


class ImageDecodeError(ExtractionError):
    """Image bytes are malformed, truncated or refused by the decoder."""

    code = "image_decode_error"
    user_message = "The uploaded image could not be read."
    status_code = 422


class OcrEngineError(ExtractionError):
    """The OCR engine crashed, is missing, or lacks a language pack."""

    code = "ocr_engine_error"
    user_message = "Error extracting text from the image."
    status_code = 502


class OcrTimeout(ExtractionError):
    """The OCR engine did not finish before the configured deadline."""

    code = "ocr_timeout"
    user_message = "Text recognition took too long and was stopped."
    status_code = 504


class SpreadsheetParseError(ExtractionError):
    """Workbook bytes could not be parsed."""

    code = "spreadsheet_parse_error"
    user_message = "The uploaded spreadsheet could not be read."
    status_code = 422


class ExtractionCancelled(ExtractionError):
    """The caller cancelled the extraction before it finished."""

    code = "extraction_cancelled"
    user_message = "The extraction was cancelled."
    status_code = 409


class ExtractionInProgress(ExtractionError):
    """Raised by :class:`~starextract.extraction.slot.ExtractionSlot` when busy."""

    code = "extraction_in_progress"
    user_message = "Another file is still being extracted. Please wait and retry."
    status_code = 409


class ExtractionProcessingError(ExtractionError):
    """Wraps an unexpected exception raised inside a branch.

    Only the orchestrator raises this; it marks failures that are not one of
    the expected input problems above.
    """

    pass
