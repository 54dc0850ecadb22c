"""Pre-flight checks on an upload before it reaches the extraction pipeline.

These are *request* problems, reported as ``HTTPException`` (400/413/415).
Whether a declared media type is actually supported is left to
``SourceFormat.from_media_type`` so that one place owns the dispatch rules.
"""

from __future__ import annotations

import os
from typing import Optional

import structlog
from fastapi import HTTPException, UploadFile, status

from starextract.core.config import Settings, get_settings

__all__: list[str] = ["validate_upload"]

logger = structlog.get_logger(__name__)


def _measure(file: UploadFile) -> int:
    """Size of the spooled upload in bytes; the read position is preserved."""
    stream = file.file
    position = stream.tell()
    try:
        stream.seek(0, os.SEEK_END)
        return stream.tell()
    finally:
        stream.seek(position)


def validate_upload(file: UploadFile, *, settings: Optional[Settings] = None) -> int:
    """Reject uploads that cannot possibly be extracted.

    Returns:
        The upload size in bytes.

    Raises:
        HTTPException: 415 without a declared media type, 400 for an empty or
            unreadable upload, 413 above ``MAX_FILE_SIZE_MB``.
    """
    settings = settings or get_settings()
    log = logger.bind(filename=file.filename, content_type=file.content_type)

    if not file.content_type:
        log.warning("upload_rejected", reason="no_media_type")
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Uploaded file has no declared media type.",
        )

    try:
        size = _measure(file)
    except OSError as e:
        log.error("upload_rejected", reason="unreadable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to assess uploaded file size. The upload may be corrupted.",
        ) from e

    if size == 0:
        log.warning("upload_rejected", reason="empty")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )

    if size > settings.max_file_size_bytes:
        log.warning(
            "upload_rejected",
            reason="too_large",
            size_bytes=size,
            max_bytes=settings.max_file_size_bytes,
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=(
                f"File size {size / 1024 / 1024:.2f} MB exceeds the "
                f"limit of {settings.max_file_size_mb} MB."
            ),
        )

    log.debug("upload_accepted", size_bytes=size)
    return size
