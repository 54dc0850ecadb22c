"""
Source format detection

The extraction pipeline supports a closed set of input formats. Each member of
:class:`SourceFormat` corresponds to exactly one extraction branch in
``starextract.extraction.pipeline``; adding a member without registering a
branch is caught by the unit-tests.

Detection looks at the *declared* media type only (the browser/HTTP
``Content-Type``), never at the file content:

1. ``image/*`` -> :attr:`SourceFormat.IMAGE`
2. contains ``sheet``, ``excel`` or ``spreadsheetml`` -> :attr:`SourceFormat.SPREADSHEET`
3. anything else -> :class:`~starextract.core.exceptions.UnsupportedFileType`

Matching is case-sensitive, exactly as MIME types are declared by clients.
"""

from __future__ import annotations

from enum import Enum
from typing import Final, Tuple

from starextract.core.exceptions import UnsupportedFileType

__all__: list[str] = ["SourceFormat", "IMAGE_PREFIX", "SPREADSHEET_MARKERS"]

IMAGE_PREFIX: Final[str] = "image/"

# Covers .xlsx (spreadsheetml.sheet), .xls (vnd.ms-excel) and .ods
# (opendocument.spreadsheet).
SPREADSHEET_MARKERS: Final[Tuple[str, ...]] = ("sheet", "excel", "spreadsheetml")


class SourceFormat(str, Enum):
    IMAGE = "image"
    SPREADSHEET = "spreadsheet"

    @classmethod
    def from_media_type(cls, media_type: str) -> "SourceFormat":
        """Return the format for **media_type**; first matching rule wins.

        Raises:
            UnsupportedFileType: If no rule matches.
        """
        if media_type.startswith(IMAGE_PREFIX):
            return cls.IMAGE
        if any(marker in media_type for marker in SPREADSHEET_MARKERS):
            return cls.SPREADSHEET
        raise UnsupportedFileType(media_type)
