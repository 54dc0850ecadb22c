"""starextract/api/schemas.py
###############################################################################
Public Pydantic models **exposed by the API layer**.
###############################################################################
The internal pipeline returns a plain :class:`~starextract.extraction.types.
ExtractionResult` dataclass.  This module wraps it in the HTTP contract,
adding the envelope fields clients need to correlate a result with logs
(``request_id``) and to know which branch produced it (``format``).

Rows are passed through untouched: each row is a mapping from column accessor
to cell value plus the ``id`` sequence number.
"""

from __future__ import annotations

# stdlib
import uuid
from typing import Dict, List, Optional, Union

# third-party
from pydantic import BaseModel, ConfigDict, Field

__all__: list[str] = [
    "CancelResponseSchema",
    "ColumnSchema",
    "ExtractionResponseSchema",
    "HealthSchema",
    "VersionSchema",
]

CellValueSchema = Union[str, int, float, bool, None]


class ColumnSchema(BaseModel):  # noqa: D101 – tiny data container
    model_config = ConfigDict(frozen=True)

    header: str = Field(..., description="Human-readable column title.")
    accessor: str = Field(..., description="Row key holding this column's values.")


class ExtractionResponseSchema(BaseModel):
    """Public response model for a single extraction."""

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        description="Request-scoped UUID.  Filled by the route handler.",
    )
    filename: Optional[str] = Field(None, description="Original upload filename.")
    media_type: str = Field(..., description="Declared MIME type of the upload.")
    format: str = Field(..., description="Extraction branch: 'image' or 'spreadsheet'.")
    columns: List[ColumnSchema] = Field(default_factory=list)
    rows: List[Dict[str, CellValueSchema]] = Field(
        default_factory=list,
        description="Ordered rows; ids restart per sheet for multi-sheet workbooks.",
    )


class CancelResponseSchema(BaseModel):  # noqa: D101
    cancelled: bool = Field(..., description="False when no extraction was running.")


class HealthSchema(BaseModel):  # noqa: D101
    status: str = "ok"
    extraction: str = Field(..., description="'busy' while an upload is being extracted.")
    commit_sha: str = "unknown"


class VersionSchema(BaseModel):  # noqa: D101
    version: str
    app_version: str
    ocr_languages: str
    commit_sha: Optional[str] = None
