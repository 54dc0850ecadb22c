from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

__all__: list[str] = [
    "CellValue",
    "Row",
    "SourceFile",
    "ColumnDef",
    "ExtractionResult",
    "OcrProgress",
]

# Raw cell content after normalisation; ``None`` marks an empty cell.
CellValue = Union[str, int, float, bool, None]

# Accessor -> cell value, always including the ``id`` sequence number.
Row = Dict[str, CellValue]


@dataclass(frozen=True)
class SourceFile:
    """
    A single uploaded file, consumed once per extraction attempt.

    Attributes:
        content: Raw bytes of the upload
        media_type: Declared MIME type, the only input to format dispatch
        filename: Original filename, used for logging only
    """

    content: bytes
    media_type: str
    filename: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ColumnDef:
    """
    One column of an extraction result.

    Attributes:
        header: Human-readable column title
        accessor: Key identifying the column's value in every row
    """

    header: str
    accessor: str


@dataclass
class ExtractionResult:
    """
    Tabular output of one extraction, shared by both branches.

    Attributes:
        rows: Ordered rows, each a mapping from accessor to cell value
        columns: Column definitions referenced by the rows
    """

    rows: List[Row] = field(default_factory=list)
    columns: List[ColumnDef] = field(default_factory=list)

    @property
    def accessors(self) -> List[str]:
        return [column.accessor for column in self.columns]

    def dict(self) -> dict[str, Any]:
        """Return a serialisable ``dict`` representation.

        Mirrors the ``.dict()`` helper of Pydantic models so the API layer can
        build its response schema without ``dataclasses.asdict`` calls.
        """
        return {
            "rows": [dict(row) for row in self.rows],
            "columns": [
                {"header": column.header, "accessor": column.accessor}
                for column in self.columns
            ],
        }


@dataclass(frozen=True)
class OcrProgress:
    """Progress notification emitted while the OCR engine runs (0.0 to 1.0)."""

    status: str
    progress: float
