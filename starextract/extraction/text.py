from __future__ import annotations

from typing import Final, List

from starextract.extraction.types import ColumnDef, ExtractionResult, Row

__all__: list[str] = ["TEXT_COLUMNS", "tabulate_text"]

TEXT_COLUMNS: Final[tuple[ColumnDef, ...]] = (
    ColumnDef(header="Line Number", accessor="id"),
    ColumnDef(header="Text", accessor="text"),
)


def tabulate_text(raw_text: str) -> ExtractionResult:
    """
    Turn raw OCR text into one row per line.

    Lines are split on ``"\\n"`` only, so joining the ``text`` fields with
    ``"\\n"`` gives back **raw_text** unchanged. Blank lines, including leading
    and trailing ones, are kept as empty-string rows.

    Args:
        raw_text: Text as returned by the OCR engine

    Returns:
        Rows ``{"id": i, "text": line}`` with the fixed two-column schema
    """
    rows: List[Row] = [
        {"id": index, "text": line} for index, line in enumerate(raw_text.split("\n"))
    ]
    return ExtractionResult(rows=rows, columns=list(TEXT_COLUMNS))
