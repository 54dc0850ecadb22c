"""starextract/extraction/spreadsheet.py
###############################################################################
Workbook -> table normalisation
###############################################################################
Flattens every sheet of an Excel/ODF workbook into one shared set of columns
and rows.

Design considerations
=====================
1. **Parser boundary** – :func:`read_workbook` is the only function touching
   *pandas*; it returns plain ``{sheet name: [[cell, ...], ...]}`` data in
   declaration order, header row included.  :func:`tabulate_sheets` is pure
   and works on that structure alone.
2. **Synthetic accessors** – columns are keyed ``col0``, ``col1``, ... in one
   sequence across all sheets, never by header text, so duplicate or blank
   headers cannot collide.  Sheets are *not* kept apart: a second sheet with
   the same headers contributes a second, distinct set of columns.
3. **Row ids** – by default ``id`` restarts at 0 for each sheet, so ids are
   only unique within a sheet.  ``per_sheet_ids=False`` numbers all rows in
   one sequence instead.
4. **Thread off-loading** – ``pandas.read_excel`` is synchronous and CPU
   heavy; it runs inside `asyncio.to_thread()`.

Limitations
-----------
• Blank rows inside a sheet are kept as rows of empty cells, so row ids
  follow the sheet's row positions.
• Cell text is never interpreted: strings such as "NA", "None" or "null"
  stay strings. Only truly empty cells become ``None``.
• A falsy header cell (empty, ``0``, ``False``) is replaced by
  ``"Column n"``; other non-string headers are stringified.
• Formulas are read as their cached values; a workbook saved without
  calculated values yields empty cells for them.
"""

from __future__ import annotations

# stdlib
import asyncio
from datetime import date, datetime, time, timedelta
from io import BytesIO
from typing import Any, Dict, List, Mapping, Sequence
from zipfile import BadZipFile

# third-party
import numpy as np
import pandas as pd
import structlog
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError

# local
from starextract.core.exceptions import SpreadsheetParseError
from starextract.extraction.types import CellValue, ColumnDef, ExtractionResult, Row

__all__: list[str] = [
    "SheetRows",
    "read_workbook",
    "tabulate_sheets",
    "tabulate_workbook",
]

logger = structlog.get_logger(__name__)

SheetRows = List[List[CellValue]]

_PARSE_ERRORS = (
    ValueError,
    KeyError,
    OSError,
    BadZipFile,
    InvalidFileException,
    XLRDError,
)

# ---------------------------------------------------------------------------
# Internal helpers – kept private to avoid export noise
# ---------------------------------------------------------------------------


def _normalise_cell(value: Any) -> CellValue:
    """Map a raw parser value onto ``str | int | float | bool | None``."""
    if isinstance(value, str):
        return value if value else None
    if value is None or pd.isna(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return value


def _header_text(value: CellValue, position: int) -> str:
    return str(value) if value else f"Column {position + 1}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def tabulate_sheets(
    sheets: Mapping[str, Sequence[Sequence[CellValue]]],
    *,
    per_sheet_ids: bool = True,
) -> ExtractionResult:
    """
    Merge parsed sheets into a single ``ExtractionResult``.

    Args:
        sheets: Sheet name -> rows of cells, in declaration order; the first
            row of each sheet is its header row
        per_sheet_ids: Restart row ids at 0 for every sheet

    Returns:
        Accumulated columns and rows of all non-empty sheets
    """
    columns: List[ColumnDef] = []
    rows: List[Row] = []
    next_id = 0

    for sheet_name, sheet_rows in sheets.items():
        if not sheet_rows:
            logger.debug("sheet_skipped_empty", sheet=sheet_name)
            continue

        header, *data_rows = sheet_rows
        # Cells beyond the header get synthesized headers so every row key is declared.
        width = max(len(row) for row in sheet_rows)
        offset = len(columns)
        accessors = [f"col{offset + position}" for position in range(width)]

        for position, accessor in enumerate(accessors):
            value = header[position] if position < len(header) else None
            columns.append(ColumnDef(header=_header_text(value, position), accessor=accessor))

        for row_index, cells in enumerate(data_rows):
            row: Row = {"id": row_index if per_sheet_ids else next_id}
            for position, accessor in enumerate(accessors):
                row[accessor] = cells[position] if position < len(cells) else None
            rows.append(row)
            next_id += 1

        logger.debug(
            "sheet_tabulated",
            sheet=sheet_name,
            columns=width,
            rows=len(data_rows),
        )

    return ExtractionResult(rows=rows, columns=columns)


async def read_workbook(content: bytes) -> Dict[str, SheetRows]:
    """
    Parse workbook bytes into raw rows per sheet.

    The engine is picked by *pandas* from the file signature: ``openpyxl`` for
    ``.xlsx``, ``xlrd`` for legacy ``.xls``.

    Args:
        content: Raw workbook bytes

    Returns:
        Sheet name -> list of rows (header row first), in declaration order

    Raises:
        SpreadsheetParseError: If the bytes are not a readable workbook
    """

    def _worker(workbook_content: bytes) -> Dict[str, SheetRows]:
        try:
            frames = pd.read_excel(
                BytesIO(workbook_content),
                sheet_name=None,
                header=None,
                dtype=object,
                # Cell text such as "NA" or "null" is data, not a missing value.
                keep_default_na=False,
                na_filter=False,
            )
        except _PARSE_ERRORS as e:
            raise SpreadsheetParseError(f"Cannot parse workbook: {e}") from e

        return {
            str(name): [
                [_normalise_cell(cell) for cell in row]
                for row in frame.to_numpy(dtype=object).tolist()
            ]
            for name, frame in frames.items()
        }

    return await asyncio.to_thread(_worker, content)


async def tabulate_workbook(
    content: bytes, *, per_sheet_ids: bool = True
) -> ExtractionResult:
    """Parse **content** and flatten all of its sheets into one table."""
    sheets = await read_workbook(content)
    logger.debug("workbook_parsed", sheets=list(sheets))
    return tabulate_sheets(sheets, per_sheet_ids=per_sheet_ids)
