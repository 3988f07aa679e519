"""
Helpers for treating spreadsheet rows as records.

Rows arrive as lists of loosely typed cell values with the header in row 0.
Positions here are "raw" positions: the index into the data rows (header
excluded), counting tombstoned rows too, so they map 1:1 onto sheet rows.
"""

import math
from typing import Any, Callable, Iterable, List, Optional, Sequence

# Row 1 is the header and sheet rows are 1-based
SHEET_ROW_OFFSET = 2


def to_int(value: Any) -> int:
    """Coerce a cell to an int; blanks, text and non-finite numbers become 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def to_str(value: Any) -> str:
    """Coerce a cell to a string; a missing cell becomes ''."""
    if value is None:
        return ""
    return str(value)


def cell(row: Sequence[Any], index: int) -> Any:
    """Get a cell by column index; the Sheets API omits trailing blank cells."""
    return row[index] if index < len(row) else None


def data_rows(rows: Sequence[Sequence[Any]]) -> Sequence[Sequence[Any]]:
    """Drop the header row."""
    return rows[1:]


def next_id(rows: Sequence[Sequence[Any]]) -> int:
    """
    Next free ID for a sheet: one past the largest ID in column A.

    Tombstoned rows keep their ID cell, so their IDs stay taken and a
    lookup by ID can never land on a retired row.
    """
    ids = [to_int(cell(row, 0)) for row in data_rows(rows)]
    return max([i for i in ids if i > 0], default=0) + 1


def find_position(
    records: Iterable[Any],
    record_id: int,
    is_valid: Callable[[Any], bool],
) -> Optional[int]:
    """
    Raw position of the live record with ``record_id``.

    Args:
        records: Mapped records for every data row, in sheet order
        record_id: ID to look for
        is_valid: Validity predicate; tombstoned rows never match

    Returns:
        0-based raw position, or None if no live record has this ID
    """
    for position, record in enumerate(records):
        if record.id == record_id and is_valid(record):
            return position
    return None


def sheet_row_number(position: int) -> int:
    """1-based sheet row number for a raw data position."""
    return position + SHEET_ROW_OFFSET


def column_letter(index: int) -> str:
    """Column letter for a 0-based column index (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def row_range(row_number: int, first_column: int, last_column: Optional[int] = None) -> str:
    """A1 range covering columns of one row, e.g. ``A5:C5`` or ``B5``."""
    start = f"{column_letter(first_column)}{row_number}"
    if last_column is None or last_column == first_column:
        return start
    return f"{start}:{column_letter(last_column)}{row_number}"


def map_rows(rows: Sequence[Sequence[Any]], mapper: Callable[[Sequence[Any]], Any]) -> List[Any]:
    """Map every data row (header dropped, tombstones kept) to a record."""
    return [mapper(row) for row in data_rows(rows)]
