"""
Shared pytest configuration for matchreel tests.

Nothing here touches the network: the spreadsheet and the bucket are
replaced by in-memory fakes and Redis is switched off, so every read goes
through the request cache straight to the fake sheet.
"""

import os
import re
from typing import Any, Dict, List, Optional, Sequence, Set

# Must be set before the routes package is imported (rate limiter no-op)
os.environ["ENV"] = "test"
os.environ["REDIS_ENABLED"] = "false"

import pytest

from matchreel.services import s3_service, sheets_service
from matchreel.services.exceptions import SheetNotFoundError, StorageError

HEADERS = {
    "players": ["id", "name"],
    "videos": ["id", "name", "type"],
    "player_videos": ["id", "player_id", "video_id"],
}

_CELL_RE = re.compile(r"^([A-Z]+)(\d+)$")


def _parse_cell(ref: str):
    match = _CELL_RE.match(ref)
    if not match:
        raise ValueError(f"Unsupported A1 reference: {ref}")
    letters, number = match.groups()
    column = 0
    for ch in letters:
        column = column * 26 + (ord(ch) - ord("A") + 1)
    return int(number), column - 1


def _parse_range(a1_range: str):
    """'B5' or 'A5:C5' -> (row_number, first_column, last_column)."""
    start, _, end = a1_range.partition(":")
    row_number, first_column = _parse_cell(start)
    last_column = first_column
    if end:
        end_row, last_column = _parse_cell(end)
        assert end_row == row_number, "fake only supports single-row ranges"
    return row_number, first_column, last_column


class FakeSheets:
    """
    In-memory stand-in for the spreadsheet.

    Stores every cell as a string, like the Sheets API returns them, and
    records each call so tests can assert on the writes.
    """

    def __init__(self) -> None:
        self.sheets: Dict[str, List[List[Any]]] = {
            name: [list(header)] for name, header in HEADERS.items()
        }
        self.calls: List[tuple] = []
        self.fail_on: Set[str] = set()
        self.read_count: Dict[str, int] = {}

    def seed(self, sheet_name: str, rows: Sequence[Sequence[Any]]) -> None:
        self.sheets[sheet_name].extend([str(v) for v in row] for row in rows)

    def rows(self, sheet_name: str) -> List[List[Any]]:
        """Data rows without the header."""
        return self.sheets[sheet_name][1:]

    def _check(self, operation: str, sheet_name: str) -> List[List[Any]]:
        if operation in self.fail_on or f"{operation}:{sheet_name}" in self.fail_on:
            raise RuntimeError(f"simulated {operation} failure on {sheet_name}")
        if sheet_name not in self.sheets:
            raise SheetNotFoundError(f'Sheet "{sheet_name}" not found')
        return self.sheets[sheet_name]

    def get_rows(self, sheet_name: str, a1_range: Optional[str] = None) -> List[List[Any]]:
        sheet = self._check("get_rows", sheet_name)
        self.read_count[sheet_name] = self.read_count.get(sheet_name, 0) + 1
        return [list(row) for row in sheet]

    def append_rows(self, sheet_name: str, rows: Sequence[Sequence[Any]]) -> dict:
        sheet = self._check("append_rows", sheet_name)
        self.calls.append(("append_rows", sheet_name, [list(r) for r in rows]))
        sheet.extend([str(v) for v in row] for row in rows)
        return {}

    def update_range(self, sheet_name: str, a1_range: str, rows: Sequence[Sequence[Any]]) -> dict:
        sheet = self._check("update_range", sheet_name)
        self.calls.append(("update_range", sheet_name, a1_range, [list(r) for r in rows]))
        row_number, first_column, _ = _parse_range(a1_range)
        target = sheet[row_number - 1]
        for offset, value in enumerate(rows[0]):
            column = first_column + offset
            while len(target) <= column:
                target.append("")
            target[column] = str(value)
        return {}

    def clear_range(self, sheet_name: str, a1_range: str) -> dict:
        sheet = self._check("clear_range", sheet_name)
        self.calls.append(("clear_range", sheet_name, a1_range))
        row_number, first_column, last_column = _parse_range(a1_range)
        target = sheet[row_number - 1]
        for column in range(first_column, min(last_column + 1, len(target))):
            target[column] = ""
        return {}

    def delete_row(self, sheet_name: str, row_index: int) -> dict:
        sheet = self._check("delete_row", sheet_name)
        self.calls.append(("delete_row", sheet_name, row_index))
        del sheet[row_index]
        return {}

    def writes(self, operation: Optional[str] = None) -> List[tuple]:
        return [c for c in self.calls if operation is None or c[0] == operation]


class FakeStorage:
    """In-memory stand-in for the bucket."""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_delete = False
        self.fail_upload = False

    def video_exists(self, key: str) -> bool:
        return key in self.objects

    def generate_download_url(self, key: str, expires_in: int = 3600) -> str:
        return f"https://storage.test/{key}?op=get&expires={expires_in}"

    def generate_upload_url(self, key: str, content_type: Optional[str] = None, expires_in: int = 3600) -> str:
        return f"https://storage.test/{key}?op=put&type={content_type}&expires={expires_in}"

    def upload_video(self, key: str, body, content_type: Optional[str] = None) -> None:
        if self.fail_upload:
            raise StorageError("Failed to upload video file")
        self.objects[key] = body if isinstance(body, bytes) else body.read()

    def delete_video(self, key: str) -> None:
        if self.fail_delete:
            raise StorageError("Failed to delete video file")
        self.objects.pop(key, None)
        self.deleted.append(key)


@pytest.fixture
def fake_sheets(monkeypatch):
    """Replace every sheets_service call with an in-memory spreadsheet."""
    fake = FakeSheets()
    for name in ("get_rows", "append_rows", "update_range", "clear_range", "delete_row"):
        monkeypatch.setattr(sheets_service, name, getattr(fake, name))
    return fake


@pytest.fixture
def fake_storage(monkeypatch):
    """Replace every s3_service call with an in-memory bucket."""
    fake = FakeStorage()
    for name in (
        "video_exists",
        "generate_download_url",
        "generate_upload_url",
        "upload_video",
        "delete_video",
    ):
        monkeypatch.setattr(s3_service, name, getattr(fake, name))
    return fake


@pytest.fixture
def seeded_sheets(fake_sheets):
    """
    A small archive: three players (ID 3 was hard-deleted), three
    videos (video 3 soft-deleted) and a mix of live and retired associations.
    """
    fake_sheets.seed("players", [[1, "Alice"], [2, "Bob"], [4, "Carol"]])
    fake_sheets.seed("videos", [
        [1, "qualifier.mp4", "予選"],
        [2, "final.mp4", "決勝戦"],
        [3, "", "TOP8"],
    ])
    fake_sheets.seed("player_videos", [
        [1, 1, 1],
        [2, 2, 1],
        [3, 0, 2],
        [4, 4, 1],
        [5, 1, 2],
        [6, 9, 2],
        [7, 2, 2],
    ])
    return fake_sheets
