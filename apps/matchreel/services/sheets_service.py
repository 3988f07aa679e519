"""
Google Sheets service: the spreadsheet used as matchreel's row store.

Each worksheet is a table whose first row is the header; columns are
positional and values are returned exactly as the Sheets API delivers them
(strings). Type coercion belongs to the repositories, not to this module.

Functions here are synchronous (gspread is a blocking client). Async callers
run them through ``asyncio.to_thread``.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import gspread
from gspread.exceptions import WorksheetNotFound

from matchreel.services.exceptions import (
    ConfigurationError,
    SheetNotFoundError,
    StoreAccessError,
)

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Let Sheets parse numbers the same way as typed input
VALUE_INPUT_OPTION = "USER_ENTERED"

# Lazy-initialized spreadsheet handle
_spreadsheet = None


def _get_config() -> Dict[str, Optional[str]]:
    """Read Sheets configuration from environment at call time (not import time)."""
    return {
        "credentials_json": os.getenv("CREDENTIALS_JSON"),
        "client_email": os.getenv("GOOGLE_SHEETS_CLIENT_EMAIL"),
        "private_key": os.getenv("GOOGLE_SHEETS_PRIVATE_KEY"),
        "spreadsheet_id": os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID"),
    }


def get_spreadsheet_id() -> str:
    """Get the target spreadsheet ID, failing fast if it is not configured."""
    spreadsheet_id = _get_config()["spreadsheet_id"]
    if not spreadsheet_id:
        raise ConfigurationError(
            "GOOGLE_SHEETS_SPREADSHEET_ID is not set in environment variables"
        )
    return spreadsheet_id


def get_credentials_info() -> Dict[str, Any]:
    """
    Build service-account credentials info from the environment.

    CREDENTIALS_JSON (a full service-account key document) wins when set;
    otherwise GOOGLE_SHEETS_CLIENT_EMAIL and GOOGLE_SHEETS_PRIVATE_KEY are
    required. Private keys stored with literal ``\\n`` sequences are restored
    to real newlines.

    Raises:
        ConfigurationError: If no usable credentials are configured
    """
    cfg = _get_config()
    if cfg["credentials_json"]:
        try:
            return json.loads(cfg["credentials_json"])
        except ValueError as e:
            raise ConfigurationError("CREDENTIALS_JSON is not valid JSON") from e

    if not cfg["client_email"] or not cfg["private_key"]:
        raise ConfigurationError(
            "Google Sheets API credentials are not set in environment variables. "
            "Set CREDENTIALS_JSON, or GOOGLE_SHEETS_CLIENT_EMAIL and GOOGLE_SHEETS_PRIVATE_KEY."
        )

    return {
        "type": "service_account",
        "client_email": cfg["client_email"],
        "private_key": cfg["private_key"].replace("\\n", "\n"),
        "token_uri": TOKEN_URI,
    }


def _get_spreadsheet():
    """Get or open the gspread Spreadsheet handle."""
    global _spreadsheet
    if _spreadsheet is None:
        # Both lookups raise ConfigurationError before anything touches the network
        spreadsheet_id = get_spreadsheet_id()
        credentials_info = get_credentials_info()
        try:
            client = gspread.service_account_from_dict(credentials_info, scopes=SCOPES)
            _spreadsheet = client.open_by_key(spreadsheet_id)
        except Exception as e:
            logger.error(f"Failed to open spreadsheet {spreadsheet_id}: {e}")
            raise StoreAccessError("Failed to connect to the spreadsheet") from e
    return _spreadsheet


def reset_client() -> None:
    """Forget the cached spreadsheet handle (e.g. after rotating credentials)."""
    global _spreadsheet
    _spreadsheet = None


def _full_range(sheet_name: str, a1_range: Optional[str] = None) -> str:
    return f"{sheet_name}!{a1_range}" if a1_range else sheet_name


def get_rows(sheet_name: str, a1_range: Optional[str] = None) -> List[List[Any]]:
    """
    Read rows from a sheet.

    Args:
        sheet_name: Worksheet name
        a1_range: Optional A1 range inside the sheet (e.g. "A2:C10")

    Returns:
        List of rows (each a list of raw cell values); empty if the sheet has no data

    Raises:
        StoreAccessError: On transport, auth or permission failures
    """
    spreadsheet = _get_spreadsheet()
    full_range = _full_range(sheet_name, a1_range)
    try:
        response = spreadsheet.values_get(full_range)
    except Exception as e:
        logger.error(f"Error fetching data from sheet {sheet_name} ({full_range}): {e}")
        raise StoreAccessError(f"Failed to read sheet {sheet_name}") from e
    return response.get("values", []) or []


def append_rows(sheet_name: str, rows: Sequence[Sequence[Any]]) -> Dict[str, Any]:
    """Append rows after the last non-empty row of a sheet."""
    spreadsheet = _get_spreadsheet()
    try:
        result = spreadsheet.values_append(
            sheet_name,
            params={"valueInputOption": VALUE_INPUT_OPTION},
            body={"values": [list(row) for row in rows]},
        )
    except Exception as e:
        logger.error(f"Error appending {len(rows)} row(s) to sheet {sheet_name}: {e}")
        raise StoreAccessError(f"Failed to append to sheet {sheet_name}") from e
    logger.debug(f"Appended {len(rows)} row(s) to sheet {sheet_name}")
    return result


def update_range(
    sheet_name: str, a1_range: str, rows: Sequence[Sequence[Any]]
) -> Dict[str, Any]:
    """Overwrite the cells of a rectangular range."""
    spreadsheet = _get_spreadsheet()
    full_range = _full_range(sheet_name, a1_range)
    try:
        result = spreadsheet.values_update(
            full_range,
            params={"valueInputOption": VALUE_INPUT_OPTION},
            body={"values": [list(row) for row in rows]},
        )
    except Exception as e:
        logger.error(f"Error updating range {full_range}: {e}")
        raise StoreAccessError(f"Failed to update sheet {sheet_name}") from e
    logger.debug(f"Updated range {full_range}")
    return result


def clear_range(sheet_name: str, a1_range: str) -> Dict[str, Any]:
    """Blank the cells of a range without removing rows."""
    spreadsheet = _get_spreadsheet()
    full_range = _full_range(sheet_name, a1_range)
    try:
        result = spreadsheet.values_clear(full_range)
    except Exception as e:
        logger.error(f"Error clearing range {full_range}: {e}")
        raise StoreAccessError(f"Failed to clear sheet {sheet_name}") from e
    logger.debug(f"Cleared range {full_range}")
    return result


def delete_row(sheet_name: str, row_index: int) -> Dict[str, Any]:
    """
    Physically remove one row from a sheet.

    Args:
        sheet_name: Worksheet name
        row_index: 0-based row index (the header is row 0 and cannot be deleted)

    Raises:
        SheetNotFoundError: If no worksheet has this name
        StoreAccessError: On any other API failure
    """
    if row_index < 1:
        raise ValueError(f"Refusing to delete row {row_index} of sheet {sheet_name}")

    spreadsheet = _get_spreadsheet()
    try:
        worksheet = spreadsheet.worksheet(sheet_name)
    except WorksheetNotFound as e:
        logger.error(f"Sheet {sheet_name} not found while deleting row {row_index}")
        raise SheetNotFoundError(f'Sheet "{sheet_name}" not found') from e
    except Exception as e:
        logger.error(f"Error resolving sheet {sheet_name}: {e}")
        raise StoreAccessError(f"Failed to read sheet {sheet_name}") from e

    body = {
        "requests": [
            {
                "deleteDimension": {
                    "range": {
                        "sheetId": worksheet.id,
                        "dimension": "ROWS",
                        "startIndex": row_index,
                        "endIndex": row_index + 1,
                    }
                }
            }
        ]
    }
    try:
        result = spreadsheet.batch_update(body)
    except Exception as e:
        logger.error(f"Error deleting row {row_index} from sheet {sheet_name}: {e}")
        raise StoreAccessError(f"Failed to delete from sheet {sheet_name}") from e
    logger.info(f"Deleted row {row_index} from sheet {sheet_name}")
    return result
