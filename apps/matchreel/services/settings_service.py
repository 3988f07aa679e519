"""
Settings service for runtime configuration.

Values come from environment variables (optionally loaded from a .env file)
and are read at call time, not import time, so tests and deployments can
change them without reloading modules.
"""

import os
import logging
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from matchreel.utils.constants import BYTES_PER_MB

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Upload ceilings differ per flow; each one is configured on its own.
DEFAULT_MAX_DIRECT_CREATE_UPLOAD_MB = 900
DEFAULT_MAX_DIRECT_UPDATE_UPLOAD_MB = 500
DEFAULT_MAX_PRESIGNED_UPLOAD_MB = 2048

DEFAULT_DOWNLOAD_URL_EXPIRES_SECONDS = 3600
DEFAULT_UPLOAD_URL_EXPIRES_SECONDS = 3600
DEFAULT_SHEET_CACHE_TTL_SECONDS = 300


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable from a string value.

    Args:
        key: Environment variable name
        default: Default value if the variable is not set

    Returns:
        bool: Parsed boolean value
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def get_int_env(key: str, default: int) -> int:
    """
    Parse an integer environment variable, falling back to ``default``
    when it is unset, blank, non-numeric or not positive.
    """
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        logger.warning(f"Invalid integer value for {key}: {value!r}, using {default}")
        return default
    if parsed <= 0:
        logger.warning(f"Non-positive value for {key}: {parsed}, using {default}")
        return default
    return parsed


def get_upload_limits() -> Dict[str, int]:
    """
    Get the maximum accepted file size, in bytes, for each upload flow.

    Returns:
        dict with keys ``direct_create``, ``direct_update`` and ``presigned``
    """
    return {
        "direct_create": get_int_env(
            "MAX_DIRECT_CREATE_UPLOAD_MB", DEFAULT_MAX_DIRECT_CREATE_UPLOAD_MB
        ) * BYTES_PER_MB,
        "direct_update": get_int_env(
            "MAX_DIRECT_UPDATE_UPLOAD_MB", DEFAULT_MAX_DIRECT_UPDATE_UPLOAD_MB
        ) * BYTES_PER_MB,
        "presigned": get_int_env(
            "MAX_PRESIGNED_UPLOAD_MB", DEFAULT_MAX_PRESIGNED_UPLOAD_MB
        ) * BYTES_PER_MB,
    }


def get_download_url_expires_seconds() -> int:
    return get_int_env("DOWNLOAD_URL_EXPIRES_SECONDS", DEFAULT_DOWNLOAD_URL_EXPIRES_SECONDS)


def get_upload_url_expires_seconds() -> int:
    return get_int_env("UPLOAD_URL_EXPIRES_SECONDS", DEFAULT_UPLOAD_URL_EXPIRES_SECONDS)


def get_sheet_cache_ttl_seconds() -> int:
    return get_int_env("SHEET_CACHE_TTL_SECONDS", DEFAULT_SHEET_CACHE_TTL_SECONDS)


def get_admin_credentials() -> Tuple[Optional[str], Optional[str]]:
    """
    Get the shared admin username and password.

    Either value may be None; callers treat that as a server misconfiguration.
    """
    return os.getenv("ADMIN_USER") or None, os.getenv("ADMIN_PASSWORD") or None
