"""
Validation shared by the direct and presigned video upload flows.

Every check raises ValidationError with a message meant for the admin UI.
"""

import os
from typing import Any, Iterable, List, Optional

from matchreel.models.schemas import VideoType
from matchreel.services import video_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import ValidationError
from matchreel.utils.constants import ALLOWED_VIDEO_EXTENSIONS, BYTES_PER_MB


def validate_video_id(video_id: Any) -> int:
    if isinstance(video_id, bool) or not isinstance(video_id, int) or video_id <= 0:
        raise ValidationError("Invalid video ID")
    return video_id


def validate_video_type(video_type: Optional[str]) -> str:
    """Check the stage label is one of the fixed tournament stages."""
    if not video_type or not isinstance(video_type, str) or not video_type.strip():
        raise ValidationError("Please select a video type")
    video_type = video_type.strip()
    if video_type not in VideoType.labels():
        raise ValidationError(f"Unknown video type: {video_type}")
    return video_type


def validate_player_ids(player_ids: Optional[Iterable[Any]]) -> List[int]:
    """Keep the positive integer IDs; at least one is required."""
    valid: List[int] = []
    for value in player_ids or []:
        try:
            player_id = int(value)
        except (TypeError, ValueError):
            continue
        if player_id > 0 and player_id not in valid:
            valid.append(player_id)
    if not valid:
        raise ValidationError("Please select at least one player")
    return valid


def validate_file_name(file_name: Optional[str]) -> str:
    """Check a file name is present and carries an allowed video extension."""
    if not file_name or not isinstance(file_name, str) or not file_name.strip():
        raise ValidationError("Please select a video file")
    extension = os.path.splitext(file_name)[1].lower()
    if extension not in ALLOWED_VIDEO_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file type: {file_name} "
            f"({', '.join(ALLOWED_VIDEO_EXTENSIONS)} only)"
        )
    return file_name


def validate_file_size(file_name: str, file_size: Optional[int], max_bytes: int) -> int:
    if file_size is None or file_size <= 0:
        raise ValidationError(f"File is empty: {file_name}")
    if file_size > max_bytes:
        raise ValidationError(
            f"File is too large: {file_name} (max {max_bytes // BYTES_PER_MB}MB)"
        )
    return file_size


async def ensure_name_available(
    file_name: str,
    cache: Optional[RequestCache] = None,
    allow_video_id: Optional[int] = None,
) -> None:
    """
    Reject a file name already used as the key of a live video.

    Always reads the sheet directly, never a cached listing.

    Args:
        file_name: Proposed object key
        allow_video_id: Video that may keep its own current name (replace flows)
    """
    existing = await video_service.get_video_by_name(file_name, cache, fresh=True)
    if existing is not None and existing.id != allow_video_id:
        raise ValidationError(f'A video named "{file_name}" already exists')
