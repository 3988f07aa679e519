"""
Admin and public actions for videos that go through the server: direct
multipart create/update, delete and download links.

Presigned flows live in upload_service.
"""

import asyncio
import logging
import os
from typing import Any, Iterable, Optional

from fastapi import UploadFile

from matchreel.models.schemas import (
    ActionResult,
    CreateVideoData,
    DownloadResult,
    UpdateVideoData,
    VideoActionResult,
)
from matchreel.services import s3_service, settings_service, video_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import NotFoundError, StorageError, ValidationError
from matchreel.services.upload_service import (
    delete_object_best_effort,
    failure_result,
    replace_video_file,
)
from matchreel.services.upload_validation import (
    ensure_name_available,
    validate_file_name,
    validate_file_size,
    validate_player_ids,
    validate_video_id,
    validate_video_type,
)
from matchreel.services.video_service import VIDEO_NOT_FOUND
from matchreel.utils.constants import DEFAULT_VIDEO_CONTENT_TYPE

logger = logging.getLogger(__name__)


def _file_size(file: UploadFile) -> int:
    """Size of an uploaded file, measured from the spooled body if not reported."""
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


async def _store_upload(file: UploadFile, key: str) -> None:
    await file.seek(0)
    await asyncio.to_thread(
        s3_service.upload_video,
        key,
        file.file,
        file.content_type or DEFAULT_VIDEO_CONTENT_TYPE,
    )


async def create_video_action(
    file: Optional[UploadFile],
    video_type: Optional[str],
    player_ids: Optional[Iterable[Any]],
    cache: Optional[RequestCache] = None,
) -> VideoActionResult:
    """
    Upload a file through the server and record it with its players.

    The object is stored first; if recording fails afterwards the object is
    left in storage and the error is reported.
    """
    if cache is None:
        cache = RequestCache()
    try:
        if file is None or not file.filename:
            raise ValidationError("Please select a video file")
        video_type = validate_video_type(video_type)
        valid_player_ids = validate_player_ids(player_ids)
        file_name = validate_file_name(file.filename)
        validate_file_size(
            file_name, _file_size(file), settings_service.get_upload_limits()["direct_create"]
        )
        await ensure_name_available(file_name, cache)

        await _store_upload(file, file_name)
        video = await video_service.create_video_with_players(
            CreateVideoData(name=file_name, type=video_type), valid_player_ids, cache
        )
        logger.info(f"Created video {video.id} from direct upload {file_name}")
        return VideoActionResult(success=True, video=video)
    except StorageError as e:
        logger.error(f"Error in create_video_action: {e}")
        return VideoActionResult.failure("Failed to upload the video file", status_code=500)
    except Exception as e:
        return failure_result(VideoActionResult, e, "Failed to create video", "create_video_action")


async def update_video_action(
    video_id: Any,
    video_type: Optional[str],
    player_ids: Optional[Iterable[Any]],
    file: Optional[UploadFile] = None,
    cache: Optional[RequestCache] = None,
) -> VideoActionResult:
    """
    Update a video's stage and players, optionally replacing its file.

    With a new file: store it, re-point the record, then delete the old
    object if the key changed. Without one only the row and the
    associations change.
    """
    if cache is None:
        cache = RequestCache()
    try:
        video_id = validate_video_id(video_id)
        video_type = validate_video_type(video_type)
        valid_player_ids = validate_player_ids(player_ids)

        existing = await video_service.get_video_by_id(video_id, cache)
        if existing is None:
            raise NotFoundError(VIDEO_NOT_FOUND)

        if file is None or not file.filename:
            video = await video_service.update_video(
                UpdateVideoData(id=video_id, name=existing.name, type=video_type), cache
            )
            await video_service.update_video_players(video_id, valid_player_ids, cache)
            return VideoActionResult(success=True, video=video)

        file_name = validate_file_name(file.filename)
        validate_file_size(
            file_name, _file_size(file), settings_service.get_upload_limits()["direct_update"]
        )
        await ensure_name_available(file_name, cache, allow_video_id=existing.id)

        await _store_upload(file, file_name)
        video = await replace_video_file(existing, file_name, video_type, valid_player_ids, cache)
        logger.info(f"Replaced file of video {video.id} with {file_name}")
        return VideoActionResult(success=True, video=video)
    except StorageError as e:
        logger.error(f"Error in update_video_action: {e}")
        return VideoActionResult.failure("Failed to upload the video file", status_code=500)
    except Exception as e:
        return failure_result(VideoActionResult, e, "Failed to update video", "update_video_action")


async def delete_video_action(video_id: Any, cache: Optional[RequestCache] = None) -> ActionResult:
    """Soft-delete a video and its associations, then remove the stored file."""
    if cache is None:
        cache = RequestCache()
    try:
        video_id = validate_video_id(video_id)
        video = await video_service.get_video_by_id(video_id, cache)
        if video is None:
            raise NotFoundError(VIDEO_NOT_FOUND)

        await video_service.delete_video(video_id, cache)
        await delete_object_best_effort(video.name, reason="deleted video")
        return ActionResult(success=True)
    except Exception as e:
        return failure_result(ActionResult, e, "Failed to delete video", "delete_video_action")


async def download_video(video_name: Optional[str]) -> DownloadResult:
    """Hand out a time-limited download link for a stored video."""
    try:
        if not video_name or not isinstance(video_name, str) or not video_name.strip():
            raise ValidationError("Invalid file name")

        exists = await asyncio.to_thread(s3_service.video_exists, video_name)
        if not exists:
            raise NotFoundError("Video file not found")

        download_url = await asyncio.to_thread(
            s3_service.generate_download_url,
            video_name,
            settings_service.get_download_url_expires_seconds(),
        )
        return DownloadResult(success=True, download_url=download_url)
    except Exception as e:
        return failure_result(
            DownloadResult, e, "Failed to prepare the video download", "download_video"
        )
