"""
Upload orchestration for video files.

Large files never pass through the server. A presigned upload runs in
three steps:

1. the admin asks for a presigned PUT URL (``generate_upload_url``), after
   the file name, size and key availability are checked;
2. the browser PUTs the bytes straight to the bucket;
3. the admin confirms (``confirm_upload``). The server checks the object
   really exists before it writes any row.

Nothing here retries or rolls back. A failed step ends the flow with an
error result; a superseded object that cannot be deleted is only logged.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence, Type, TypeVar

from matchreel.models.schemas import (
    ActionResult,
    BulkConfirmResult,
    BulkUploadItem,
    BulkUploadUrlsResult,
    CreateVideoData,
    UpdateVideoData,
    UploadUrlRequest,
    UploadUrlResult,
    Video,
    VideoActionResult,
)
from matchreel.services import s3_service, settings_service, video_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import (
    NotFoundError,
    PartialFailureError,
    UploadNotCompleteError,
    ValidationError,
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

PARTIAL_FAILURE_MESSAGE = (
    "Partial failure: the stored video file was replaced but its record could "
    "not be updated. Please upload the file again."
)

R = TypeVar("R", bound=ActionResult)


def failure_result(result_cls: Type[R], error: Exception, generic_message: str, operation: str) -> R:
    """
    Turn an exception into a failed action result.

    Validation and not-found messages are passed through; anything else is
    logged in full and replaced by ``generic_message``.
    """
    if isinstance(error, NotFoundError):
        return result_cls.failure(str(error), status_code=404)
    if isinstance(error, ValidationError):
        return result_cls.failure(str(error), status_code=400)
    if isinstance(error, PartialFailureError):
        logger.error(f"Partial failure in {operation}: {error.__cause__}")
        return result_cls.failure(str(error), status_code=500)
    logger.error(f"Error in {operation}: {error}", exc_info=True)
    return result_cls.failure(generic_message, status_code=500)


async def delete_object_best_effort(key: str, reason: str) -> bool:
    """Delete an object without failing the caller. Returns True if it was deleted."""
    try:
        await asyncio.to_thread(s3_service.delete_video, key)
        return True
    except Exception as e:
        logger.warning(f"Could not delete {reason} {key} from storage, continuing: {e}")
        return False


async def _require_object(key: str) -> None:
    exists = await asyncio.to_thread(s3_service.video_exists, key)
    if not exists:
        raise UploadNotCompleteError(f"Upload not complete: {key} was not found in storage")


async def _require_video(video_id: int, cache: RequestCache) -> Video:
    video = await video_service.get_video_by_id(video_id, cache)
    if video is None:
        raise NotFoundError(VIDEO_NOT_FOUND)
    return video


async def _presign_upload(file_name: str, content_type: Optional[str]) -> str:
    return await asyncio.to_thread(
        s3_service.generate_upload_url,
        file_name,
        content_type or DEFAULT_VIDEO_CONTENT_TYPE,
        settings_service.get_upload_url_expires_seconds(),
    )


async def replace_video_file(
    existing: Video,
    new_name: str,
    video_type: str,
    player_ids: Iterable[int],
    cache: Optional[RequestCache] = None,
) -> Video:
    """
    Point a video's record at a newly stored file, then clean up.

    Called once the new object is already in storage. The record is written
    first; the superseded object is deleted only after that succeeds.

    Raises:
        PartialFailureError: The new file overwrote the old one under the
            same key, but the record could not be updated
        RepositoryError: The record could not be updated (the new object is
            removed again when it has its own key), or players failed to update
    """
    replaced_in_place = new_name == existing.name
    try:
        video = await video_service.update_video(
            UpdateVideoData(id=existing.id, name=new_name, type=video_type), cache
        )
    except Exception as e:
        if replaced_in_place:
            raise PartialFailureError(PARTIAL_FAILURE_MESSAGE) from e
        await delete_object_best_effort(new_name, reason="unrecorded upload")
        raise

    if not replaced_in_place:
        await delete_object_best_effort(existing.name, reason="superseded video")

    await video_service.update_video_players(existing.id, player_ids, cache)
    return video


# ---------------------------------------------------------------------------
# Single video, presigned
# ---------------------------------------------------------------------------


async def generate_upload_url(
    file_name: Optional[str],
    content_type: Optional[str],
    file_size: Optional[int],
    cache: Optional[RequestCache] = None,
) -> UploadUrlResult:
    """Step 1 of a new upload: validate the file and hand out a PUT URL."""
    if cache is None:
        cache = RequestCache()
    try:
        file_name = validate_file_name(file_name)
        validate_file_size(file_name, file_size, settings_service.get_upload_limits()["presigned"])
        await ensure_name_available(file_name, cache)
        upload_url = await _presign_upload(file_name, content_type)
        return UploadUrlResult(success=True, upload_url=upload_url, video_name=file_name)
    except Exception as e:
        return failure_result(UploadUrlResult, e, "Failed to prepare the upload", "generate_upload_url")


async def confirm_upload(
    video_name: Optional[str],
    video_type: Optional[str],
    player_ids: Optional[Iterable[int]],
    cache: Optional[RequestCache] = None,
) -> VideoActionResult:
    """Step 3 of a new upload: verify the object, then record the video and its players."""
    if cache is None:
        cache = RequestCache()
    try:
        video_name = validate_file_name(video_name)
        video_type = validate_video_type(video_type)
        valid_player_ids = validate_player_ids(player_ids)
        await ensure_name_available(video_name, cache)
        await _require_object(video_name)

        video = await video_service.create_video_with_players(
            CreateVideoData(name=video_name, type=video_type), valid_player_ids, cache
        )
        logger.info(f"Confirmed upload of {video_name} as video {video.id}")
        return VideoActionResult(success=True, video=video)
    except Exception as e:
        return failure_result(VideoActionResult, e, "Failed to create video", "confirm_upload")


async def generate_update_upload_url(
    video_id: int,
    file_name: Optional[str],
    content_type: Optional[str],
    file_size: Optional[int],
    cache: Optional[RequestCache] = None,
) -> UploadUrlResult:
    """Step 1 of replacing a video's file. The new name may equal the current one."""
    if cache is None:
        cache = RequestCache()
    try:
        video_id = validate_video_id(video_id)
        existing = await _require_video(video_id, cache)
        file_name = validate_file_name(file_name)
        validate_file_size(file_name, file_size, settings_service.get_upload_limits()["presigned"])
        await ensure_name_available(file_name, cache, allow_video_id=existing.id)
        upload_url = await _presign_upload(file_name, content_type)
        return UploadUrlResult(success=True, upload_url=upload_url, video_name=file_name)
    except Exception as e:
        return failure_result(
            UploadUrlResult, e, "Failed to prepare the upload", "generate_update_upload_url"
        )


async def confirm_update_upload(
    video_id: int,
    video_name: Optional[str],
    video_type: Optional[str],
    player_ids: Optional[Iterable[int]],
    cache: Optional[RequestCache] = None,
) -> VideoActionResult:
    """Step 3 of replacing a video's file: verify, re-point the record, clean up."""
    if cache is None:
        cache = RequestCache()
    try:
        video_id = validate_video_id(video_id)
        video_name = validate_file_name(video_name)
        video_type = validate_video_type(video_type)
        valid_player_ids = validate_player_ids(player_ids)
        existing = await _require_video(video_id, cache)
        await ensure_name_available(video_name, cache, allow_video_id=existing.id)
        await _require_object(video_name)

        video = await replace_video_file(existing, video_name, video_type, valid_player_ids, cache)
        logger.info(f"Confirmed replacement upload {video_name} for video {video.id}")
        return VideoActionResult(success=True, video=video)
    except Exception as e:
        return failure_result(VideoActionResult, e, "Failed to update video", "confirm_update_upload")


# ---------------------------------------------------------------------------
# Bulk, presigned (all files share one type, no players)
# ---------------------------------------------------------------------------


def _reject_duplicates(file_names: Sequence[str]) -> None:
    seen = set()
    for name in file_names:
        if name in seen:
            raise ValidationError(f"Duplicate file name in selection: {name}")
        seen.add(name)


async def bulk_generate_upload_urls(
    files: Sequence[UploadUrlRequest],
    cache: Optional[RequestCache] = None,
) -> BulkUploadUrlsResult:
    """Validate every file of a batch, then hand out one PUT URL per file."""
    if cache is None:
        cache = RequestCache()
    try:
        if not files:
            raise ValidationError("Please select at least one video file")

        max_bytes = settings_service.get_upload_limits()["presigned"]
        names = [validate_file_name(f.file_name) for f in files]
        _reject_duplicates(names)
        for name, f in zip(names, files):
            validate_file_size(name, f.file_size, max_bytes)
            await ensure_name_available(name, cache)

        items = [
            BulkUploadItem(file_name=name, upload_url=await _presign_upload(name, f.content_type))
            for name, f in zip(names, files)
        ]
        return BulkUploadUrlsResult(success=True, upload_items=items)
    except Exception as e:
        return failure_result(
            BulkUploadUrlsResult, e, "Failed to prepare the uploads", "bulk_generate_upload_urls"
        )


async def bulk_confirm_uploads(
    video_names: Sequence[str],
    video_type: Optional[str],
    cache: Optional[RequestCache] = None,
) -> BulkConfirmResult:
    """
    Record a batch of uploaded files.

    Every object must exist before any row is written. One missing file fails
    the whole batch, and the error names every missing file.
    """
    if cache is None:
        cache = RequestCache()
    try:
        if not video_names:
            raise ValidationError("Please select at least one video file")
        video_type = validate_video_type(video_type)
        names = [validate_file_name(name) for name in video_names]
        _reject_duplicates(names)
        for name in names:
            await ensure_name_available(name, cache)

        exists = await asyncio.gather(
            *(asyncio.to_thread(s3_service.video_exists, name) for name in names)
        )
        missing = [name for name, found in zip(names, exists) if not found]
        if missing:
            raise UploadNotCompleteError(
                f"Upload not complete for {len(missing)} file(s): {', '.join(missing)}"
            )

        videos: List[Video] = await video_service.create_videos(
            [CreateVideoData(name=name, type=video_type) for name in names], cache
        )
        logger.info(f"Confirmed bulk upload of {len(videos)} video(s)")
        return BulkConfirmResult(success=True, videos=videos)
    except Exception as e:
        return failure_result(BulkConfirmResult, e, "Failed to create videos", "bulk_confirm_uploads")
