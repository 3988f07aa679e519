"""Admin presigned upload route handlers (single and bulk)."""

from fastapi import APIRouter, Depends

from matchreel.api.routes import action_response
from matchreel.models.schemas import (
    BulkConfirmRequest,
    BulkConfirmResult,
    BulkUploadUrlsRequest,
    BulkUploadUrlsResult,
    ConfirmUploadRequest,
    UploadUrlRequest,
    UploadUrlResult,
    VideoActionResult,
)
from matchreel.services import upload_service
from matchreel.services.cache_service import RequestCache, get_request_cache

router = APIRouter()


@router.post("/videos/bulk/upload-urls", response_model=BulkUploadUrlsResult)
async def bulk_upload_urls(
    payload: BulkUploadUrlsRequest, cache: RequestCache = Depends(get_request_cache)
):
    """
    Get one presigned PUT URL per file of a batch.

    Body: {"files": [{"file_name", "content_type", "file_size"}, ...]}
    """
    result = await upload_service.bulk_generate_upload_urls(payload.files, cache)
    return action_response(result)


@router.post("/videos/bulk/confirm", response_model=BulkConfirmResult)
async def bulk_confirm(
    payload: BulkConfirmRequest, cache: RequestCache = Depends(get_request_cache)
):
    """Record a batch of uploaded files under one stage label, without players."""
    result = await upload_service.bulk_confirm_uploads(payload.video_names, payload.type, cache)
    return action_response(result)


@router.post("/videos/upload-url", response_model=UploadUrlResult)
async def upload_url(payload: UploadUrlRequest, cache: RequestCache = Depends(get_request_cache)):
    """Get a presigned PUT URL for a new video."""
    result = await upload_service.generate_upload_url(
        payload.file_name, payload.content_type, payload.file_size, cache
    )
    return action_response(result)


@router.post("/videos/confirm", response_model=VideoActionResult)
async def confirm(payload: ConfirmUploadRequest, cache: RequestCache = Depends(get_request_cache)):
    """Record a new video once its presigned upload finished."""
    result = await upload_service.confirm_upload(
        payload.video_name, payload.type, payload.player_ids, cache
    )
    return action_response(result)


@router.post("/videos/{video_id}/upload-url", response_model=UploadUrlResult)
async def update_upload_url(
    video_id: int,
    payload: UploadUrlRequest,
    cache: RequestCache = Depends(get_request_cache),
):
    """Get a presigned PUT URL for a file replacing an existing video's."""
    result = await upload_service.generate_update_upload_url(
        video_id, payload.file_name, payload.content_type, payload.file_size, cache
    )
    return action_response(result)


@router.post("/videos/{video_id}/confirm", response_model=VideoActionResult)
async def update_confirm(
    video_id: int,
    payload: ConfirmUploadRequest,
    cache: RequestCache = Depends(get_request_cache),
):
    """Re-point an existing video at its newly uploaded file."""
    result = await upload_service.confirm_update_upload(
        video_id, payload.video_name, payload.type, payload.player_ids, cache
    )
    return action_response(result)
