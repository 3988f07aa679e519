"""Admin video list, detail, direct upload and delete route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from matchreel.api.routes import action_response
from matchreel.models.schemas import ActionResult, VideoActionResult, VideoWithPlayers
from matchreel.services import video_actions, video_service
from matchreel.services.cache_service import RequestCache, get_request_cache

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/videos", response_model=List[VideoWithPlayers])
async def list_videos(cache: RequestCache = Depends(get_request_cache)):
    """Get every live video with its players."""
    try:
        return await video_service.list_videos_with_players(cache)
    except Exception as e:
        logger.error(f"Error listing videos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load videos")


@router.get("/videos/{video_id}", response_model=VideoWithPlayers)
async def get_video(video_id: int, cache: RequestCache = Depends(get_request_cache)):
    """Get one video with its players, for the edit form."""
    try:
        videos = await video_service.list_videos_with_players(cache)
    except Exception as e:
        logger.error(f"Error fetching video {video_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load video")

    video = next((v for v in videos if v.id == video_id), None)
    if video is None:
        raise HTTPException(status_code=404, detail=video_service.VIDEO_NOT_FOUND)
    return video


@router.post("/videos", response_model=VideoActionResult)
async def create_video(
    file: Optional[UploadFile] = File(None),
    type: Optional[str] = Form(None),
    player_ids: Optional[List[int]] = Form(None),
    cache: RequestCache = Depends(get_request_cache),
):
    """
    Upload a video through the server (multipart form).

    Fields: file, type (stage label), player_ids (repeated).
    """
    result = await video_actions.create_video_action(file, type, player_ids, cache)
    return action_response(result)


@router.put("/videos/{video_id}", response_model=VideoActionResult)
async def update_video(
    video_id: int,
    file: Optional[UploadFile] = File(None),
    type: Optional[str] = Form(None),
    player_ids: Optional[List[int]] = Form(None),
    cache: RequestCache = Depends(get_request_cache),
):
    """Update a video's stage and players; a new file replaces the stored one."""
    result = await video_actions.update_video_action(video_id, type, player_ids, file, cache)
    return action_response(result)


@router.delete("/videos/{video_id}", response_model=ActionResult)
async def delete_video(video_id: int, cache: RequestCache = Depends(get_request_cache)):
    """Delete a video, its associations and its stored file."""
    result = await video_actions.delete_video_action(video_id, cache)
    return action_response(result)
