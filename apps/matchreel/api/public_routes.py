"""
Public API routes - no authentication required.

Read-only roster and video listings plus download links.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from matchreel.api.routes import action_response, limiter
from matchreel.models.schemas import (
    DownloadRequest,
    DownloadResult,
    HealthResponse,
    Player,
    PlayerDetailResponse,
    VideoWithPlayers,
)
from matchreel.services import (
    player_service,
    player_video_service,
    redis_service,
    video_actions,
    video_service,
)
from matchreel.services.cache_service import RequestCache, get_request_cache

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/api", tags=["public"])


@public_router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check; also reports whether the shared cache is reachable."""
    return HealthResponse(status="ok", cache_available=await redis_service.is_redis_available())


@public_router.get("/players", response_model=List[Player])
async def list_players(cache: RequestCache = Depends(get_request_cache)):
    try:
        return await player_service.list_players(cache)
    except Exception as e:
        logger.error(f"Error listing players: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load players")


@public_router.get("/players/{player_id}", response_model=PlayerDetailResponse)
async def get_player(player_id: int, cache: RequestCache = Depends(get_request_cache)):
    """Get a player and the videos they appear in."""
    try:
        player = await player_service.get_player_by_id(player_id, cache)
        if player is None:
            raise HTTPException(status_code=404, detail=player_service.PLAYER_NOT_FOUND)
        videos = await player_video_service.get_videos_by_player_id(player_id, cache)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching player {player_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load player")
    return PlayerDetailResponse(player=player, videos=videos)


@public_router.get("/videos", response_model=List[VideoWithPlayers])
async def list_videos(cache: RequestCache = Depends(get_request_cache)):
    try:
        return await video_service.list_videos_with_players(cache)
    except Exception as e:
        logger.error(f"Error listing videos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load videos")


@public_router.post("/videos/download", response_model=DownloadResult)
@limiter.limit("30/minute")
async def download_video(request: Request, payload: DownloadRequest):
    """
    Get a time-limited download URL for a stored video.

    Body: {"video_name": "final.mp4"}
    """
    result = await video_actions.download_video(payload.video_name)
    return action_response(result)
