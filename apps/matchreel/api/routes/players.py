"""Admin player list, create, rename and delete route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from matchreel.api.routes import action_response
from matchreel.models.schemas import (
    ActionResult,
    Player,
    PlayerActionResult,
    PlayerNameRequest,
)
from matchreel.services import player_actions, player_service
from matchreel.services.cache_service import RequestCache, get_request_cache

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/players", response_model=List[Player])
async def list_players(cache: RequestCache = Depends(get_request_cache)):
    """Get the live roster."""
    try:
        return await player_service.list_players(cache)
    except Exception as e:
        logger.error(f"Error listing players: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load players")


@router.post("/players", response_model=PlayerActionResult)
async def create_player(
    payload: PlayerNameRequest, cache: RequestCache = Depends(get_request_cache)
):
    """
    Create a player.

    Body: {"name": "Alice"}. The name is trimmed and must be 1-50 characters.
    """
    result = await player_actions.create_player_action(payload.name, cache)
    return action_response(result)


@router.put("/players/{player_id}", response_model=PlayerActionResult)
async def update_player(
    player_id: int,
    payload: PlayerNameRequest,
    cache: RequestCache = Depends(get_request_cache),
):
    """Rename a player."""
    result = await player_actions.update_player_action(player_id, payload.name, cache)
    return action_response(result)


@router.delete("/players/{player_id}", response_model=ActionResult)
async def delete_player(player_id: int, cache: RequestCache = Depends(get_request_cache)):
    """Delete a player and retire every association pointing at them."""
    result = await player_actions.delete_player_action(player_id, cache)
    return action_response(result)
