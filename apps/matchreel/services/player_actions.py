"""
Admin actions for players.

Each action validates its input, calls the player repository and turns every
outcome into a PlayerActionResult / ActionResult instead of raising.
"""

import logging
from typing import Any, Optional

from matchreel.models.schemas import (
    ActionResult,
    CreatePlayerData,
    PlayerActionResult,
    UpdatePlayerData,
)
from matchreel.services import player_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import (
    NotFoundError,
    SheetNotFoundError,
    ValidationError,
)
from matchreel.utils.constants import PLAYER_NAME_MAX_LENGTH

logger = logging.getLogger(__name__)

INVALID_PLAYER_ID = "Invalid player ID"


def validate_player_id(player_id: Any) -> int:
    if isinstance(player_id, bool) or not isinstance(player_id, int) or player_id <= 0:
        raise ValidationError(INVALID_PLAYER_ID)
    return player_id


def validate_player_name(name: Optional[str]) -> str:
    """Trim a player name and check it is present and short enough."""
    if not name or not isinstance(name, str) or not name.strip():
        raise ValidationError("Please enter a player name")
    name = name.strip()
    if len(name) > PLAYER_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Player name must be {PLAYER_NAME_MAX_LENGTH} characters or fewer"
        )
    return name


async def create_player_action(
    name: Optional[str], cache: Optional[RequestCache] = None
) -> PlayerActionResult:
    try:
        clean_name = validate_player_name(name)
        player = await player_service.create_player(CreatePlayerData(name=clean_name), cache)
        return PlayerActionResult(success=True, player=player)
    except ValidationError as e:
        return PlayerActionResult.failure(str(e), status_code=400)
    except Exception as e:
        logger.error(f"Error in create_player_action: {e}", exc_info=True)
        return PlayerActionResult.failure("Failed to create player", status_code=500)


async def update_player_action(
    player_id: Any, name: Optional[str], cache: Optional[RequestCache] = None
) -> PlayerActionResult:
    try:
        player_id = validate_player_id(player_id)
        clean_name = validate_player_name(name)
        player = await player_service.update_player(
            UpdatePlayerData(id=player_id, name=clean_name), cache
        )
        return PlayerActionResult(success=True, player=player)
    except ValidationError as e:
        return PlayerActionResult.failure(str(e), status_code=400)
    except NotFoundError as e:
        return PlayerActionResult.failure(str(e), status_code=404)
    except Exception as e:
        logger.error(f"Error in update_player_action: {e}", exc_info=True)
        return PlayerActionResult.failure("Failed to update player", status_code=500)


async def delete_player_action(player_id: Any, cache: Optional[RequestCache] = None) -> ActionResult:
    try:
        player_id = validate_player_id(player_id)
        await player_service.delete_player(player_id, cache)
        return ActionResult(success=True)
    except ValidationError as e:
        return ActionResult.failure(str(e), status_code=400)
    except NotFoundError as e:
        return ActionResult.failure(str(e), status_code=404)
    except SheetNotFoundError as e:
        logger.error(f"Error in delete_player_action: {e}")
        return ActionResult.failure(str(e), status_code=500)
    except Exception as e:
        logger.error(f"Error in delete_player_action: {e}", exc_info=True)
        return ActionResult.failure("Failed to delete player", status_code=500)
