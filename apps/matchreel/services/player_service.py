"""
Player repository backed by the ``players`` sheet.

Columns: A = id, B = name. Deleting a player retires the player's video
associations first, then removes the row physically. The row holding the
sheet's highest ID is the exception: its name is blanked instead, so that ID
stays taken and a new player never reuses it.
"""

import asyncio
import logging
from typing import Any, List, Optional, Sequence

from matchreel.models.schemas import CreatePlayerData, Player, UpdatePlayerData
from matchreel.services import cache_service, player_video_service, sheets_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import (
    CreateError,
    NotFoundError,
    RepositoryError,
    SheetNotFoundError,
)
from matchreel.utils.constants import PLAYERS_SHEET
from matchreel.utils import sheet_rows

logger = logging.getLogger(__name__)

SHEET_NAME = PLAYERS_SHEET
PLAYER_NOT_FOUND = "Player not found"

NAME_COLUMN = 1


def _to_player(row: Sequence[Any]) -> Player:
    return Player(
        id=sheet_rows.to_int(sheet_rows.cell(row, 0)),
        name=sheet_rows.to_str(sheet_rows.cell(row, 1)),
    )


def _to_row(player: Player) -> List[Any]:
    return [player.id, player.name]


async def list_players(cache: Optional[RequestCache] = None) -> List[Player]:
    """
    Get every live player in sheet order.

    Raises:
        RepositoryError: If the sheet cannot be read
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, cache)
    except Exception as e:
        logger.error(f"Error fetching players: {e}")
        raise RepositoryError("Failed to load players") from e
    return [p for p in sheet_rows.map_rows(rows, _to_player) if p.is_valid()]


async def get_player_by_id(player_id: int, cache: Optional[RequestCache] = None) -> Optional[Player]:
    """Get one player, or None if no live player has this ID."""
    players = await list_players(cache)
    return next((p for p in players if p.id == player_id), None)


async def create_player(data: CreatePlayerData, cache: Optional[RequestCache] = None) -> Player:
    """
    Append a new player with the next free ID.

    Raises:
        CreateError: If the sheet cannot be read or appended to
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        player = Player(id=sheet_rows.next_id(rows), name=data.name)
        await asyncio.to_thread(sheets_service.append_rows, SHEET_NAME, [_to_row(player)])
    except Exception as e:
        logger.error(f"Error creating player {data.name!r}: {e}")
        raise CreateError("Failed to create player") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Created player {player.id}")
    return player


async def update_player(data: UpdatePlayerData, cache: Optional[RequestCache] = None) -> Player:
    """
    Overwrite a player's row in place.

    Raises:
        NotFoundError: If no live player has ``data.id``
        RepositoryError: On any store failure
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        position = sheet_rows.find_position(
            sheet_rows.map_rows(rows, _to_player), data.id, Player.is_valid
        )
        if position is None:
            raise NotFoundError(PLAYER_NOT_FOUND)

        player = Player(id=data.id, name=data.name)
        row_number = sheet_rows.sheet_row_number(position)
        await asyncio.to_thread(
            sheets_service.update_range,
            SHEET_NAME,
            sheet_rows.row_range(row_number, 0, 1),
            [_to_row(player)],
        )
    except NotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error updating player {data.id}: {e}")
        raise RepositoryError("Failed to update player") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Updated player {player.id}")
    return player


async def delete_player(player_id: int, cache: Optional[RequestCache] = None) -> None:
    """
    Delete a player: retire their associations, then remove the row.

    The player holding the highest ID is tombstoned (name blanked) rather
    than removed, since ``next_id`` reads the largest ID still in the sheet.

    Raises:
        NotFoundError: If no live player has this ID
        RepositoryError: On any store failure
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        position = sheet_rows.find_position(
            sheet_rows.map_rows(rows, _to_player), player_id, Player.is_valid
        )
        if position is None:
            raise NotFoundError(PLAYER_NOT_FOUND)

        await player_video_service.delete_player_videos_by_player_id(player_id, cache)

        if player_id >= sheet_rows.next_id(rows) - 1:
            await asyncio.to_thread(
                sheets_service.clear_range,
                SHEET_NAME,
                sheet_rows.row_range(sheet_rows.sheet_row_number(position), NAME_COLUMN),
            )
        else:
            # delete_row takes a 0-based index with the header at 0
            await asyncio.to_thread(sheets_service.delete_row, SHEET_NAME, position + 1)
    except (NotFoundError, SheetNotFoundError):
        raise
    except Exception as e:
        logger.error(f"Error deleting player {player_id}: {e}")
        raise RepositoryError("Failed to delete player") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Deleted player {player_id}")
