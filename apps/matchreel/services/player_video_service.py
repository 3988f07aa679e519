"""
Player-video association repository backed by the ``player_videos`` sheet.

Columns: A = id, B = player_id, C = video_id. Associations are retired by
writing 0 into player_id; the row stays so its ID is never handed out again.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Sequence

from matchreel.models.schemas import (
    CreatePlayerVideoData,
    PlayerVideo,
    PlayerVideoWithDetails,
    UpdatePlayerVideoData,
)
from matchreel.services import cache_service, player_service, sheets_service, video_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import CreateError, NotFoundError, RepositoryError
from matchreel.utils.constants import PLAYER_VIDEOS_SHEET, REMOVED_REFERENCE_ID
from matchreel.utils import sheet_rows

logger = logging.getLogger(__name__)

SHEET_NAME = PLAYER_VIDEOS_SHEET
PLAYER_VIDEO_NOT_FOUND = "Player-video association not found"

PLAYER_ID_COLUMN = 1


def _to_player_video(row: Sequence[Any]) -> PlayerVideo:
    return PlayerVideo(
        id=sheet_rows.to_int(sheet_rows.cell(row, 0)),
        player_id=sheet_rows.to_int(sheet_rows.cell(row, 1)),
        video_id=sheet_rows.to_int(sheet_rows.cell(row, 2)),
    )


def _to_row(player_video: PlayerVideo) -> List[Any]:
    return [player_video.id, player_video.player_id, player_video.video_id]


async def list_player_videos(cache: Optional[RequestCache] = None) -> List[PlayerVideo]:
    """
    Get every live association in sheet order.

    Raises:
        RepositoryError: If the sheet cannot be read
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, cache)
    except Exception as e:
        logger.error(f"Error fetching player videos: {e}")
        raise RepositoryError("Failed to load player-video associations") from e
    return [pv for pv in sheet_rows.map_rows(rows, _to_player_video) if pv.is_valid()]


async def get_player_video_by_id(
    player_video_id: int, cache: Optional[RequestCache] = None
) -> Optional[PlayerVideo]:
    player_videos = await list_player_videos(cache)
    return next((pv for pv in player_videos if pv.id == player_video_id), None)


async def get_videos_by_player_id(
    player_id: int, cache: Optional[RequestCache] = None
) -> List[PlayerVideoWithDetails]:
    """
    Get a player's associations joined with player and video details.

    Associations whose player or video no longer resolves are left out
    without raising.

    Raises:
        RepositoryError: If any of the three sheets cannot be read
    """
    player_videos, players, videos = await asyncio.gather(
        list_player_videos(cache),
        player_service.list_players(cache),
        video_service.list_videos(cache),
    )
    players_by_id = {p.id: p for p in players}
    videos_by_id = {v.id: v for v in videos}

    results = []
    for mapping in player_videos:
        if mapping.player_id != player_id:
            continue
        player = players_by_id.get(mapping.player_id)
        video = videos_by_id.get(mapping.video_id)
        if player is None or video is None:
            logger.debug(
                f"Skipping orphaned association {mapping.id} "
                f"(player {mapping.player_id}, video {mapping.video_id})"
            )
            continue
        results.append(
            PlayerVideoWithDetails(
                **mapping.model_dump(),
                player_name=player.name,
                video_name=video.name,
                video_type=video.type,
            )
        )
    return results


async def create_player_video(
    data: CreatePlayerVideoData, cache: Optional[RequestCache] = None
) -> PlayerVideo:
    """
    Append one association with the next free ID.

    Raises:
        CreateError: If the sheet cannot be read or appended to
    """
    created = await create_player_videos([data], cache)
    return created[0]


async def create_player_videos(
    data_list: Sequence[CreatePlayerVideoData], cache: Optional[RequestCache] = None
) -> List[PlayerVideo]:
    """
    Append several associations in one call, with contiguous IDs.

    Empty input returns [] without touching the sheet.

    Raises:
        CreateError: If the sheet cannot be read or appended to. Nothing is
            written in that case.
    """
    if not data_list:
        return []

    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        first_id = sheet_rows.next_id(rows)
        player_videos = [
            PlayerVideo(id=first_id + offset, player_id=data.player_id, video_id=data.video_id)
            for offset, data in enumerate(data_list)
        ]
        await asyncio.to_thread(
            sheets_service.append_rows, SHEET_NAME, [_to_row(pv) for pv in player_videos]
        )
    except Exception as e:
        logger.error(f"Error creating {len(data_list)} player video mapping(s): {e}")
        raise CreateError("Failed to create player-video association") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Created player video mappings {[pv.id for pv in player_videos]}")
    return player_videos


async def update_player_video(
    data: UpdatePlayerVideoData, cache: Optional[RequestCache] = None
) -> PlayerVideo:
    """
    Overwrite an association row in place.

    Raises:
        NotFoundError: If no live association has ``data.id``
        RepositoryError: On any store failure
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        position = sheet_rows.find_position(
            sheet_rows.map_rows(rows, _to_player_video), data.id, PlayerVideo.is_valid
        )
        if position is None:
            raise NotFoundError(PLAYER_VIDEO_NOT_FOUND)

        player_video = PlayerVideo(id=data.id, player_id=data.player_id, video_id=data.video_id)
        row_number = sheet_rows.sheet_row_number(position)
        await asyncio.to_thread(
            sheets_service.update_range,
            SHEET_NAME,
            sheet_rows.row_range(row_number, 0, 2),
            [_to_row(player_video)],
        )
    except NotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error updating player video mapping {data.id}: {e}")
        raise RepositoryError("Failed to update player-video association") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    return player_video


async def _retire_positions(positions: Iterable[int]) -> None:
    for position in positions:
        row_number = sheet_rows.sheet_row_number(position)
        await asyncio.to_thread(
            sheets_service.update_range,
            SHEET_NAME,
            sheet_rows.row_range(row_number, PLAYER_ID_COLUMN),
            [[REMOVED_REFERENCE_ID]],
        )


async def delete_player_video(player_video_id: int, cache: Optional[RequestCache] = None) -> None:
    """
    Retire one association.

    Raises:
        NotFoundError: If no live association has this ID
        RepositoryError: On any store failure
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        position = sheet_rows.find_position(
            sheet_rows.map_rows(rows, _to_player_video), player_video_id, PlayerVideo.is_valid
        )
        if position is None:
            raise NotFoundError(PLAYER_VIDEO_NOT_FOUND)
        await _retire_positions([position])
    except NotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error deleting player video mapping {player_video_id}: {e}")
        raise RepositoryError("Failed to delete player-video association") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)


async def _delete_matching(
    description: str,
    predicate,
    cache: Optional[RequestCache],
) -> int:
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        positions = [
            position
            for position, pv in enumerate(sheet_rows.map_rows(rows, _to_player_video))
            if pv.is_valid() and predicate(pv)
        ]
        await _retire_positions(positions)
    except Exception as e:
        logger.error(f"Error deleting player video mappings for {description}: {e}")
        raise RepositoryError("Failed to delete player-video associations") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    if positions:
        logger.info(f"Retired {len(positions)} player video mapping(s) for {description}")
    return len(positions)


async def delete_player_videos_by_video_id(
    video_id: int, cache: Optional[RequestCache] = None
) -> int:
    """Retire every association that points at a video. Returns how many."""
    return await _delete_matching(f"video {video_id}", lambda pv: pv.video_id == video_id, cache)


async def delete_player_videos_by_player_id(
    player_id: int, cache: Optional[RequestCache] = None
) -> int:
    """Retire every association that points at a player. Returns how many."""
    return await _delete_matching(f"player {player_id}", lambda pv: pv.player_id == player_id, cache)
