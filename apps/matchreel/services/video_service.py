"""
Video repository backed by the ``videos`` sheet.

Columns: A = id, B = name (file name and object key), C = type (stage
label). A video is deleted by blanking its name, after its player
associations have been retired.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from matchreel.models.schemas import (
    CreatePlayerVideoData,
    CreateVideoData,
    Player,
    UpdateVideoData,
    Video,
    VideoWithPlayers,
)
from matchreel.services import cache_service, player_service, player_video_service, sheets_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import CreateError, NotFoundError, RepositoryError
from matchreel.utils.constants import VIDEOS_SHEET
from matchreel.utils import sheet_rows

logger = logging.getLogger(__name__)

SHEET_NAME = VIDEOS_SHEET
VIDEO_NOT_FOUND = "Video not found"

NAME_COLUMN = 1


def _to_video(row: Sequence[Any]) -> Video:
    return Video(
        id=sheet_rows.to_int(sheet_rows.cell(row, 0)),
        name=sheet_rows.to_str(sheet_rows.cell(row, 1)),
        type=sheet_rows.to_str(sheet_rows.cell(row, 2)),
    )


def _to_row(video: Video) -> List[Any]:
    return [video.id, video.name, video.type]


def _unique_ids(ids: Iterable[int]) -> List[int]:
    """Positive IDs in first-seen order, duplicates dropped."""
    seen: Dict[int, None] = {}
    for value in ids:
        if value > 0:
            seen.setdefault(value, None)
    return list(seen)


async def list_videos(cache: Optional[RequestCache] = None, fresh: bool = False) -> List[Video]:
    """
    Get every live video in sheet order.

    ``fresh`` reads the sheet directly, skipping both cache tiers.

    Raises:
        RepositoryError: If the sheet cannot be read
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, cache, fresh=fresh)
    except Exception as e:
        logger.error(f"Error fetching videos: {e}")
        raise RepositoryError("Failed to load videos") from e
    return [v for v in sheet_rows.map_rows(rows, _to_video) if v.is_valid()]


async def get_video_by_id(video_id: int, cache: Optional[RequestCache] = None) -> Optional[Video]:
    """Get one video, or None if no live video has this ID."""
    videos = await list_videos(cache)
    return next((v for v in videos if v.id == video_id), None)


async def get_video_by_name(
    name: str, cache: Optional[RequestCache] = None, fresh: bool = False
) -> Optional[Video]:
    """Get the live video stored under an object key, if any."""
    videos = await list_videos(cache, fresh=fresh)
    return next((v for v in videos if v.name == name), None)


async def list_videos_with_players(cache: Optional[RequestCache] = None) -> List[VideoWithPlayers]:
    """
    Get every live video with the players associated to it.

    Players are listed in association order; associations pointing at a
    missing player are skipped.
    """
    videos, player_videos, players = await asyncio.gather(
        list_videos(cache),
        player_video_service.list_player_videos(cache),
        player_service.list_players(cache),
    )
    players_by_id = {p.id: p for p in players}

    players_by_video: Dict[int, List[Player]] = {}
    for mapping in player_videos:
        player = players_by_id.get(mapping.player_id)
        if player is not None:
            players_by_video.setdefault(mapping.video_id, []).append(player)

    return [
        VideoWithPlayers(**video.model_dump(), players=players_by_video.get(video.id, []))
        for video in videos
    ]


async def create_video(data: CreateVideoData, cache: Optional[RequestCache] = None) -> Video:
    """
    Append one video with the next free ID.

    Raises:
        CreateError: If the sheet cannot be read or appended to
    """
    created = await create_videos([data], cache)
    return created[0]


async def create_videos(
    data_list: Sequence[CreateVideoData], cache: Optional[RequestCache] = None
) -> List[Video]:
    """
    Append several videos in one call, with contiguous IDs.

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
        videos = [
            Video(id=first_id + offset, name=data.name, type=data.type)
            for offset, data in enumerate(data_list)
        ]
        await asyncio.to_thread(
            sheets_service.append_rows, SHEET_NAME, [_to_row(v) for v in videos]
        )
    except Exception as e:
        logger.error(f"Error creating {len(data_list)} video(s): {e}")
        raise CreateError("Failed to create video") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Created videos {[v.id for v in videos]}")
    return videos


async def create_video_with_players(
    data: CreateVideoData,
    player_ids: Iterable[int],
    cache: Optional[RequestCache] = None,
) -> Video:
    """
    Create a video and associate it with players.

    The association rows are appended in one call after the video row. If
    that second append fails the video row stays and CreateError is raised.
    """
    video = await create_video(data, cache)
    await player_video_service.create_player_videos(
        [CreatePlayerVideoData(player_id=pid, video_id=video.id) for pid in _unique_ids(player_ids)],
        cache,
    )
    return video


async def update_video(data: UpdateVideoData, cache: Optional[RequestCache] = None) -> Video:
    """
    Overwrite a video's row in place.

    Raises:
        NotFoundError: If no live video has ``data.id``
        RepositoryError: On any store failure
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        position = sheet_rows.find_position(
            sheet_rows.map_rows(rows, _to_video), data.id, Video.is_valid
        )
        if position is None:
            raise NotFoundError(VIDEO_NOT_FOUND)

        video = Video(id=data.id, name=data.name, type=data.type)
        row_number = sheet_rows.sheet_row_number(position)
        await asyncio.to_thread(
            sheets_service.update_range,
            SHEET_NAME,
            sheet_rows.row_range(row_number, 0, 2),
            [_to_row(video)],
        )
    except NotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error updating video {data.id}: {e}")
        raise RepositoryError("Failed to update video") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Updated video {video.id}")
    return video


async def update_video_players(
    video_id: int,
    player_ids: Iterable[int],
    cache: Optional[RequestCache] = None,
) -> None:
    """
    Replace a video's players: retire every existing association for the
    video, then create one per given player ID.
    """
    await player_video_service.delete_player_videos_by_video_id(video_id, cache)
    await player_video_service.create_player_videos(
        [CreatePlayerVideoData(player_id=pid, video_id=video_id) for pid in _unique_ids(player_ids)],
        cache,
    )


async def delete_video(video_id: int, cache: Optional[RequestCache] = None) -> None:
    """
    Delete a video: retire its associations, then blank its name.

    Raises:
        NotFoundError: If no live video has this ID
        RepositoryError: On any store failure
    """
    try:
        rows = await cache_service.read_rows(SHEET_NAME, fresh=True)
        position = sheet_rows.find_position(
            sheet_rows.map_rows(rows, _to_video), video_id, Video.is_valid
        )
        if position is None:
            raise NotFoundError(VIDEO_NOT_FOUND)

        await player_video_service.delete_player_videos_by_video_id(video_id, cache)

        row_number = sheet_rows.sheet_row_number(position)
        await asyncio.to_thread(
            sheets_service.clear_range,
            SHEET_NAME,
            sheet_rows.row_range(row_number, NAME_COLUMN),
        )
    except NotFoundError:
        raise
    except Exception as e:
        logger.error(f"Error deleting video {video_id}: {e}")
        raise RepositoryError("Failed to delete video") from e
    finally:
        await cache_service.invalidate(SHEET_NAME, cache)

    logger.info(f"Deleted video {video_id}")
