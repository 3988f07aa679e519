"""
Tests for player_video_service: associations between players and videos.
"""

import pytest

from matchreel.models.schemas import CreatePlayerVideoData, UpdatePlayerVideoData
from matchreel.services import player_video_service
from matchreel.services.exceptions import CreateError, NotFoundError


class TestReads:
    @pytest.mark.asyncio
    async def test_retired_rows_are_hidden(self, seeded_sheets):
        player_videos = await player_video_service.list_player_videos()
        assert [pv.id for pv in player_videos] == [1, 2, 4, 5, 6, 7]

    @pytest.mark.asyncio
    async def test_get_by_id(self, seeded_sheets):
        assert (await player_video_service.get_player_video_by_id(5)).video_id == 2
        assert await player_video_service.get_player_video_by_id(3) is None

    @pytest.mark.asyncio
    async def test_videos_by_player_joins_details(self, seeded_sheets):
        results = await player_video_service.get_videos_by_player_id(1)

        assert [(r.id, r.video_name, r.video_type, r.player_name) for r in results] == [
            (1, "qualifier.mp4", "予選", "Alice"),
            (5, "final.mp4", "決勝戦", "Alice"),
        ]

    @pytest.mark.asyncio
    async def test_unresolvable_associations_are_dropped(self, seeded_sheets):
        """Association 6 points at player 9, who does not exist."""
        assert await player_video_service.get_videos_by_player_id(9) == []

    @pytest.mark.asyncio
    async def test_association_to_deleted_video_is_dropped(self, seeded_sheets):
        seeded_sheets.seed("player_videos", [[8, 4, 3]])

        results = await player_video_service.get_videos_by_player_id(4)

        assert [r.video_id for r in results] == [1]


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_uses_next_id(self, seeded_sheets):
        pv = await player_video_service.create_player_video(CreatePlayerVideoData(player_id=4, video_id=2))
        assert pv.id == 8

    @pytest.mark.asyncio
    async def test_create_batch_is_one_append(self, fake_sheets):
        created = await player_video_service.create_player_videos([
            CreatePlayerVideoData(player_id=1, video_id=1),
            CreatePlayerVideoData(player_id=2, video_id=1),
        ])

        assert [pv.id for pv in created] == [1, 2]
        assert fake_sheets.writes() == [
            ("append_rows", "player_videos", [[1, 1, 1], [2, 2, 1]])
        ]

    @pytest.mark.asyncio
    async def test_create_failure_writes_nothing(self, fake_sheets):
        fake_sheets.fail_on.add("append_rows")

        with pytest.raises(CreateError):
            await player_video_service.create_player_videos([
                CreatePlayerVideoData(player_id=1, video_id=1),
            ])
        assert fake_sheets.rows("player_videos") == []

    @pytest.mark.asyncio
    async def test_update(self, seeded_sheets):
        await player_video_service.update_player_video(UpdatePlayerVideoData(id=4, player_id=1, video_id=2))
        assert seeded_sheets.rows("player_videos")[3] == ["4", "1", "2"]

    @pytest.mark.asyncio
    async def test_delete_one(self, seeded_sheets):
        await player_video_service.delete_player_video(5)

        assert seeded_sheets.writes() == [("update_range", "player_videos", "B6", [[0]])]
        with pytest.raises(NotFoundError):
            await player_video_service.delete_player_video(5)

    @pytest.mark.asyncio
    async def test_delete_by_video_returns_count(self, seeded_sheets):
        assert await player_video_service.delete_player_videos_by_video_id(1) == 3
        assert await player_video_service.delete_player_videos_by_video_id(1) == 0

    @pytest.mark.asyncio
    async def test_delete_by_player_only_touches_live_rows(self, seeded_sheets):
        count = await player_video_service.delete_player_videos_by_player_id(1)

        assert count == 2
        assert [c[2] for c in seeded_sheets.writes("update_range")] == ["B2", "B6"]
