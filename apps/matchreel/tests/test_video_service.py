"""
Tests for video_service: the videos sheet repository and its cascades.
"""

import pytest

from matchreel.models.schemas import CreateVideoData, UpdateVideoData
from matchreel.services import player_video_service, video_service
from matchreel.services.cache_service import RequestCache
from matchreel.services.exceptions import CreateError, NotFoundError, RepositoryError


# ============================================================================
# Reads
# ============================================================================


class TestReads:
    @pytest.mark.asyncio
    async def test_soft_deleted_videos_are_hidden(self, seeded_sheets):
        videos = await video_service.list_videos()
        assert [v.id for v in videos] == [1, 2]

    @pytest.mark.asyncio
    async def test_type_is_read_verbatim(self, seeded_sheets):
        video = await video_service.get_video_by_id(2)
        assert video.type == "決勝戦"

    @pytest.mark.asyncio
    async def test_get_by_name(self, seeded_sheets):
        video = await video_service.get_video_by_name("qualifier.mp4")
        assert video.id == 1
        assert await video_service.get_video_by_name("missing.mp4") is None

    @pytest.mark.asyncio
    async def test_videos_with_players(self, seeded_sheets):
        cache = RequestCache()

        videos = await video_service.list_videos_with_players(cache)

        by_id = {v.id: [p.name for p in v.players] for v in videos}
        # association 6 points at a player that does not exist
        assert by_id == {1: ["Alice", "Bob", "Carol"], 2: ["Alice", "Bob"]}
        assert seeded_sheets.read_count == {"videos": 1, "player_videos": 1, "players": 1}


# ============================================================================
# Create
# ============================================================================


class TestCreate:
    @pytest.mark.asyncio
    async def test_id_skips_soft_deleted_rows(self, seeded_sheets):
        video = await video_service.create_video(CreateVideoData(name="top16.mp4", type="TOP16"))
        assert video.id == 4

    @pytest.mark.asyncio
    async def test_batch_create_uses_one_append(self, fake_sheets):
        videos = await video_service.create_videos([
            CreateVideoData(name="a.mp4", type="TOP8"),
            CreateVideoData(name="b.mp4", type="TOP8"),
        ])

        assert [v.id for v in videos] == [1, 2]
        assert len(fake_sheets.writes("append_rows")) == 1

    @pytest.mark.asyncio
    async def test_empty_batch_touches_nothing(self, fake_sheets):
        assert await video_service.create_videos([]) == []
        assert fake_sheets.read_count == {}
        assert fake_sheets.calls == []

    @pytest.mark.asyncio
    async def test_with_players(self, seeded_sheets):
        video = await video_service.create_video_with_players(
            CreateVideoData(name="top4.mp4", type="TOP4"), [2, 1, 2]
        )

        assert video.id == 4
        assert seeded_sheets.rows("player_videos")[-2:] == [["8", "2", "4"], ["9", "1", "4"]]

    @pytest.mark.asyncio
    async def test_append_failure(self, fake_sheets):
        fake_sheets.fail_on.add("append_rows")

        with pytest.raises(CreateError, match="Failed to create video"):
            await video_service.create_video(CreateVideoData(name="a.mp4", type="TOP8"))


# ============================================================================
# Update
# ============================================================================


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_row(self, seeded_sheets):
        video = await video_service.update_video(UpdateVideoData(id=2, name="final-v2.mp4", type="決勝戦"))

        assert video.name == "final-v2.mp4"
        assert seeded_sheets.rows("videos")[1] == ["2", "final-v2.mp4", "決勝戦"]

    @pytest.mark.asyncio
    async def test_update_soft_deleted(self, seeded_sheets):
        with pytest.raises(NotFoundError, match="Video not found"):
            await video_service.update_video(UpdateVideoData(id=3, name="x.mp4", type="TOP8"))

    @pytest.mark.asyncio
    async def test_replace_players(self, seeded_sheets):
        cache = RequestCache()

        await video_service.update_video_players(1, [4], cache)

        videos = await video_service.list_videos_with_players(cache)
        assert [p.name for p in videos[0].players] == ["Carol"]
        retired = [row for row in seeded_sheets.rows("player_videos") if row[1] == "0"]
        assert len(retired) == 4  # 3 was already retired; 1, 2 and 4 join it


# ============================================================================
# Delete
# ============================================================================


class TestDelete:
    @pytest.mark.asyncio
    async def test_cascade_soft_delete(self, seeded_sheets):
        cache = RequestCache()

        await video_service.delete_video(2, cache)

        assert seeded_sheets.rows("videos")[1] == ["2", "", "決勝戦"]
        pv_rows = {row[0]: row for row in seeded_sheets.rows("player_videos")}
        assert pv_rows["5"][1] == "0"
        assert pv_rows["7"][1] == "0"
        assert pv_rows["1"][1] == "1"
        assert await video_service.get_video_by_id(2, cache) is None
        # associations are retired before the name is blanked
        assert seeded_sheets.calls[-1] == ("clear_range", "videos", "B3")

        for player_id in (1, 2):
            remaining = await player_video_service.get_videos_by_player_id(player_id, cache)
            assert [r.video_id for r in remaining] == [1]

    @pytest.mark.asyncio
    async def test_delete_missing(self, seeded_sheets):
        with pytest.raises(NotFoundError):
            await video_service.delete_video(3)

    @pytest.mark.asyncio
    async def test_delete_failure(self, seeded_sheets):
        seeded_sheets.fail_on.add("clear_range")

        with pytest.raises(RepositoryError, match="Failed to delete video"):
            await video_service.delete_video(1)
