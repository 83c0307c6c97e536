"""Tests for channel, video and statistics persistence.

Runs against in-memory SQLite (see conftest.async_session).

Tests cover:
- Channel get-or-create by handle
- Video inserts split under the parameter ceiling
- Known videos skipped and mapped to their existing row IDs
- Statistics snapshots appended with missing counts stored as 0
- Statistics for unknown videos skipped
"""

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from channel_stats.chunking import MAX_PARAMETERS
from channel_stats.models import Channel, Video, VideoStatistic
from channel_stats.schemas.youtube import VideoStatistics
from channel_stats.services import persistence
from channel_stats.services.persistence import (
    STATISTICS_ROW_PARAMETERS,
    VIDEO_ROW_PARAMETERS,
    batch_insert_video_statistics,
    batch_insert_videos,
    get_or_create_channel,
)
from tests.support.youtube_payloads import video_id_for


def video_rows(channel_id: int, count: int, start: int = 0) -> list[dict]:
    return [
        {
            "video_id": video_id_for(i),
            "channel_id": channel_id,
            "title": f"Video {i}",
            "url": f"https://www.youtube.com/watch?v={video_id_for(i)}",
            "thumbnail_url": None if i % 7 == 0 else f"https://i.ytimg.com/vi/{i}/hq.jpg",
        }
        for i in range(start, start + count)
    ]


async def count_rows(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.fixture
def insert_spy(monkeypatch):
    """Record the size of every video insert batch."""
    batch_sizes: list[int] = []
    original = persistence._insert_videos

    async def spy(session, rows):
        batch_sizes.append(len(rows))
        return await original(session, rows)

    monkeypatch.setattr(persistence, "_insert_videos", spy)
    return batch_sizes


class TestGetOrCreateChannel:
    """Tests for get_or_create_channel."""

    @pytest.mark.asyncio
    async def test_creates_channel_on_first_sight(self, async_session):
        """[P0] New handle inserts exactly one channel row.

        GIVEN: Empty database
        WHEN: get_or_create_channel is called with "@foo"
        THEN: A channel row with an assigned ID exists
        """
        channel = await get_or_create_channel(async_session, "@foo")

        assert channel.id is not None
        assert channel.channel_name == "@foo"
        assert await count_rows(async_session, Channel) == 1

    @pytest.mark.asyncio
    async def test_returns_existing_channel(self, async_session):
        first = await get_or_create_channel(async_session, "@foo")
        second = await get_or_create_channel(async_session, "@foo")

        assert second.id == first.id
        assert await count_rows(async_session, Channel) == 1

    @pytest.mark.asyncio
    async def test_distinct_handles_get_distinct_rows(self, async_session):
        foo = await get_or_create_channel(async_session, "@foo")
        bar = await get_or_create_channel(async_session, "@bar")

        assert foo.id != bar.id
        assert await count_rows(async_session, Channel) == 2


class TestBatchInsertVideos:
    """Tests for batch_insert_videos."""

    @pytest.mark.asyncio
    async def test_110_videos_inserted_in_bounded_batches(self, async_session, insert_spy):
        """[P0] 110 videos at 5 parameters each need 6 insert statements.

        GIVEN: A channel and 110 new videos
        WHEN: batch_insert_videos is called
        THEN: Every batch stays under the ceiling and all rows are mapped
        """
        channel = await get_or_create_channel(async_session, "@foo")
        rows = video_rows(channel.id, 110)

        video_id_map = await batch_insert_videos(async_session, rows)

        assert insert_spy == [20, 20, 20, 20, 20, 10]
        assert all(size * VIDEO_ROW_PARAMETERS <= MAX_PARAMETERS for size in insert_spy)
        assert set(video_id_map) == {row["video_id"] for row in rows}
        assert len(set(video_id_map.values())) == 110
        assert await count_rows(async_session, Video) == 110

    @pytest.mark.asyncio
    async def test_map_points_at_matching_rows(self, async_session):
        channel = await get_or_create_channel(async_session, "@foo")
        rows = video_rows(channel.id, 30)

        video_id_map = await batch_insert_videos(async_session, rows)

        stored = (await async_session.execute(select(Video.video_id, Video.id))).all()
        assert dict((row.video_id, row.id) for row in stored) == video_id_map

    @pytest.mark.asyncio
    async def test_fields_and_null_thumbnail_stored(self, async_session):
        channel = await get_or_create_channel(async_session, "@foo")

        await batch_insert_videos(async_session, video_rows(channel.id, 2))

        result = await async_session.execute(select(Video).order_by(Video.video_id))
        first, second = result.scalars().all()
        assert first.thumbnail_url is None
        assert second.thumbnail_url == "https://i.ytimg.com/vi/1/hq.jpg"
        assert second.title == "Video 1"
        assert second.channel_id == channel.id

    @pytest.mark.asyncio
    async def test_rerun_inserts_nothing_and_reuses_ids(self, async_session, insert_spy):
        """[P0] Second run over the same videos performs no inserts.

        GIVEN: 40 videos already stored
        WHEN: The same 40 videos plus 5 new ones are persisted
        THEN: Only the 5 new videos are inserted and old IDs are kept
        """
        channel = await get_or_create_channel(async_session, "@foo")
        first_map = await batch_insert_videos(async_session, video_rows(channel.id, 40))
        insert_spy.clear()

        second_map = await batch_insert_videos(async_session, video_rows(channel.id, 45))

        assert insert_spy == [5]
        assert {key: second_map[key] for key in first_map} == first_map
        assert await count_rows(async_session, Video) == 45

    @pytest.mark.asyncio
    async def test_fully_known_input_issues_no_insert(self, async_session, insert_spy):
        channel = await get_or_create_channel(async_session, "@foo")
        await batch_insert_videos(async_session, video_rows(channel.id, 10))
        insert_spy.clear()

        await batch_insert_videos(async_session, video_rows(channel.id, 10))

        assert insert_spy == []

    @pytest.mark.asyncio
    async def test_duplicate_ids_in_one_call_inserted_once(self, async_session):
        channel = await get_or_create_channel(async_session, "@foo")
        rows = video_rows(channel.id, 3) + video_rows(channel.id, 3)

        video_id_map = await batch_insert_videos(async_session, rows)

        assert len(video_id_map) == 3
        assert await count_rows(async_session, Video) == 3

    @pytest.mark.asyncio
    async def test_empty_input(self, async_session, insert_spy):
        assert await batch_insert_videos(async_session, []) == {}
        assert insert_spy == []

    @pytest.mark.asyncio
    async def test_inserted_ids_returned_in_input_order(self, async_session):
        channel = await get_or_create_channel(async_session, "@foo")
        rows = list(reversed(video_rows(channel.id, 20)))

        inserted = await persistence._insert_videos(async_session, rows)

        assert [video_id for video_id, _ in inserted] == [row["video_id"] for row in rows]

    @pytest.mark.asyncio
    async def test_known_video_title_not_refreshed(self, async_session):
        channel = await get_or_create_channel(async_session, "@foo")
        await batch_insert_videos(async_session, video_rows(channel.id, 1))
        renamed = video_rows(channel.id, 1)
        renamed[0]["title"] = "Renamed"

        await batch_insert_videos(async_session, renamed)

        title = (await async_session.execute(select(Video.title))).scalar_one()
        assert title == "Video 0"


class TestBatchInsertVideoStatistics:
    """Tests for batch_insert_video_statistics."""

    @pytest_asyncio.fixture
    async def stored_videos(self, async_session):
        channel = await get_or_create_channel(async_session, "@foo")
        return await batch_insert_videos(async_session, video_rows(channel.id, 60))

    @pytest.mark.asyncio
    async def test_one_snapshot_per_video(self, async_session, stored_videos, monkeypatch):
        batch_sizes: list[int] = []
        original = persistence._insert_statistics

        async def spy(session, rows):
            batch_sizes.append(len(rows))
            return await original(session, rows)

        monkeypatch.setattr(persistence, "_insert_statistics", spy)
        stats = [
            VideoStatistics(video_id=video_id, view_count="100", like_count="5", comment_count="1")
            for video_id in stored_videos
        ]

        inserted = await batch_insert_video_statistics(async_session, stats, stored_videos)

        assert len(inserted) == 60
        assert batch_sizes == [25, 25, 10]
        assert all(size * STATISTICS_ROW_PARAMETERS <= MAX_PARAMETERS for size in batch_sizes)
        assert await count_rows(async_session, VideoStatistic) == 60

    @pytest.mark.asyncio
    async def test_counts_converted_and_missing_stored_as_zero(
        self, async_session, stored_videos
    ):
        video_id = video_id_for(3)
        stats = [VideoStatistics(video_id=video_id, view_count="1234", like_count=None)]

        [snapshot] = await batch_insert_video_statistics(async_session, stats, stored_videos)

        assert snapshot.video_id == stored_videos[video_id]
        assert snapshot.view_count == 1234
        assert snapshot.like_count == 0
        assert snapshot.comment_count == 0
        assert snapshot.recorded_at is not None

    @pytest.mark.asyncio
    async def test_statistics_for_unknown_video_skipped(self, async_session, stored_videos):
        stats = [
            VideoStatistics(video_id=video_id_for(0), view_count="1"),
            VideoStatistics(video_id="unknown0000", view_count="2"),
        ]

        inserted = await batch_insert_video_statistics(async_session, stats, stored_videos)

        assert len(inserted) == 1
        assert await count_rows(async_session, VideoStatistic) == 1

    @pytest.mark.asyncio
    async def test_history_accumulates_across_runs(self, async_session, stored_videos):
        stats = [VideoStatistics(video_id=video_id_for(0), view_count="1")]

        await batch_insert_video_statistics(async_session, stats, stored_videos)
        await batch_insert_video_statistics(async_session, stats, stored_videos)

        assert await count_rows(async_session, VideoStatistic) == 2

    @pytest.mark.asyncio
    async def test_snapshots_returned_in_input_order(self, async_session, stored_videos):
        """[P1] Returned snapshots line up with the statistics passed in.

        GIVEN: Statistics for 60 stored videos in reverse row order
        WHEN: batch_insert_video_statistics is called
        THEN: Each returned snapshot matches the input at the same position
        """
        video_ids = list(reversed(list(stored_videos)))
        stats = [
            VideoStatistics(video_id=video_id, view_count=str(index))
            for index, video_id in enumerate(video_ids)
        ]

        inserted = await batch_insert_video_statistics(async_session, stats, stored_videos)

        assert [snapshot.video_id for snapshot in inserted] == [
            stored_videos[video_id] for video_id in video_ids
        ]
        assert [snapshot.view_count for snapshot in inserted] == list(range(60))

    @pytest.mark.asyncio
    async def test_view_count_above_32_bit_range_stored(self, async_session, stored_videos):
        stats = [VideoStatistics(video_id=video_id_for(0), view_count="16000000000")]

        [snapshot] = await batch_insert_video_statistics(async_session, stats, stored_videos)

        assert snapshot.view_count == 16_000_000_000

    @pytest.mark.asyncio
    async def test_empty_statistics(self, async_session, stored_videos):
        assert await batch_insert_video_statistics(async_session, [], stored_videos) == []
        assert await count_rows(async_session, VideoStatistic) == 0


@pytest.mark.parametrize(
    "raw,expected",
    [(None, 0), ("0", 0), ("42", 42), ("-5", 0), ("not-a-number", 0)],
)
def test_to_count(raw, expected):
    assert persistence._to_count(raw) == expected
