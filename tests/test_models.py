"""Tests for SQLAlchemy models.

Tests cover:
- Unique channel names and video IDs
- Server-side timestamps
- Non-negative statistics check constraint
- Relationships and repr output
"""

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlalchemy.schema import CreateTable

from channel_stats.models import Channel, Video, VideoStatistic


async def make_video(session, channel_name: str = "@foo", video_id: str = "abc12345678") -> Video:
    channel = Channel(channel_name=channel_name)
    session.add(channel)
    await session.flush()
    video = Video(
        video_id=video_id,
        channel_id=channel.id,
        title="Title",
        url=f"https://www.youtube.com/watch?v={video_id}",
    )
    session.add(video)
    await session.commit()
    return video


class TestChannel:
    """Tests for Channel model."""

    @pytest.mark.asyncio
    async def test_created_at_set_by_server(self, async_session):
        channel = Channel(channel_name="@foo")
        async_session.add(channel)
        await async_session.commit()
        await async_session.refresh(channel)

        assert channel.created_at is not None

    @pytest.mark.asyncio
    async def test_channel_name_unique(self, async_session):
        async_session.add(Channel(channel_name="@foo"))
        await async_session.commit()

        async_session.add(Channel(channel_name="@foo"))
        with pytest.raises(IntegrityError):
            await async_session.commit()

    def test_repr(self):
        assert repr(Channel(id=1, channel_name="@foo")) == "<Channel(id=1, channel_name='@foo')>"


class TestVideo:
    """Tests for Video model."""

    @pytest.mark.asyncio
    async def test_thumbnail_is_optional(self, async_session):
        video = await make_video(async_session)

        assert video.thumbnail_url is None

    @pytest.mark.asyncio
    async def test_video_id_unique_across_channels(self, async_session):
        await make_video(async_session, "@foo", "same0000000")

        with pytest.raises(IntegrityError):
            await make_video(async_session, "@bar", "same0000000")

    @pytest.mark.asyncio
    async def test_channel_relationship(self, async_session):
        await make_video(async_session)

        result = await async_session.execute(
            select(Channel).options(selectinload(Channel.videos))
        )
        channel = result.scalar_one()
        assert [video.video_id for video in channel.videos] == ["abc12345678"]


class TestVideoStatistic:
    """Tests for VideoStatistic model."""

    @pytest.mark.asyncio
    async def test_snapshot_recorded_at_set_by_server(self, async_session):
        video = await make_video(async_session)
        snapshot = VideoStatistic(video_id=video.id, view_count=1, like_count=2, comment_count=3)
        async_session.add(snapshot)
        await async_session.commit()
        await async_session.refresh(snapshot)

        assert snapshot.recorded_at is not None

    @pytest.mark.asyncio
    async def test_negative_counts_rejected(self, async_session):
        video = await make_video(async_session)
        async_session.add(
            VideoStatistic(video_id=video.id, view_count=-1, like_count=0, comment_count=0)
        )

        with pytest.raises(IntegrityError):
            await async_session.commit()

    def test_repr(self):
        snapshot = VideoStatistic(video_id=7, view_count=10, like_count=2, comment_count=1)

        assert repr(snapshot) == "<VideoStatistic(video_id=7, views=10, likes=2, comments=1)>"

    def test_counts_are_64_bit_on_postgresql(self):
        """[P0] Count columns hold view counts past the 32-bit range.

        GIVEN: The video_statistics table
        WHEN: DDL is compiled for PostgreSQL
        THEN: Every count column is BIGINT
        """
        ddl = str(CreateTable(VideoStatistic.__table__).compile(dialect=postgresql.dialect()))

        assert "view_count BIGINT NOT NULL" in ddl
        assert "like_count BIGINT NOT NULL" in ddl
        assert "comment_count BIGINT NOT NULL" in ddl

    @pytest.mark.asyncio
    async def test_count_above_32_bit_range_round_trips(self, async_session):
        video = await make_video(async_session)
        async_session.add(
            VideoStatistic(
                video_id=video.id, view_count=16_000_000_000, like_count=0, comment_count=0
            )
        )
        await async_session.commit()

        stored = (await async_session.execute(select(VideoStatistic.view_count))).scalar_one()
        assert stored == 16_000_000_000
