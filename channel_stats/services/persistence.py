"""Persistence for channels, videos and statistics snapshots.

Every multi-row statement goes through autochunk so no statement binds more
parameters than the backend ceiling. Each batch is committed on its own
(short transaction pattern); a failure leaves earlier batches in place.

Row parameter costs are fixed per record type. Timestamps use server
defaults and are not bound, so the cost is exactly the number of keys each
row dict carries.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from channel_stats.chunking import autochunk
from channel_stats.models import Channel, Video, VideoStatistic
from channel_stats.schemas.youtube import VideoStatistics

log = structlog.get_logger()

# video_id, channel_id, title, url, thumbnail_url
VIDEO_ROW_PARAMETERS = 5
# video_id, view_count, like_count, comment_count
STATISTICS_ROW_PARAMETERS = 4


def _to_count(value: str | None) -> int:
    """Convert an upstream count string to a non-negative integer (0 if absent)."""
    if value is None:
        return 0
    try:
        return max(0, int(value))
    except ValueError:
        return 0


async def get_or_create_channel(session: AsyncSession, channel_name: str) -> Channel:
    """Return the channel row for a handle, inserting it on first sight.

    Args:
        session: Database session
        channel_name: Canonical handle or channel ID

    Returns:
        Existing or newly inserted Channel.
    """
    result = await session.execute(select(Channel).where(Channel.channel_name == channel_name))
    channel = result.scalar_one_or_none()
    if channel is not None:
        return channel

    channel = Channel(channel_name=channel_name)
    session.add(channel)
    await session.commit()

    log.info("channel_created", channel_id=channel.id, channel_name=channel_name)
    return channel


async def _select_existing_videos(
    session: AsyncSession, video_ids: list[str]
) -> list[tuple[str, int]]:
    result = await session.execute(
        select(Video.video_id, Video.id).where(Video.video_id.in_(video_ids))
    )
    return [(row.video_id, row.id) for row in result.all()]


async def _insert_videos(
    session: AsyncSession, rows: list[dict[str, Any]]
) -> list[tuple[str, int]]:
    result = await session.execute(
        insert(Video).returning(Video.video_id, Video.id, sort_by_parameter_order=True),
        rows,
    )
    inserted = [(row.video_id, row.id) for row in result.all()]
    await session.commit()
    return inserted


async def batch_insert_videos(
    session: AsyncSession, rows: Sequence[Mapping[str, Any]]
) -> dict[str, int]:
    """Insert videos that are not stored yet and map external IDs to row IDs.

    Known videos are detected and skipped; their title and thumbnail are not
    refreshed. A video listed twice in one call is inserted once.

    Args:
        session: Database session
        rows: Row dicts with video_id, channel_id, title, url, thumbnail_url

    Returns:
        Mapping of external video ID to videos.id for every requested video.
    """
    requested_ids = list(dict.fromkeys(row["video_id"] for row in rows))

    existing = await autochunk(
        requested_ids,
        lambda chunk: _select_existing_videos(session, chunk),
    )
    video_id_map = dict(existing)

    new_rows: list[dict[str, Any]] = []
    seen = set(video_id_map)
    for row in rows:
        if row["video_id"] in seen:
            continue
        seen.add(row["video_id"])
        new_rows.append(dict(row))

    inserted = await autochunk(
        new_rows,
        lambda chunk: _insert_videos(session, chunk),
        item_cost=VIDEO_ROW_PARAMETERS,
    )
    video_id_map.update(inserted)

    log.info(
        "videos_persisted",
        requested=len(requested_ids),
        existing=len(existing),
        inserted=len(inserted),
    )
    return video_id_map


async def _insert_statistics(
    session: AsyncSession, rows: list[dict[str, int]]
) -> list[VideoStatistic]:
    result = await session.scalars(
        insert(VideoStatistic).returning(VideoStatistic, sort_by_parameter_order=True),
        rows,
    )
    inserted = list(result.all())
    await session.commit()
    return inserted


async def batch_insert_video_statistics(
    session: AsyncSession,
    stats: Sequence[VideoStatistics],
    video_id_map: Mapping[str, int],
) -> list[VideoStatistic]:
    """Append one statistics snapshot per video.

    Missing counts are stored as 0. Statistics for a video with no stored
    row are skipped; video insertion must run first.

    Args:
        session: Database session
        stats: Statistics as reported upstream
        video_id_map: External video ID to videos.id, from batch_insert_videos

    Returns:
        Inserted VideoStatistic rows, batches in input order.
    """
    rows: list[dict[str, int]] = []
    for stat in stats:
        video_pk = video_id_map.get(stat.video_id)
        if video_pk is None:
            log.warning("statistics_without_video_row", video_id=stat.video_id)
            continue
        rows.append(
            {
                "video_id": video_pk,
                "view_count": _to_count(stat.view_count),
                "like_count": _to_count(stat.like_count),
                "comment_count": _to_count(stat.comment_count),
            }
        )

    inserted = await autochunk(
        rows,
        lambda chunk: _insert_statistics(session, chunk),
        item_cost=STATISTICS_ROW_PARAMETERS,
    )

    log.info("video_statistics_persisted", snapshots=len(inserted))
    return inserted
