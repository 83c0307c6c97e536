"""Channel report aggregation.

Orchestrates one report request:
    resolve identity -> uploads playlist lookup -> paginate videos
    -> batched statistics fetch -> persist channel, videos, statistics
    -> join videos with statistics by ID

Error policy:
    - Unresolvable steps raise SoftFailureError subclasses carrying the
      sentence returned to the caller.
    - Upstream page/group failures were already degraded by YouTubeClient;
      they only show up here as PARTIAL/FAILED fetch statuses and "N/A"
      counts.
    - Planner and database errors propagate unchanged.
"""

import time
from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from channel_stats.clients.youtube import FetchStatus, YouTubeClient
from channel_stats.exceptions import (
    NoVideosFoundError,
    UpstreamUnavailableError,
    UserInputError,
)
from channel_stats.schemas.youtube import PlaylistVideo, VideoStatistics
from channel_stats.services.identity import extract_handle
from channel_stats.services.persistence import (
    batch_insert_video_statistics,
    batch_insert_videos,
    get_or_create_channel,
)

log = structlog.get_logger()

MISSING_INPUT_MESSAGE = "URL or username is missing"
INVALID_INPUT_MESSAGE = "Invalid input (either a YouTube URL or a username is required)"
UPLOADS_PLAYLIST_MESSAGE = "Unable to fetch uploads channel ID."
NO_VIDEOS_MESSAGE = "No videos found in the playlist."

NOT_AVAILABLE = "N/A"


@dataclass
class AggregationResult:
    """Joined videos and statistics for one channel.

    Attributes:
        channel_name: Resolved handle or channel ID.
        videos: Report rows in playlist order.
        elapsed_ms: Wall time of the aggregation in milliseconds.
        videos_status: How the playlist pagination ended.
        statistics_status: How the statistics fetch ended.
    """

    channel_name: str
    videos: list[dict[str, Any]] = field(default_factory=list)
    elapsed_ms: int = 0
    videos_status: FetchStatus = FetchStatus.COMPLETE
    statistics_status: FetchStatus = FetchStatus.COMPLETE

    def to_report(self) -> dict[str, Any]:
        """Build the JSON report body."""
        return {
            "status": "200 OK",
            "totalVideos": len(self.videos),
            "elapsedTime": self.elapsed_ms,
            "videos": self.videos,
        }


def build_video_entry(
    video: PlaylistVideo, channel_name: str, stat: VideoStatistics | None
) -> dict[str, Any]:
    """Build one report row; missing counts become "N/A".

    The thumbnailUrl key is left out when the video has no thumbnail.
    """
    entry: dict[str, Any] = {
        "videoID": video.video_id,
        "channelName": channel_name,
        "title": video.title,
        "url": video.url,
        "viewCount": (stat.view_count if stat else None) or NOT_AVAILABLE,
        "likeCount": (stat.like_count if stat else None) or NOT_AVAILABLE,
        "commentCount": (stat.comment_count if stat else None) or NOT_AVAILABLE,
    }
    if video.thumbnail_url is not None:
        entry["thumbnailUrl"] = video.thumbnail_url
    return entry


async def aggregate_channel(
    raw_input: str | None,
    client: YouTubeClient,
    session: AsyncSession,
) -> AggregationResult:
    """Fetch, persist and join a channel's videos and statistics.

    Args:
        raw_input: Handle or channel URL from the query string
        client: YouTube API client
        session: Database session

    Returns:
        AggregationResult with one row per playlist video.

    Raises:
        UserInputError: If input is missing or not a recognized handle/URL.
        UpstreamUnavailableError: If the uploads playlist can not be found.
        NoVideosFoundError: If the playlist yields no videos.
        ChunkPlannerError: If a batched write can not be planned.
        SQLAlchemyError: If the database rejects a write.
    """
    start_time = time.perf_counter()

    if not raw_input:
        raise UserInputError(MISSING_INPUT_MESSAGE)

    handle = extract_handle(raw_input)
    if handle is None:
        log.info("channel_input_unresolved", raw_input=raw_input[:200])
        raise UserInputError(INVALID_INPUT_MESSAGE)

    playlist_id = await client.get_uploads_playlist_id(handle)
    if not playlist_id:
        raise UpstreamUnavailableError(UPLOADS_PLAYLIST_MESSAGE)

    videos = await client.get_playlist_videos(playlist_id)
    if not videos.items:
        log.info(
            "channel_has_no_videos",
            handle=handle,
            playlist_id=playlist_id,
            fetch_status=videos.status.value,
        )
        raise NoVideosFoundError(NO_VIDEOS_MESSAGE)

    video_ids = [video.video_id for video in videos.items]
    stats = await client.batch_get_video_statistics(video_ids)

    channel = await get_or_create_channel(session, handle)
    video_id_map = await batch_insert_videos(
        session,
        [
            {
                "video_id": video.video_id,
                "channel_id": channel.id,
                "title": video.title,
                "url": video.url,
                "thumbnail_url": video.thumbnail_url,
            }
            for video in videos.items
        ],
    )
    await batch_insert_video_statistics(session, stats.items, video_id_map)

    stats_by_id = {stat.video_id: stat for stat in stats.items}
    entries = [
        build_video_entry(video, handle, stats_by_id.get(video.video_id))
        for video in videos.items
    ]

    elapsed_ms = int((time.perf_counter() - start_time) * 1000)
    log.info(
        "channel_aggregated",
        handle=handle,
        videos=len(entries),
        statistics=len(stats.items),
        videos_status=videos.status.value,
        statistics_status=stats.status.value,
        elapsed_ms=elapsed_ms,
    )

    return AggregationResult(
        channel_name=handle,
        videos=entries,
        elapsed_ms=elapsed_ms,
        videos_status=videos.status,
        statistics_status=stats.status,
    )
