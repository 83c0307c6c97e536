"""Pydantic schemas for validation and serialization."""

from channel_stats.schemas.youtube import (
    ChannelListResponse,
    PlaylistItemListResponse,
    PlaylistVideo,
    VideoListResponse,
    VideoStatistics,
)

__all__ = [
    "ChannelListResponse",
    "PlaylistItemListResponse",
    "PlaylistVideo",
    "VideoListResponse",
    "VideoStatistics",
]
