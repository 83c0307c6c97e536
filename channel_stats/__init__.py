"""Channel statistics aggregation service.

This package contains the FastAPI service that fetches a YouTube channel's
uploads and engagement statistics from the YouTube Data API, persists them
in a relational store, and returns an aggregated JSON report.
"""

from channel_stats.database import async_session_factory, get_session
from channel_stats.models import Base, Channel, Video, VideoStatistic

__all__ = [
    "Base",
    "Channel",
    "Video",
    "VideoStatistic",
    "async_session_factory",
    "get_session",
]
