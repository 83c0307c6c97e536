"""Configuration management for the channel statistics service.

This module provides centralized configuration loading from environment variables.
Required values are cached after the first successful lookup.

Environment Variables:
    YOUTUBE_API_KEY: YouTube Data API v3 key (required for aggregation)
    YOUTUBE_API_BASE_URL: API root (default: https://youtube.googleapis.com/youtube/v3)
    YOUTUBE_HTTP_TIMEOUT_SECONDS: Per-request timeout (default: 30)
    YOUTUBE_MAX_ATTEMPTS: Attempts per upstream request including retries (default: 3)
    DATABASE_URL: PostgreSQL connection URL (required for persistence)

Usage:
    from channel_stats.config import get_youtube_api_key, get_database_url

    api_key = get_youtube_api_key()  # Raises ConfigurationError if not set
    db_url = get_database_url()  # Raises if DATABASE_URL not set
"""

import os
from functools import lru_cache

import structlog

from channel_stats.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

DEFAULT_YOUTUBE_API_BASE_URL = "https://youtube.googleapis.com/youtube/v3"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30
DEFAULT_MAX_ATTEMPTS = 3


@lru_cache
def get_youtube_api_key() -> str:
    """Get YouTube Data API key from environment.

    Environment Variable:
        YOUTUBE_API_KEY: API key with YouTube Data API v3 enabled

    Returns:
        API key string.

    Raises:
        ConfigurationError: If YOUTUBE_API_KEY not set.
    """
    key = os.getenv("YOUTUBE_API_KEY")
    if not key:
        raise ConfigurationError("YOUTUBE_API_KEY environment variable is required")
    return key


def get_youtube_api_base_url() -> str:
    """Get YouTube Data API root URL from environment.

    Returns:
        Base URL without trailing slash.
    """
    return os.getenv("YOUTUBE_API_BASE_URL", DEFAULT_YOUTUBE_API_BASE_URL).rstrip("/")


@lru_cache
def get_database_url() -> str:
    """Get database URL from environment.

    Converts postgresql:// to postgresql+asyncpg:// for async SQLAlchemy.

    Environment Variable:
        DATABASE_URL: PostgreSQL connection URL

    Returns:
        Database URL with asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise ValueError("DATABASE_URL environment variable is required")

    # Hosting providers hand out postgresql:// but we need postgresql+asyncpg://
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


def get_http_timeout() -> float:
    """Get upstream HTTP timeout in seconds from environment.

    Environment Variable:
        YOUTUBE_HTTP_TIMEOUT_SECONDS: Timeout per request (default: 30)

    Returns:
        Timeout in seconds (minimum 1, maximum 120).
    """
    try:
        timeout = int(
            os.getenv("YOUTUBE_HTTP_TIMEOUT_SECONDS", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        )
        return float(max(1, min(120, timeout)))
    except ValueError:
        log.warning(
            "invalid_http_timeout",
            value=os.getenv("YOUTUBE_HTTP_TIMEOUT_SECONDS"),
            using_default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        )
        return float(DEFAULT_HTTP_TIMEOUT_SECONDS)


def get_max_attempts() -> int:
    """Get number of attempts per upstream request from environment.

    Environment Variable:
        YOUTUBE_MAX_ATTEMPTS: Attempts including the first call (default: 3)

    Returns:
        Attempt count (minimum 1, maximum 10).
    """
    try:
        attempts = int(os.getenv("YOUTUBE_MAX_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS)))
        return max(1, min(10, attempts))
    except ValueError:
        log.warning(
            "invalid_max_attempts",
            value=os.getenv("YOUTUBE_MAX_ATTEMPTS"),
            using_default=DEFAULT_MAX_ATTEMPTS,
        )
        return DEFAULT_MAX_ATTEMPTS
