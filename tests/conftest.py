"""Shared pytest fixtures for async database and upstream API testing.

This module provides reusable fixtures for testing SQLAlchemy models
and persistence using an in-memory SQLite database, plus a factory for
YouTube clients served through httpx.MockTransport.
"""

from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from channel_stats.clients.youtube import YouTubeClient
from channel_stats.config import get_database_url, get_youtube_api_key
from channel_stats.models import Base

TEST_BASE_URL = "https://yt.test/youtube/v3"


@pytest_asyncio.fixture
async def async_engine():
    """Create an async SQLite engine for testing.

    Uses in-memory SQLite with aiosqlite and StaticPool so all sessions
    share one connection. Creates all tables before yielding, disposes after.

    Yields:
        AsyncEngine: Configured test database engine.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    """Create an async session for testing.

    Provides a session bound to the test engine with expire_on_commit=False
    to match production configuration.

    Yields:
        AsyncSession: Database session for test operations.
    """
    async_session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Reset cached configuration between tests."""
    get_youtube_api_key.cache_clear()
    get_database_url.cache_clear()
    yield
    get_youtube_api_key.cache_clear()
    get_database_url.cache_clear()


@pytest_asyncio.fixture
async def make_youtube_client():
    """Factory building a YouTubeClient backed by a request handler.

    Backoff is disabled so retry tests run instantly.

    Example:
        client = make_youtube_client(lambda request: httpx.Response(200, json={}))
    """
    clients: list[YouTubeClient] = []

    def factory(
        handler: Callable[[httpx.Request], httpx.Response], max_attempts: int = 3
    ) -> YouTubeClient:
        client = YouTubeClient(
            "test-api-key",
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(handler),
            max_attempts=max_attempts,
            backoff_multiplier=0,
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()
