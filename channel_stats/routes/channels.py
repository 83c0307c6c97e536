"""Channel report route.

This module provides the single aggregation endpoint:
- GET /?url=<handle or channel URL> - Fetch, persist and report a channel

Response contract:
- Soft failures (missing input, unknown channel, no videos) return HTTP 200
  with a plain-text sentence via the application exception handler. Missing
  input is rejected before the session and client dependencies are resolved.
- Success returns HTTP 200 with a pretty-printed JSON report.
- Planner, configuration and database errors are not handled here; the
  application exception handlers turn them into HTTP 500.
"""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from channel_stats.clients.youtube import YouTubeClient
from channel_stats.database import get_session
from channel_stats.exceptions import ConfigurationError, UserInputError
from channel_stats.services.aggregation import MISSING_INPUT_MESSAGE, aggregate_channel

router = APIRouter(tags=["channels"])


def get_youtube_client(request: Request) -> YouTubeClient:
    """FastAPI dependency returning the client created at startup.

    Raises:
        ConfigurationError: If the app started without YOUTUBE_API_KEY.
    """
    client = getattr(request.app.state, "youtube_client", None)
    if client is None:
        raise ConfigurationError("YouTube client not configured. Set YOUTUBE_API_KEY.")
    return client


def require_channel_input(url: str | None = None) -> str:
    """FastAPI dependency rejecting a missing url before other dependencies run.

    Declared first on the route so an instance without a database or API key
    still answers the missing-input sentence.

    Raises:
        UserInputError: If url is absent or empty.
    """
    if not url:
        raise UserInputError(MISSING_INPUT_MESSAGE)
    return url


@router.get("/")
async def get_channel_report(
    url: str = Depends(require_channel_input),
    session: AsyncSession = Depends(get_session),
    client: YouTubeClient = Depends(get_youtube_client),
) -> Response:
    """Aggregate a channel's uploads and statistics.

    Soft failures raised here or by require_channel_input are turned into
    plain-text responses by the application exception handler.

    Args:
        url: Channel URL or handle (e.g. "@foo", "https://youtube.com/c/Bar")

    Returns:
        200 application/json: Report with status, totalVideos, elapsedTime, videos
    """
    result = await aggregate_channel(url, client, session)

    body = json.dumps(result.to_report(), indent=2, ensure_ascii=False)
    return Response(content=body, status_code=200, media_type="application/json")
