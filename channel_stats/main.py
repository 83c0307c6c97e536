"""FastAPI application for channel statistics aggregation.

This is the web service entry point. It owns the shared YouTubeClient
(created at startup when YOUTUBE_API_KEY is set) and maps fatal errors
to HTTP 500 so they are never confused with plain-text soft failures.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from channel_stats.clients.youtube import YouTubeClient
from channel_stats.config import (
    get_http_timeout,
    get_max_attempts,
    get_youtube_api_base_url,
    get_youtube_api_key,
)
from channel_stats.exceptions import ChunkPlannerError, ConfigurationError, SoftFailureError
from channel_stats.routes import channels

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup/shutdown of the YouTube client.

    Startup:
    - Initialize YouTubeClient if YOUTUBE_API_KEY is set

    Shutdown:
    - Close YouTubeClient HTTP connections
    """
    youtube_client = None

    try:
        api_key = get_youtube_api_key()
    except ConfigurationError:
        log.warning(
            "youtube_client_disabled",
            message="YOUTUBE_API_KEY not set, channel reports will fail",
        )
    else:
        youtube_client = YouTubeClient(
            api_key,
            base_url=get_youtube_api_base_url(),
            timeout=get_http_timeout(),
            max_attempts=get_max_attempts(),
        )

    app.state.youtube_client = youtube_client

    yield  # Application runs here

    if youtube_client:
        await youtube_client.close()


app = FastAPI(
    title="Channel Stats",
    description="Fetches, stores and reports YouTube channel video statistics",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(channels.router)


@app.exception_handler(SoftFailureError)
async def soft_failure_handler(request: Request, exc: SoftFailureError) -> PlainTextResponse:
    """Answer unresolvable input or upstream lookups with a plain sentence."""
    log.info(
        "channel_report_soft_failure",
        path=request.url.path,
        reason=type(exc).__name__,
        message=exc.message,
    )
    return PlainTextResponse(exc.message, status_code=status.HTTP_200_OK)


@app.exception_handler(ChunkPlannerError)
@app.exception_handler(ConfigurationError)
@app.exception_handler(SQLAlchemyError)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report fatal planner, configuration and database errors as HTTP 500."""
    log.error(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error": type(exc).__name__},
    )


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> JSONResponse:
    """Health check endpoint for deployment validation.

    Returns:
        JSONResponse: Status and service name
    """
    return JSONResponse(content={"status": "healthy", "service": "channel-stats"})


if __name__ == "__main__":
    import uvicorn

    # Binding to 0.0.0.0 is intentional for container deployments
    uvicorn.run(
        "channel_stats.main:app",
        host="0.0.0.0",  # noqa: S104
        port=8000,
        reload=True,
    )
