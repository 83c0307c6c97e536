"""YouTube Data API v3 client with retrying transport.

This module provides an async client for the three read endpoints the
aggregation needs. It implements:
- Automatic retry with exponential backoff for transient errors (429, 5xx, timeouts)
- Proper error classification (retriable vs non-retriable)
- Validated payload parsing into explicit record types
- Swallow-and-degrade semantics: lookups never raise, they return tagged
  FetchResult values (complete / partial / failed) or None

Usage:
    async with YouTubeClient(api_key) as client:
        playlist_id = await client.get_uploads_playlist_id("@foo")
        videos = await client.get_playlist_videos(playlist_id)
        stats = await client.batch_get_video_statistics([v.video_id for v in videos.items])
"""

import asyncio
import enum
import re
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from channel_stats.config import DEFAULT_YOUTUBE_API_BASE_URL
from channel_stats.schemas.youtube import (
    ChannelListResponse,
    PlaylistItemListResponse,
    PlaylistVideo,
    VideoListResponse,
    VideoStatistics,
)

log = structlog.get_logger()

T = TypeVar("T")

# Platform limit for maxResults and for ids per videos.list call
PLAYLIST_PAGE_SIZE = 50
STATISTICS_BATCH_SIZE = 50

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}
NON_RETRIABLE_STATUS_CODES = {400, 401, 403, 404}

CHANNEL_ID_PATTERN = re.compile(r"^UC[\w-]{21}[AQgw]$")


class YouTubeAPIError(Exception):
    """Raised for non-retriable YouTube API errors (400, 401, 403, 404)."""

    def __init__(self, message: str, response: httpx.Response):
        self.message = message
        self.status_code = response.status_code
        self.response_body = response.text
        super().__init__(f"{message} - Status: {response.status_code}")


class FetchStatus(enum.Enum):
    """Outcome of an upstream fetch that degrades instead of raising.

    COMPLETE: every request succeeded.
    PARTIAL: some requests succeeded before or alongside a failure.
    FAILED: nothing could be fetched.
    """

    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class FetchResult(Generic[T]):
    """Items gathered from the API plus how the fetch ended.

    An empty COMPLETE result means the upstream really has nothing; an
    empty FAILED result means the fetch broke.
    """

    items: list[T] = field(default_factory=list)
    status: FetchStatus = FetchStatus.COMPLETE
    error: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.status is FetchStatus.COMPLETE


def _is_retriable_error(exception: BaseException) -> bool:
    """Determine if an error should trigger retry logic.

    Args:
        exception: Exception to classify

    Returns:
        True if error is retriable (429, 5xx, timeouts), False otherwise
    """
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRIABLE_STATUS_CODES
    return isinstance(exception, (httpx.TimeoutException, httpx.ConnectError))


def _log_retry(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    log.warning(
        "youtube_request_retry",
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
        error=str(exception),
    )


class YouTubeClient:
    """YouTube Data API v3 client.

    Every GET goes through a tenacity retry loop. The public lookups catch
    whatever survives the retries and degrade to None or a tagged
    FetchResult, so one bad page never fails a whole aggregation.

    Attributes:
        api_key: YouTube Data API key appended to every request.
        base_url: API root, e.g. https://youtube.googleapis.com/youtube/v3
        client: Async HTTP client for making requests.
        max_attempts: Attempts per request including the first one.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_YOUTUBE_API_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_multiplier: float = 1.0,
    ):
        """Initialize YouTube API client.

        Args:
            api_key: YouTube Data API key
            base_url: API root without trailing slash
            transport: Optional httpx transport (tests pass httpx.MockTransport)
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per request including the first call
            backoff_multiplier: Exponential backoff multiplier in seconds
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.max_attempts = max_attempts
        self.backoff_multiplier = backoff_multiplier

    async def _get_json(self, resource: str, params: dict[str, Any]) -> Any:
        """GET an API resource and decode the JSON body (auto-retry).

        Args:
            resource: Resource path under base_url (e.g. "playlistItems")
            params: Query parameters, without the API key

        Returns:
            Decoded JSON body

        Raises:
            YouTubeAPIError: On non-retriable errors (400, 401, 403, 404)
            httpx.HTTPStatusError: On retriable errors after all attempts
            httpx.TimeoutException, httpx.ConnectError: After all attempts
            ValueError: If the body is not valid JSON
        """
        url = f"{self.base_url}/{resource}"
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier, max=10),
            retry=retry_if_exception(_is_retriable_error),
            before_sleep=_log_retry,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                response = await self.client.get(url, params={**params, "key": self.api_key})

                if response.status_code in NON_RETRIABLE_STATUS_CODES:
                    raise YouTubeAPIError(
                        f"Non-retriable error from {resource}", response
                    )

                response.raise_for_status()
                return response.json()

    async def get_uploads_playlist_id(self, identifier: str) -> str | None:
        """Look up the uploads playlist of a channel.

        Args:
            identifier: Channel handle ("@foo", "foo") or channel ID ("UC...")

        Returns:
            Uploads playlist ID, or None if the channel is unknown or the
            lookup failed.
        """
        params: dict[str, Any] = {"part": "snippet,contentDetails,statistics"}
        if CHANNEL_ID_PATTERN.match(identifier):
            params["id"] = identifier
        else:
            params["forHandle"] = identifier

        try:
            data = await self._get_json("channels", params)
            playlist_id = ChannelListResponse.model_validate(data).uploads_playlist_id
        except (httpx.HTTPError, YouTubeAPIError, ValidationError, ValueError) as e:
            log.error("uploads_playlist_lookup_failed", identifier=identifier, error=str(e))
            return None

        if playlist_id is None:
            log.info("uploads_playlist_not_found", identifier=identifier)
        return playlist_id

    async def get_playlist_videos(self, playlist_id: str) -> FetchResult[PlaylistVideo]:
        """Fetch every video of a playlist, following page tokens.

        Pagination stops when a page carries no nextPageToken. A failing
        page ends pagination early; whatever was collected is returned.

        Args:
            playlist_id: Playlist ID (e.g. an uploads playlist "UU...")

        Returns:
            FetchResult with videos in playlist order. Status is PARTIAL when
            a later page failed and FAILED when the first page did.
        """
        videos: list[PlaylistVideo] = []
        page_token: str | None = None
        pages = 0

        while True:
            params: dict[str, Any] = {
                "part": "snippet",
                "maxResults": PLAYLIST_PAGE_SIZE,
                "playlistId": playlist_id,
            }
            if page_token:
                params["pageToken"] = page_token

            try:
                data = await self._get_json("playlistItems", params)
                page = PlaylistItemListResponse.model_validate(data)
            except (httpx.HTTPError, YouTubeAPIError, ValidationError, ValueError) as e:
                status = FetchStatus.PARTIAL if pages else FetchStatus.FAILED
                log.error(
                    "playlist_page_fetch_failed",
                    playlist_id=playlist_id,
                    pages_fetched=pages,
                    videos_fetched=len(videos),
                    status=status.value,
                    error=str(e),
                )
                return FetchResult(items=videos, status=status, error=str(e))

            pages += 1
            videos.extend(PlaylistVideo.from_playlist_item(item) for item in page.items)
            page_token = page.next_page_token
            if not page_token:
                break

        log.info(
            "playlist_videos_fetched",
            playlist_id=playlist_id,
            pages=pages,
            videos=len(videos),
        )
        return FetchResult(items=videos)

    async def get_video_statistics(
        self, video_ids: list[str]
    ) -> FetchResult[VideoStatistics]:
        """Fetch statistics for up to STATISTICS_BATCH_SIZE videos in one call.

        Args:
            video_ids: External video IDs

        Returns:
            FetchResult with one entry per video the API returned. Videos
            that are private or deleted are simply absent.
        """
        try:
            data = await self._get_json(
                "videos", {"part": "statistics", "id": ",".join(video_ids)}
            )
            response = VideoListResponse.model_validate(data)
        except (httpx.HTTPError, YouTubeAPIError, ValidationError, ValueError) as e:
            log.error(
                "video_statistics_fetch_failed",
                video_count=len(video_ids),
                first_video_id=video_ids[0] if video_ids else None,
                error=str(e),
            )
            return FetchResult(status=FetchStatus.FAILED, error=str(e))

        return FetchResult(
            items=[VideoStatistics.from_video_item(item) for item in response.items]
        )

    async def batch_get_video_statistics(
        self, video_ids: list[str]
    ) -> FetchResult[VideoStatistics]:
        """Fetch statistics for any number of videos.

        IDs are split into groups of STATISTICS_BATCH_SIZE and all groups
        are requested concurrently. Results are concatenated in group order;
        callers must correlate by video ID, not by position.

        Args:
            video_ids: External video IDs

        Returns:
            FetchResult that is PARTIAL when some groups failed and FAILED
            when all of them did.
        """
        groups = [
            video_ids[i : i + STATISTICS_BATCH_SIZE]
            for i in range(0, len(video_ids), STATISTICS_BATCH_SIZE)
        ]
        if not groups:
            return FetchResult()

        results = await asyncio.gather(*(self.get_video_statistics(group) for group in groups))

        items = [stat for result in results for stat in result.items]
        failed = [result for result in results if result.status is FetchStatus.FAILED]

        if not failed:
            return FetchResult(items=items)

        status = FetchStatus.FAILED if len(failed) == len(results) else FetchStatus.PARTIAL
        log.warning(
            "video_statistics_degraded",
            groups=len(groups),
            failed_groups=len(failed),
            status=status.value,
        )
        return FetchResult(items=items, status=status, error=failed[0].error)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "YouTubeClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
