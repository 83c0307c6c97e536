"""YouTube Data API v3 payload schemas.

Defines Pydantic models for validating the subset of upstream responses the
service reads. Required fields are enforced, so a malformed payload raises
pydantic.ValidationError instead of leaking missing keys downstream.
Unknown fields are ignored.

Raw response models mirror the API (camelCase aliases). The flattened
PlaylistVideo and VideoStatistics models are what the rest of the service
works with.
"""

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    """Base for raw API models: populate by alias, ignore unknown fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RelatedPlaylists(_ApiModel):
    uploads: str | None = None


class ChannelContentDetails(_ApiModel):
    related_playlists: RelatedPlaylists = Field(
        default_factory=RelatedPlaylists, alias="relatedPlaylists"
    )


class ChannelItem(_ApiModel):
    content_details: ChannelContentDetails | None = Field(
        default=None, alias="contentDetails"
    )


class ChannelListResponse(_ApiModel):
    """channels.list response."""

    items: list[ChannelItem] = []

    @property
    def uploads_playlist_id(self) -> str | None:
        """Uploads playlist ID of the first channel, if any."""
        if not self.items or self.items[0].content_details is None:
            return None
        return self.items[0].content_details.related_playlists.uploads or None


class Thumbnail(_ApiModel):
    url: str


class ResourceId(_ApiModel):
    video_id: str = Field(..., alias="videoId")


class PlaylistItemSnippet(_ApiModel):
    title: str
    thumbnails: dict[str, Thumbnail] = {}
    resource_id: ResourceId = Field(..., alias="resourceId")


class PlaylistItem(_ApiModel):
    snippet: PlaylistItemSnippet


class PlaylistItemListResponse(_ApiModel):
    """playlistItems.list response (one page)."""

    next_page_token: str | None = Field(default=None, alias="nextPageToken")
    items: list[PlaylistItem]


class StatisticsCounts(_ApiModel):
    # Counts arrive as decimal strings; hidden likes or disabled comments are absent
    view_count: str | None = Field(default=None, alias="viewCount")
    like_count: str | None = Field(default=None, alias="likeCount")
    comment_count: str | None = Field(default=None, alias="commentCount")


class VideoItem(_ApiModel):
    id: str
    statistics: StatisticsCounts = Field(default_factory=StatisticsCounts)


class VideoListResponse(_ApiModel):
    """videos.list response with part=statistics."""

    items: list[VideoItem] = []


class PlaylistVideo(BaseModel):
    """Video discovered in an uploads playlist.

    Attributes:
        video_id: External YouTube video ID.
        title: Video title.
        thumbnail_url: High resolution thumbnail URL, None when absent.
    """

    video_id: str
    title: str
    thumbnail_url: str | None = None

    @property
    def url(self) -> str:
        """Canonical watch URL for the video."""
        return f"https://www.youtube.com/watch?v={self.video_id}"

    @classmethod
    def from_playlist_item(cls, item: PlaylistItem) -> "PlaylistVideo":
        high = item.snippet.thumbnails.get("high")
        return cls(
            video_id=item.snippet.resource_id.video_id,
            title=item.snippet.title,
            thumbnail_url=high.url if high else None,
        )


class VideoStatistics(BaseModel):
    """Engagement counts for one video as reported upstream.

    Counts keep the upstream string form so they can be echoed back
    unchanged; None means the count was not reported.
    """

    video_id: str
    view_count: str | None = None
    like_count: str | None = None
    comment_count: str | None = None

    @classmethod
    def from_video_item(cls, item: VideoItem) -> "VideoStatistics":
        return cls(
            video_id=item.id,
            view_count=item.statistics.view_count,
            like_count=item.statistics.like_count,
            comment_count=item.statistics.comment_count,
        )
