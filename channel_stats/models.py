"""SQLAlchemy 2.0 ORM models.

This module contains all SQLAlchemy models for the channel statistics store.
All models use the Mapped[type] annotation pattern required by SQLAlchemy 2.0.

Lifecycle:
    Channel and Video rows are written once and then only read.
    VideoStatistic rows are appended once per aggregation run; history
    accumulates and nothing is updated in place.

Timestamps use server-side defaults. Batched inserts therefore bind exactly
the columns listed in each row, which keeps the parameter count per
statement predictable (see channel_stats.chunking).
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Channel(Base):
    """YouTube channel discovered through the aggregation endpoint.

    One row per distinct handle. Never mutated after insert, never deleted.

    Attributes:
        id: Auto-assigned integer primary key.
        channel_name: Canonical handle or identifier (e.g., "@foo"). Unique.
        created_at: Timestamp when the channel was first seen.
    """

    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_name: Mapped[str] = mapped_column(
        Text,
        unique=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    videos: Mapped[list["Video"]] = relationship("Video", back_populates="channel")

    def __repr__(self) -> str:
        """Return string representation for debugging."""
        return f"<Channel(id={self.id}, channel_name={self.channel_name!r})>"


class Video(Base):
    """Uploaded video belonging to a channel.

    Created once per distinct external video ID. Title and thumbnail are not
    refreshed when the video is seen again.

    Attributes:
        id: Auto-assigned integer primary key.
        video_id: External YouTube video ID (11 chars). Globally unique.
        channel_id: Foreign key to channels.id.
        title: Video title at discovery time.
        url: Canonical watch URL.
        thumbnail_url: High resolution thumbnail, None when upstream has none.
        created_at: Timestamp when the video was first seen.
    """

    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[str] = mapped_column(
        Text,
        unique=True,
        nullable=False,
    )
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    channel: Mapped["Channel"] = relationship("Channel", back_populates="videos")
    statistics: Mapped[list["VideoStatistic"]] = relationship(
        "VideoStatistic", back_populates="video"
    )

    def __repr__(self) -> str:
        """Return string representation for debugging."""
        return (
            f"<Video(id={self.id}, video_id={self.video_id!r}, "
            f"channel_id={self.channel_id})>"
        )


class VideoStatistic(Base):
    """Engagement snapshot for a video, appended once per fetch cycle.

    Attributes:
        id: Auto-assigned integer primary key.
        video_id: Foreign key to videos.id (the row ID, not the external ID).
        view_count: Views at fetch time (0 when upstream omits it). 64-bit,
            popular videos pass the 32-bit range.
        like_count: Likes at fetch time (0 when hidden or omitted).
        comment_count: Comments at fetch time (0 when disabled or omitted).
        recorded_at: Timestamp of the snapshot.
    """

    __tablename__ = "video_statistics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("videos.id"),
        nullable=False,
    )
    view_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    like_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    comment_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    video: Mapped["Video"] = relationship("Video", back_populates="statistics")

    __table_args__ = (
        Index("ix_video_statistics_video_id_recorded_at", "video_id", "recorded_at"),
        CheckConstraint(
            "view_count >= 0 AND like_count >= 0 AND comment_count >= 0",
            name="ck_video_statistics_non_negative",
        ),
    )

    def __repr__(self) -> str:
        """Return string representation for debugging."""
        return (
            f"<VideoStatistic(video_id={self.video_id}, views={self.view_count}, "
            f"likes={self.like_count}, comments={self.comment_count})>"
        )
