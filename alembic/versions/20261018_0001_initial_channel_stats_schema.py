"""initial channel stats schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18

Creates the three tables behind the channel report endpoint:
    - channels: one row per handle (unique channel_name)
    - videos: one row per external video ID (unique video_id)
    - video_statistics: append-only engagement snapshots

Timestamps default on the server so batched inserts do not bind them.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create channels, videos and video_statistics tables."""
    op.create_table(
        "channels",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("channel_name", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("channel_name", name="uq_channels_channel_name"),
    )

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("video_id", sa.Text(), nullable=False),
        sa.Column("channel_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["channel_id"], ["channels.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("video_id", name="uq_videos_video_id"),
    )
    op.create_index("ix_videos_channel_id", "videos", ["channel_id"])

    op.create_table(
        "video_statistics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("video_id", sa.Integer(), nullable=False),
        sa.Column("view_count", sa.BigInteger(), nullable=False),
        sa.Column("like_count", sa.BigInteger(), nullable=False),
        sa.Column("comment_count", sa.BigInteger(), nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "view_count >= 0 AND like_count >= 0 AND comment_count >= 0",
            name="ck_video_statistics_non_negative",
        ),
    )
    op.create_index(
        "ix_video_statistics_video_id_recorded_at",
        "video_statistics",
        ["video_id", "recorded_at"],
    )


def downgrade() -> None:
    """Drop video_statistics, videos and channels tables."""
    op.drop_index("ix_video_statistics_video_id_recorded_at", table_name="video_statistics")
    op.drop_table("video_statistics")
    op.drop_index("ix_videos_channel_id", table_name="videos")
    op.drop_table("videos")
    op.drop_table("channels")
