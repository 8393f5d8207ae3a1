"""initial schema: directory, relationships, square feed, notifications, history

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users_directory",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("nickname", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.String(length=1200), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("bio", sa.String(length=800), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_users_directory_phone", "users_directory", ["phone"], unique=True)

    op.create_table(
        "privacy_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("allow_friends_view_history", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("history_visibility", sa.String(length=20), nullable=False, server_default=sa.text("'friends_only'")),
        sa.Column("history_time_range", sa.String(length=20), nullable=False, server_default=sa.text("'all'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("from_user_id", sa.String(length=64), nullable=False),
        sa.Column("from_user_nickname", sa.String(length=255), nullable=False),
        sa.Column("from_user_avatar", sa.String(length=1200), nullable=True),
        sa.Column("to_user_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.CheckConstraint("from_user_id <> to_user_id", name="ck_friend_request_self"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_friend_requests_from_user_id", "friend_requests", ["from_user_id"], unique=False)
    op.create_index("ix_friend_requests_to_user_id", "friend_requests", ["to_user_id"], unique=False)
    op.create_index(
        "ix_friend_requests_pair_status",
        "friend_requests",
        ["from_user_id", "to_user_id", "status"],
        unique=False,
    )

    op.create_table(
        "friendships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_low_id", sa.String(length=64), nullable=False),
        sa.Column("user_high_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_friendship_pair"),
    )
    op.create_index("ix_friendships_user_low_id", "friendships", ["user_low_id"], unique=False)
    op.create_index("ix_friendships_user_high_id", "friendships", ["user_high_id"], unique=False)

    op.create_table(
        "follows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("follower_user_id", sa.String(length=64), nullable=False),
        sa.Column("followee_user_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("follower_user_id <> followee_user_id", name="ck_follow_self"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_user_id", "followee_user_id", name="uq_follow_pair"),
    )
    op.create_index("ix_follows_follower_user_id", "follows", ["follower_user_id"], unique=False)
    op.create_index("ix_follows_followee_user_id", "follows", ["followee_user_id"], unique=False)

    op.create_table(
        "square_posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("user_nickname", sa.String(length=255), nullable=False),
        sa.Column("user_avatar", sa.String(length=1200), nullable=True),
        sa.Column("post_type", sa.String(length=32), nullable=False, server_default=sa.text("'outfit_change'")),
        sa.Column("outfit_change_id", sa.String(length=64), nullable=True),
        sa.Column("original_image_uri", sa.Text(), nullable=True),
        sa.Column("result_image_uri", sa.Text(), nullable=True),
        sa.Column("template_name", sa.String(length=255), nullable=True),
        sa.Column("custom_outfit_images", sa.JSON(), nullable=False),
        sa.Column("show_original", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hashtags", sa.JSON(), nullable=False),
        sa.Column("pinned_comment_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_type", "outfit_change_id", name="uq_square_post_source"),
    )
    op.create_index("ix_square_posts_user_id", "square_posts", ["user_id"], unique=False)
    op.create_index("ix_square_posts_user_created", "square_posts", ["user_id", "created_at"], unique=False)

    op.create_table(
        "square_post_likes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["square_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_square_post_like"),
    )
    op.create_index("ix_square_post_likes_post_id", "square_post_likes", ["post_id"], unique=False)
    op.create_index("ix_square_post_likes_user_id", "square_post_likes", ["user_id"], unique=False)

    op.create_table(
        "square_post_comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("user_nickname", sa.String(length=255), nullable=False),
        sa.Column("user_avatar", sa.String(length=1200), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("reply_to_comment_id", sa.Integer(), nullable=True),
        sa.Column("reply_to_user_id", sa.String(length=64), nullable=True),
        sa.Column("reply_to_nickname", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["square_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_square_post_comments_post_id", "square_post_comments", ["post_id"], unique=False)
    op.create_index("ix_square_post_comments_user_id", "square_post_comments", ["user_id"], unique=False)
    op.create_index(
        "ix_square_post_comments_reply_to_user_id",
        "square_post_comments",
        ["reply_to_user_id"],
        unique=False,
    )

    op.create_table(
        "square_post_ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["post_id"], ["square_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_square_post_rating"),
    )
    op.create_index("ix_square_post_ratings_post_id", "square_post_ratings", ["post_id"], unique=False)
    op.create_index("ix_square_post_ratings_user_id", "square_post_ratings", ["user_id"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("kind", sa.String(length=50), nullable=False),
        sa.Column("from_user_id", sa.String(length=64), nullable=True),
        sa.Column("from_nickname", sa.String(length=255), nullable=True),
        sa.Column("from_avatar", sa.String(length=1200), nullable=True),
        sa.Column("target_id", sa.String(length=64), nullable=True),
        sa.Column("target_preview", sa.String(length=255), nullable=True),
        sa.Column("message", sa.String(length=1000), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"], unique=False)

    op.create_table(
        "outfit_change_history",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("original_image_uri", sa.Text(), nullable=False),
        sa.Column("result_image_uri", sa.Text(), nullable=False),
        sa.Column("template_id", sa.String(length=64), nullable=False),
        sa.Column("template_name", sa.String(length=255), nullable=False),
        sa.Column("allow_square_publish", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_published_to_square", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_outfit_change_history_user_id", "outfit_change_history", ["user_id"], unique=False)
    op.create_index(
        "ix_outfit_change_history_user_created",
        "outfit_change_history",
        ["user_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("outfit_change_history")
    op.drop_table("notifications")
    op.drop_table("square_post_ratings")
    op.drop_table("square_post_comments")
    op.drop_table("square_post_likes")
    op.drop_table("square_posts")
    op.drop_table("follows")
    op.drop_table("friendships")
    op.drop_table("friend_requests")
    op.drop_table("privacy_settings")
    op.drop_table("users_directory")
