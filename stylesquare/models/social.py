from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stylesquare.db.base import Base
from stylesquare.models.common import TimestampMixin, utcnow


class Post(TimestampMixin, Base):
    __tablename__ = "square_posts"
    __table_args__ = (
        UniqueConstraint("post_type", "outfit_change_id", name="uq_square_post_source"),
        Index("ix_square_posts_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    user_nickname: Mapped[str] = mapped_column(String(255), nullable=False)
    user_avatar: Mapped[str | None] = mapped_column(String(1200), nullable=True)
    post_type: Mapped[str] = mapped_column(String(32), default="outfit_change", nullable=False)
    outfit_change_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_image_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_image_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    template_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    custom_outfit_images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    show_original: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hashtags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    pinned_comment_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class PostLike(Base):
    __tablename__ = "square_post_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_square_post_like"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("square_posts.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class PostComment(Base):
    __tablename__ = "square_post_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("square_posts.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    user_nickname: Mapped[str] = mapped_column(String(255), nullable=False)
    user_avatar: Mapped[str | None] = mapped_column(String(1200), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    reply_to_comment_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reply_to_user_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    reply_to_nickname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class PostRating(TimestampMixin, Base):
    __tablename__ = "square_post_ratings"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_square_post_rating"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("square_posts.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
