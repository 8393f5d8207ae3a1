from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stylesquare.db.base import Base
from stylesquare.models.common import TimestampMixin, utcnow


class DirectoryUser(TimestampMixin, Base):
    __tablename__ = "users_directory"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    nickname: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(1200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), unique=True, index=True, nullable=True)
    bio: Mapped[str | None] = mapped_column(String(800), nullable=True)


class PrivacySettings(TimestampMixin, Base):
    __tablename__ = "privacy_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    allow_friends_view_history: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    history_visibility: Mapped[str] = mapped_column(String(20), default="friends_only", nullable=False)
    history_time_range: Mapped[str] = mapped_column(String(20), default="all", nullable=False)


class FriendRequest(TimestampMixin, Base):
    __tablename__ = "friend_requests"
    __table_args__ = (
        CheckConstraint("from_user_id <> to_user_id", name="ck_friend_request_self"),
        Index("ix_friend_requests_pair_status", "from_user_id", "to_user_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    from_user_nickname: Mapped[str] = mapped_column(String(255), nullable=False)
    from_user_avatar: Mapped[str | None] = mapped_column(String(1200), nullable=True)
    to_user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)


class Friendship(Base):
    __tablename__ = "friendships"
    __table_args__ = (UniqueConstraint("user_low_id", "user_high_id", name="uq_friendship_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_low_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    user_high_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Follow(Base):
    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_user_id", "followee_user_id", name="uq_follow_pair"),
        CheckConstraint("follower_user_id <> followee_user_id", name="ck_follow_self"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    follower_user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    followee_user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
