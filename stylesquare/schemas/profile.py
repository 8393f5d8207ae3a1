from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    user_id: str
    nickname: str
    avatar_url: str | None = None
    phone: str | None = None
    bio: str | None = None


class UserPatch(BaseModel):
    nickname: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1200)
    bio: str | None = Field(default=None, max_length=800)


class UserPatchOut(BaseModel):
    user: UserOut
    updated: dict[str, int] = Field(default_factory=dict)


class UserStatsOut(BaseModel):
    user_id: str
    followers_count: int
    following_count: int
    total_likes: int
    posts_count: int


class FriendOut(BaseModel):
    user_id: str
    nickname: str
    avatar: str | None = None
    phone: str | None = None
    added_at: str


class FriendRequestCreate(BaseModel):
    to_user_id: str


class FriendRequestOut(BaseModel):
    id: int
    from_user_id: str
    from_user_nickname: str
    from_user_avatar: str | None = None
    to_user_id: str
    status: str
    created_at: str


class FriendStatusOut(BaseModel):
    user_id: str
    is_friend: bool
    outgoing_pending: bool
    incoming_pending: bool


class FollowCreate(BaseModel):
    nickname: str | None = None
    avatar: str | None = None


class FollowOut(BaseModel):
    user_id: str
    nickname: str
    avatar: str | None = None
    followed_at: str


class FollowStatusOut(BaseModel):
    user_id: str
    is_following: bool
    followed_by: bool
    mutual: bool


class PrivacyOut(BaseModel):
    allow_friends_view_history: bool = True
    history_visibility: str = "friends_only"
    history_time_range: str = "all"


class PrivacyPatch(BaseModel):
    allow_friends_view_history: bool | None = None
    history_visibility: Literal["everyone", "friends_only", "none"] | None = None
    history_time_range: Literal["all", "six_months", "three_days"] | None = None
