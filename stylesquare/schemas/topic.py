from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

TopicCategory = Literal["style", "scene", "challenge", "seasonal", "event", "other"]


class TopicCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    category: TopicCategory = "other"


class TopicOut(BaseModel):
    id: str
    name: str
    name_with_hash: str
    description: str | None = None
    category: str
    posts_count: int
    participants_count: int
    views_count: int
    followers_count: int
    is_official: bool
    is_hot: bool
    is_following: bool = False
    created_at: str
    updated_at: str


class TopicCreateOut(BaseModel):
    topic: TopicOut
    created: bool


class TopicFollowOut(BaseModel):
    topic_id: str
    following: bool
    followers_count: int
