from __future__ import annotations

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    post_type: str = "outfit_change"
    outfit_change_id: str | None = None
    original_image_uri: str | None = None
    result_image_uri: str | None = None
    template_name: str | None = None
    custom_outfit_images: list[str] = Field(default_factory=list)
    show_original: bool = False
    description: str | None = Field(default=None, max_length=4000)


class PostPatch(BaseModel):
    description: str | None = Field(default=None, max_length=4000)


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
    reply_to_comment_id: int | None = None
    reply_to_user_id: str | None = None
    reply_to_nickname: str | None = None


class CommentOut(BaseModel):
    id: int
    post_id: int
    user_id: str
    user_nickname: str
    user_avatar: str | None = None
    content: str
    reply_to_comment_id: int | None = None
    reply_to_user_id: str | None = None
    reply_to_nickname: str | None = None
    created_at: str


class RatingIn(BaseModel):
    score: float = Field(ge=0, le=10)


class RatingOut(BaseModel):
    user_id: str
    score: float
    created_at: str


class RatingSummaryOut(BaseModel):
    post_id: int
    average: float | None = None
    count: int = 0
    my_score: float | None = None


class PostOut(BaseModel):
    id: int
    user_id: str
    user_nickname: str
    user_avatar: str | None = None
    post_type: str
    outfit_change_id: str | None = None
    original_image_uri: str | None = None
    result_image_uri: str | None = None
    template_name: str | None = None
    custom_outfit_images: list[str] = Field(default_factory=list)
    show_original: bool = False
    description: str | None = None
    hashtags: list[str] = Field(default_factory=list)
    pinned_comment_id: int | None = None
    likes: list[str] = Field(default_factory=list)
    likes_count: int = 0
    liked_by_me: bool = False
    comments: list[CommentOut] = Field(default_factory=list)
    ratings: list[RatingOut] = Field(default_factory=list)
    average_rating: float | None = None
    created_at: str


class PublishOut(BaseModel):
    post: PostOut
    created: bool


class LikeOut(BaseModel):
    post_id: int
    liked: bool
    likes: list[str]
    likes_count: int


class PinOut(BaseModel):
    post_id: int
    pinned_comment_id: int | None = None
