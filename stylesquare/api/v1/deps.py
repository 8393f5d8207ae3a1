from __future__ import annotations

from datetime import datetime

from stylesquare.models.common import as_utc
from stylesquare.models.history import OutfitChangeHistory
from stylesquare.models.social import PostComment, PostRating
from stylesquare.models.user import DirectoryUser, FriendRequest
from stylesquare.schemas.history import HistoryItemOut
from stylesquare.schemas.post import CommentOut, PostOut, RatingOut
from stylesquare.schemas.profile import FriendRequestOut, UserOut
from stylesquare.services.feed import PostDetails


def as_iso(value: datetime | None) -> str:
    if value is None:
        return ""
    return as_utc(value).isoformat()


def user_out(row: DirectoryUser) -> UserOut:
    return UserOut(
        user_id=row.user_id,
        nickname=row.nickname,
        avatar_url=row.avatar_url,
        phone=row.phone,
        bio=row.bio,
    )


def friend_request_out(row: FriendRequest) -> FriendRequestOut:
    return FriendRequestOut(
        id=row.id,
        from_user_id=row.from_user_id,
        from_user_nickname=row.from_user_nickname,
        from_user_avatar=row.from_user_avatar,
        to_user_id=row.to_user_id,
        status=row.status,
        created_at=as_iso(row.created_at),
    )


def comment_out(row: PostComment) -> CommentOut:
    return CommentOut(
        id=row.id,
        post_id=row.post_id,
        user_id=row.user_id,
        user_nickname=row.user_nickname,
        user_avatar=row.user_avatar,
        content=row.content,
        reply_to_comment_id=row.reply_to_comment_id,
        reply_to_user_id=row.reply_to_user_id,
        reply_to_nickname=row.reply_to_nickname,
        created_at=as_iso(row.created_at),
    )


def rating_out(row: PostRating) -> RatingOut:
    return RatingOut(user_id=row.user_id, score=float(row.score), created_at=as_iso(row.created_at))


def post_out(details: PostDetails, *, viewer_id: str | None = None) -> PostOut:
    post = details.post
    return PostOut(
        id=post.id,
        user_id=post.user_id,
        user_nickname=post.user_nickname,
        user_avatar=post.user_avatar,
        post_type=post.post_type,
        outfit_change_id=post.outfit_change_id,
        original_image_uri=post.original_image_uri,
        result_image_uri=post.result_image_uri,
        template_name=post.template_name,
        custom_outfit_images=list(post.custom_outfit_images or []),
        show_original=post.show_original,
        description=post.description,
        hashtags=list(post.hashtags or []),
        pinned_comment_id=post.pinned_comment_id,
        likes=list(details.likes),
        likes_count=len(details.likes),
        liked_by_me=bool(viewer_id and viewer_id in details.likes),
        comments=[comment_out(c) for c in details.comments],
        ratings=[rating_out(r) for r in details.ratings],
        average_rating=details.average_rating,
        created_at=as_iso(post.created_at),
    )


def history_item_out(row: OutfitChangeHistory) -> HistoryItemOut:
    return HistoryItemOut(
        id=row.id,
        user_id=row.user_id,
        original_image_uri=row.original_image_uri,
        result_image_uri=row.result_image_uri,
        template_id=row.template_id,
        template_name=row.template_name,
        allow_square_publish=row.allow_square_publish,
        is_published_to_square=row.is_published_to_square,
        created_at=as_iso(row.created_at),
    )
