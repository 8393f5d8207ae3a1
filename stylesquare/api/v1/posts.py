from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import comment_out, post_out
from stylesquare.core.errors import NotFoundError
from stylesquare.db.session import get_db
from stylesquare.schemas.common import MessageResponse
from stylesquare.schemas.post import (
    CommentCreate,
    CommentOut,
    LikeOut,
    PinOut,
    PostCreate,
    PostOut,
    PostPatch,
    PublishOut,
    RatingIn,
    RatingSummaryOut,
)
from stylesquare.services import feed, history, relationships
from stylesquare.services.auth import AuthUser, get_current_user
from stylesquare.services.notifications import notify_comment, notify_like, notify_new_post

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


async def _rating_summary(db: AsyncSession, post_id: int, user_id: str) -> RatingSummaryOut:
    ratings = await feed.list_ratings(db, post_id)
    mine = next((float(r.score) for r in ratings if r.user_id == user_id), None)
    return RatingSummaryOut(
        post_id=post_id,
        average=feed.average_score(ratings),
        count=len(ratings),
        my_score=mine,
    )


@router.post("", response_model=PublishOut)
async def publish_post(
    payload: PostCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> PublishOut:
    post, created = await feed.publish_post(
        db,
        user_id=current_user.user_id,
        user_nickname=current_user.nickname,
        user_avatar=current_user.avatar,
        post_type=payload.post_type,
        outfit_change_id=payload.outfit_change_id,
        original_image_uri=payload.original_image_uri,
        result_image_uri=payload.result_image_uri,
        template_name=payload.template_name,
        custom_outfit_images=payload.custom_outfit_images,
        show_original=payload.show_original,
        description=payload.description,
    )

    if created:
        if payload.outfit_change_id:
            await history.mark_published(db, user_id=current_user.user_id, item_id=payload.outfit_change_id)
        followers = await relationships.follower_ids(db, current_user.user_id)
        sent = await notify_new_post(
            db,
            user_ids=followers,
            from_user_id=current_user.user_id,
            from_nickname=current_user.nickname,
            from_avatar=current_user.avatar,
            post_id=post.id,
            post_preview=post.description or post.template_name,
        )
        logger.info("Post %s announced to %s followers", post.id, sent)

    details = await feed.get_post_details(db, post.id)
    return PublishOut(post=post_out(details, viewer_id=current_user.user_id), created=created)


@router.get("", response_model=list[PostOut])
async def list_posts(
    limit: int = Query(default=30, ge=1, le=100),
    cursor: int | None = Query(default=None),
    user_id: str | None = Query(default=None),
    topic: str | None = Query(default=None, max_length=40),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[PostOut]:
    posts = await feed.list_posts(db, limit=limit, cursor=cursor, user_id=user_id, topic=topic)
    details = await feed.load_post_details(db, posts)
    return [post_out(d, viewer_id=current_user.user_id) for d in details]


@router.delete("/by-outfit-change/{outfit_change_id}", response_model=MessageResponse)
async def delete_post_by_outfit_change(
    outfit_change_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    deleted = await feed.delete_post_by_outfit_change_id(
        db, outfit_change_id=outfit_change_id, user_id=current_user.user_id
    )
    if not deleted:
        raise NotFoundError("No post for this outfit change")
    await history.mark_published(db, user_id=current_user.user_id, item_id=outfit_change_id, published=False)
    return MessageResponse(message="Post deleted")


@router.get("/{post_id}", response_model=PostOut)
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> PostOut:
    return post_out(await feed.get_post_details(db, post_id), viewer_id=current_user.user_id)


@router.patch("/{post_id}", response_model=PostOut)
async def update_post(
    post_id: int,
    payload: PostPatch,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> PostOut:
    await feed.update_post_description(
        db, post_id=post_id, description=payload.description, user_id=current_user.user_id
    )
    return post_out(await feed.get_post_details(db, post_id), viewer_id=current_user.user_id)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    post = await feed.get_post(db, post_id)
    outfit_change_id = post.outfit_change_id
    await feed.delete_post(db, post_id=post_id, user_id=current_user.user_id)
    if outfit_change_id:
        await history.mark_published(db, user_id=current_user.user_id, item_id=outfit_change_id, published=False)
    return MessageResponse(message="Post deleted")


@router.post("/{post_id}/like", response_model=LikeOut)
async def toggle_like(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> LikeOut:
    liked, likes = await feed.like_post(db, post_id=post_id, user_id=current_user.user_id)
    if liked:
        post = await feed.get_post(db, post_id)
        await notify_like(
            db,
            user_id=post.user_id,
            from_user_id=current_user.user_id,
            from_nickname=current_user.nickname,
            from_avatar=current_user.avatar,
            post_id=post.id,
            post_preview=post.description or post.template_name,
        )
    return LikeOut(post_id=post_id, liked=liked, likes=likes, likes_count=len(likes))


@router.get("/{post_id}/comments", response_model=list[CommentOut])
async def list_comments(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[CommentOut]:
    return [comment_out(c) for c in await feed.list_comments(db, post_id)]


@router.post("/{post_id}/comments", response_model=CommentOut)
async def add_comment(
    post_id: int,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> CommentOut:
    row = await feed.add_comment(
        db,
        post_id=post_id,
        user_id=current_user.user_id,
        user_nickname=current_user.nickname,
        user_avatar=current_user.avatar,
        content=payload.content,
        reply_to_comment_id=payload.reply_to_comment_id,
        reply_to_user_id=payload.reply_to_user_id,
        reply_to_nickname=payload.reply_to_nickname,
    )
    post = await feed.get_post(db, post_id)
    await notify_comment(
        db,
        user_id=post.user_id,
        from_user_id=current_user.user_id,
        from_nickname=current_user.nickname,
        from_avatar=current_user.avatar,
        post_id=post.id,
        comment_content=row.content,
    )
    return comment_out(row)


@router.delete("/{post_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    await feed.delete_comment(db, post_id=post_id, comment_id=comment_id, user_id=current_user.user_id)
    return MessageResponse(message="Comment deleted")


@router.post("/{post_id}/comments/{comment_id}/pin", response_model=PinOut)
async def pin_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> PinOut:
    pinned = await feed.pin_comment(db, post_id=post_id, comment_id=comment_id, user_id=current_user.user_id)
    return PinOut(post_id=post_id, pinned_comment_id=pinned)


@router.get("/{post_id}/ratings", response_model=RatingSummaryOut)
async def rating_summary(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> RatingSummaryOut:
    await feed.get_post(db, post_id)
    return await _rating_summary(db, post_id, current_user.user_id)


@router.put("/{post_id}/rating", response_model=RatingSummaryOut)
async def rate_post(
    post_id: int,
    payload: RatingIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> RatingSummaryOut:
    await feed.rate_post(db, post_id=post_id, user_id=current_user.user_id, score=payload.score)
    return await _rating_summary(db, post_id, current_user.user_id)


@router.delete("/{post_id}/rating", response_model=RatingSummaryOut)
async def remove_rating(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> RatingSummaryOut:
    await feed.get_post(db, post_id)
    await feed.remove_rating(db, post_id=post_id, user_id=current_user.user_id)
    return await _rating_summary(db, post_id, current_user.user_id)
