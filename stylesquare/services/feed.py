from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.errors import CommentNotFound, EmptyContent, NotPostAuthor, PostNotFound
from stylesquare.models.common import utcnow
from stylesquare.models.social import Post, PostComment, PostLike, PostRating
from stylesquare.services import directory, topics
from stylesquare.services.text import extract_hashtags

logger = logging.getLogger(__name__)

DEFAULT_POST_TYPE = "outfit_change"


@dataclass(slots=True)
class PostDetails:
    post: Post
    likes: list[str] = field(default_factory=list)
    comments: list[PostComment] = field(default_factory=list)
    ratings: list[PostRating] = field(default_factory=list)

    @property
    def average_rating(self) -> float | None:
        return average_score(self.ratings)


def average_score(ratings: Sequence[PostRating]) -> float | None:
    if not ratings:
        return None
    return sum(float(r.score) for r in ratings) / len(ratings)


async def _find_by_source(db: AsyncSession, post_type: str, outfit_change_id: str) -> Post | None:
    return (
        await db.execute(
            select(Post).where(and_(Post.post_type == post_type, Post.outfit_change_id == outfit_change_id))
        )
    ).scalar_one_or_none()


async def get_post(db: AsyncSession, post_id: int) -> Post:
    post = (await db.execute(select(Post).where(Post.id == post_id))).scalar_one_or_none()
    if post is None:
        raise PostNotFound()
    return post


def _ensure_author(post: Post, user_id: str | None) -> None:
    if user_id is not None and post.user_id != user_id:
        raise NotPostAuthor()


async def is_published(db: AsyncSession, outfit_change_id: str, *, post_type: str = DEFAULT_POST_TYPE) -> bool:
    return await _find_by_source(db, post_type, outfit_change_id) is not None


async def publish_post(
    db: AsyncSession,
    *,
    user_id: str,
    user_nickname: str,
    user_avatar: str | None = None,
    post_type: str = DEFAULT_POST_TYPE,
    outfit_change_id: str | None = None,
    original_image_uri: str | None = None,
    result_image_uri: str | None = None,
    template_name: str | None = None,
    custom_outfit_images: list[str] | None = None,
    show_original: bool = False,
    description: str | None = None,
) -> tuple[Post, bool]:
    """Publish a post, or return the post already published from the same source.

    The boolean is False when an existing post was returned instead of creating one.
    """
    if outfit_change_id:
        existing = await _find_by_source(db, post_type, outfit_change_id)
        if existing is not None:
            return existing, False

    await directory.upsert_user(db, user_id=user_id, nickname=user_nickname, avatar_url=user_avatar, commit=False)

    post = Post(
        user_id=user_id,
        user_nickname=user_nickname,
        user_avatar=user_avatar,
        post_type=post_type,
        outfit_change_id=outfit_change_id,
        original_image_uri=original_image_uri,
        result_image_uri=result_image_uri,
        template_name=template_name,
        custom_outfit_images=list(custom_outfit_images or []),
        show_original=show_original,
        description=description,
        hashtags=extract_hashtags(description),
        created_at=utcnow(),
    )
    db.add(post)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        if not outfit_change_id:
            raise
        existing = await _find_by_source(db, post_type, outfit_change_id)
        if existing is None:
            raise
        return existing, False

    await topics.record_post(db, user_id=user_id, hashtags=post.hashtags)
    await db.commit()
    await db.refresh(post)
    logger.info("Post %s published by %s", post.id, user_id)
    return post, True


async def list_posts(
    db: AsyncSession,
    *,
    limit: int = 30,
    cursor: int | None = None,
    user_id: str | None = None,
    topic: str | None = None,
) -> list[Post]:
    where = []
    if cursor is not None:
        where.append(Post.id < cursor)
    if user_id is not None:
        where.append(Post.user_id == user_id)
    tag = (topic or "").strip().lstrip("#").lower()
    if tag:
        where.append(Post.description.ilike(f"%#{tag}%"))

    stmt = select(Post)
    if where:
        stmt = stmt.where(and_(*where))
    stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
    if not tag:
        return list((await db.execute(stmt.limit(limit))).scalars().all())

    # the ILIKE prefilter also matches longer tags, so scan in batches until the page is full
    batch = max(limit, 1) * 2
    found: list[Post] = []
    offset = 0
    while len(found) < limit:
        rows = (await db.execute(stmt.offset(offset).limit(batch))).scalars().all()
        found.extend(p for p in rows if tag in (p.hashtags or []))
        if len(rows) < batch:
            break
        offset += batch
    return found[:limit]


async def load_post_details(db: AsyncSession, posts: Sequence[Post]) -> list[PostDetails]:
    ids = [p.id for p in posts]
    if not ids:
        return []

    likes: dict[int, list[str]] = defaultdict(list)
    for post_id, user_id in (
        await db.execute(
            select(PostLike.post_id, PostLike.user_id).where(PostLike.post_id.in_(ids)).order_by(PostLike.id.asc())
        )
    ).all():
        likes[post_id].append(user_id)

    comments: dict[int, list[PostComment]] = defaultdict(list)
    for comment in (
        await db.execute(
            select(PostComment)
            .where(PostComment.post_id.in_(ids))
            .order_by(PostComment.created_at.asc(), PostComment.id.asc())
        )
    ).scalars():
        comments[comment.post_id].append(comment)

    ratings: dict[int, list[PostRating]] = defaultdict(list)
    for rating in (
        await db.execute(select(PostRating).where(PostRating.post_id.in_(ids)).order_by(PostRating.id.asc()))
    ).scalars():
        ratings[rating.post_id].append(rating)

    return [
        PostDetails(post=p, likes=likes[p.id], comments=comments[p.id], ratings=ratings[p.id])
        for p in posts
    ]


async def get_post_details(db: AsyncSession, post_id: int) -> PostDetails:
    post = await get_post(db, post_id)
    return (await load_post_details(db, [post]))[0]


async def update_post_description(
    db: AsyncSession,
    *,
    post_id: int,
    description: str | None,
    user_id: str | None = None,
) -> Post:
    post = await get_post(db, post_id)
    _ensure_author(post, user_id)
    post.description = description
    post.hashtags = extract_hashtags(description)
    await db.commit()
    await db.refresh(post)
    return post


async def _delete_post_rows(db: AsyncSession, post: Post) -> None:
    await db.execute(delete(PostLike).where(PostLike.post_id == post.id))
    await db.execute(delete(PostComment).where(PostComment.post_id == post.id))
    await db.execute(delete(PostRating).where(PostRating.post_id == post.id))
    await db.delete(post)
    await db.commit()
    logger.info("Post %s deleted", post.id)


async def delete_post(db: AsyncSession, *, post_id: int, user_id: str | None = None) -> None:
    post = await get_post(db, post_id)
    _ensure_author(post, user_id)
    await _delete_post_rows(db, post)


async def delete_post_by_outfit_change_id(db: AsyncSession, *, outfit_change_id: str, user_id: str) -> bool:
    post = (
        await db.execute(
            select(Post).where(and_(Post.outfit_change_id == outfit_change_id, Post.user_id == user_id)).limit(1)
        )
    ).scalar_one_or_none()
    if post is None:
        logger.info("No post for outfit change %s by %s", outfit_change_id, user_id)
        return False
    await _delete_post_rows(db, post)
    return True


# --- likes -----------------------------------------------------------------


async def get_likes(db: AsyncSession, post_id: int) -> list[str]:
    return list(
        (
            await db.execute(
                select(PostLike.user_id).where(PostLike.post_id == post_id).order_by(PostLike.id.asc())
            )
        ).scalars().all()
    )


async def like_post(db: AsyncSession, *, post_id: int, user_id: str) -> tuple[bool, list[str]]:
    """Toggle ``user_id`` in the post's likes; returns (liked_now, likes)."""
    await get_post(db, post_id)
    existing = (
        await db.execute(select(PostLike).where(and_(PostLike.post_id == post_id, PostLike.user_id == user_id)))
    ).scalar_one_or_none()

    if existing is not None:
        await db.delete(existing)
        liked = False
    else:
        db.add(PostLike(post_id=post_id, user_id=user_id, created_at=utcnow()))
        liked = True

    try:
        await db.commit()
    except IntegrityError:
        # a concurrent like from the same user won the insert
        await db.rollback()
        liked = True

    return liked, await get_likes(db, post_id)


# --- comments --------------------------------------------------------------


async def _get_comment(db: AsyncSession, post_id: int, comment_id: int) -> PostComment:
    comment = (
        await db.execute(
            select(PostComment).where(and_(PostComment.id == comment_id, PostComment.post_id == post_id))
        )
    ).scalar_one_or_none()
    if comment is None:
        raise CommentNotFound()
    return comment


async def list_comments(db: AsyncSession, post_id: int) -> list[PostComment]:
    await get_post(db, post_id)
    return list(
        (
            await db.execute(
                select(PostComment)
                .where(PostComment.post_id == post_id)
                .order_by(PostComment.created_at.asc(), PostComment.id.asc())
            )
        ).scalars().all()
    )


async def add_comment(
    db: AsyncSession,
    *,
    post_id: int,
    user_id: str,
    user_nickname: str,
    content: str,
    user_avatar: str | None = None,
    reply_to_comment_id: int | None = None,
    reply_to_user_id: str | None = None,
    reply_to_nickname: str | None = None,
) -> PostComment:
    text = (content or "").strip()
    if not text:
        raise EmptyContent("Comment content required")
    await get_post(db, post_id)

    if reply_to_comment_id is not None:
        target = (
            await db.execute(
                select(PostComment).where(
                    and_(PostComment.id == reply_to_comment_id, PostComment.post_id == post_id)
                )
            )
        ).scalar_one_or_none()
        if target is not None:
            reply_to_user_id = reply_to_user_id or target.user_id
            reply_to_nickname = reply_to_nickname or target.user_nickname

    row = PostComment(
        post_id=post_id,
        user_id=user_id,
        user_nickname=user_nickname,
        user_avatar=user_avatar,
        content=text,
        reply_to_comment_id=reply_to_comment_id,
        reply_to_user_id=reply_to_user_id,
        reply_to_nickname=reply_to_nickname,
        created_at=utcnow(),
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def delete_comment(
    db: AsyncSession,
    *,
    post_id: int,
    comment_id: int,
    user_id: str | None = None,
) -> None:
    post = await get_post(db, post_id)
    comment = await _get_comment(db, post_id, comment_id)
    if user_id is not None and user_id not in {comment.user_id, post.user_id}:
        raise NotPostAuthor("Only the comment author or the post author can delete this comment")

    await db.delete(comment)
    if post.pinned_comment_id == comment_id:
        post.pinned_comment_id = None
    await db.commit()


async def pin_comment(
    db: AsyncSession,
    *,
    post_id: int,
    comment_id: int,
    user_id: str | None = None,
) -> int | None:
    """Toggle the pinned comment of a post; returns the pinned comment id afterwards."""
    post = await get_post(db, post_id)
    _ensure_author(post, user_id)
    await _get_comment(db, post_id, comment_id)

    post.pinned_comment_id = None if post.pinned_comment_id == comment_id else comment_id
    await db.commit()
    return post.pinned_comment_id


# --- ratings ---------------------------------------------------------------


async def _get_rating(db: AsyncSession, post_id: int, user_id: str) -> PostRating | None:
    return (
        await db.execute(
            select(PostRating).where(and_(PostRating.post_id == post_id, PostRating.user_id == user_id))
        )
    ).scalar_one_or_none()


async def rate_post(db: AsyncSession, *, post_id: int, user_id: str, score: float) -> PostRating:
    await get_post(db, post_id)
    row = await _get_rating(db, post_id, user_id)
    if row is None:
        row = PostRating(post_id=post_id, user_id=user_id, score=float(score))
        db.add(row)
    else:
        row.score = float(score)
        row.created_at = utcnow()

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        row = await _get_rating(db, post_id, user_id)
        if row is None:
            raise
        row.score = float(score)
        row.created_at = utcnow()
        await db.commit()

    await db.refresh(row)
    return row


async def remove_rating(db: AsyncSession, *, post_id: int, user_id: str) -> bool:
    row = await _get_rating(db, post_id, user_id)
    if row is None:
        return False
    await db.delete(row)
    await db.commit()
    return True


async def list_ratings(db: AsyncSession, post_id: int) -> list[PostRating]:
    return list(
        (
            await db.execute(select(PostRating).where(PostRating.post_id == post_id).order_by(PostRating.id.asc()))
        ).scalars().all()
    )


async def get_user_rating(db: AsyncSession, *, post_id: int, user_id: str) -> float | None:
    row = await _get_rating(db, post_id, user_id)
    return float(row.score) if row is not None else None


async def get_average_user_rating(db: AsyncSession, post_id: int) -> float | None:
    return average_score(await list_ratings(db, post_id))


# --- nickname propagation --------------------------------------------------


async def update_user_nickname(db: AsyncSession, *, user_id: str, new_nickname: str) -> dict[str, int]:
    nickname = (new_nickname or "").strip()
    if not nickname:
        raise EmptyContent("Nickname required")

    posts = await db.execute(update(Post).where(Post.user_id == user_id).values(user_nickname=nickname))
    comments = await db.execute(
        update(PostComment).where(PostComment.user_id == user_id).values(user_nickname=nickname)
    )
    replies = await db.execute(
        update(PostComment).where(PostComment.reply_to_user_id == user_id).values(reply_to_nickname=nickname)
    )
    await directory.upsert_user(db, user_id=user_id, nickname=nickname, commit=False)
    await db.commit()

    counts = {"posts": posts.rowcount, "comments": comments.rowcount, "replies": replies.rowcount}
    logger.info("Nickname of %s propagated: %s", user_id, counts)
    return counts
