from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, TypeVar

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.errors import (
    AlreadyFollowing,
    AlreadyFriends,
    CannotAddSelf,
    CannotFollowSelf,
    IncomingRequestPending,
    InvalidSetting,
    NotYourRequest,
    RequestAlreadyProcessed,
    RequestAlreadySent,
    RequestNotFound,
)
from stylesquare.models.common import as_utc, utcnow
from stylesquare.models.social import Post, PostLike
from stylesquare.models.user import Follow, FriendRequest, Friendship, PrivacySettings
from stylesquare.services import directory

logger = logging.getLogger(__name__)

HISTORY_VISIBILITY = ("everyone", "friends_only", "none")
HISTORY_TIME_RANGES: dict[str, timedelta | None] = {
    "all": None,
    "six_months": timedelta(days=180),
    "three_days": timedelta(days=3),
}

T = TypeVar("T")


@dataclass(slots=True)
class FriendView:
    user_id: str
    nickname: str
    avatar: str | None
    phone: str | None
    added_at: datetime


@dataclass(slots=True)
class FollowView:
    user_id: str
    nickname: str
    avatar: str | None
    followed_at: datetime


@dataclass(slots=True)
class UserStats:
    user_id: str
    followers_count: int
    following_count: int
    total_likes: int
    posts_count: int


def normalize_pair(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a < b else (b, a)


# --- friendships -----------------------------------------------------------


async def _get_friendship(db: AsyncSession, a: str, b: str) -> Friendship | None:
    low, high = normalize_pair(a, b)
    return (
        await db.execute(
            select(Friendship).where(and_(Friendship.user_low_id == low, Friendship.user_high_id == high))
        )
    ).scalar_one_or_none()


async def _pending_request(db: AsyncSession, from_user_id: str, to_user_id: str) -> FriendRequest | None:
    return (
        await db.execute(
            select(FriendRequest)
            .where(
                and_(
                    FriendRequest.from_user_id == from_user_id,
                    FriendRequest.to_user_id == to_user_id,
                    FriendRequest.status == "pending",
                )
            )
            .limit(1)
        )
    ).scalar_one_or_none()


async def _get_request(db: AsyncSession, request_id: int) -> FriendRequest:
    req = (await db.execute(select(FriendRequest).where(FriendRequest.id == request_id))).scalar_one_or_none()
    if req is None:
        raise RequestNotFound()
    return req


async def is_friend(db: AsyncSession, user_id: str, other_user_id: str) -> bool:
    if user_id == other_user_id:
        return False
    return await _get_friendship(db, user_id, other_user_id) is not None


async def has_pending_request(db: AsyncSession, from_user_id: str, to_user_id: str) -> bool:
    return await _pending_request(db, from_user_id, to_user_id) is not None


async def send_friend_request(
    db: AsyncSession,
    *,
    from_user_id: str,
    to_user_id: str,
    from_nickname: str | None = None,
    from_avatar: str | None = None,
) -> FriendRequest:
    if from_user_id == to_user_id:
        raise CannotAddSelf()
    if await is_friend(db, from_user_id, to_user_id):
        raise AlreadyFriends()
    if await has_pending_request(db, from_user_id, to_user_id):
        raise RequestAlreadySent()
    if await has_pending_request(db, to_user_id, from_user_id):
        raise IncomingRequestPending()

    row = FriendRequest(
        from_user_id=from_user_id,
        from_user_nickname=(from_nickname or "").strip() or from_user_id,
        from_user_avatar=from_avatar,
        to_user_id=to_user_id,
        status="pending",
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    logger.info("Friend request %s sent from %s to %s", row.id, from_user_id, to_user_id)
    return row


async def accept_friend_request(db: AsyncSession, *, request_id: int, user_id: str) -> FriendRequest:
    req = await _get_request(db, request_id)
    if req.to_user_id != user_id:
        raise NotYourRequest()
    if req.status != "pending":
        raise RequestAlreadyProcessed()

    req.status = "accepted"
    if await _get_friendship(db, req.from_user_id, req.to_user_id) is None:
        low, high = normalize_pair(req.from_user_id, req.to_user_id)
        db.add(Friendship(user_low_id=low, user_high_id=high, created_at=utcnow()))

    # request status and the friendship row land in one transaction
    await db.commit()
    await db.refresh(req)
    logger.info("Friend request %s accepted by %s", req.id, user_id)
    return req


async def reject_friend_request(db: AsyncSession, *, request_id: int, user_id: str) -> FriendRequest:
    req = await _get_request(db, request_id)
    if req.to_user_id != user_id:
        raise NotYourRequest()
    if req.status != "pending":
        raise RequestAlreadyProcessed()
    req.status = "rejected"
    await db.commit()
    await db.refresh(req)
    return req


async def cancel_friend_request(db: AsyncSession, *, request_id: int, user_id: str) -> FriendRequest:
    req = await _get_request(db, request_id)
    if req.from_user_id != user_id:
        raise NotYourRequest()
    if req.status != "pending":
        raise RequestAlreadyProcessed()
    req.status = "cancelled"
    await db.commit()
    await db.refresh(req)
    return req


async def remove_friend(db: AsyncSession, *, user_id: str, friend_user_id: str) -> bool:
    friendship = await _get_friendship(db, user_id, friend_user_id)
    if friendship is not None:
        await db.delete(friendship)

    await db.execute(
        delete(FriendRequest).where(
            or_(
                and_(FriendRequest.from_user_id == user_id, FriendRequest.to_user_id == friend_user_id),
                and_(FriendRequest.from_user_id == friend_user_id, FriendRequest.to_user_id == user_id),
            )
        )
    )
    await db.commit()
    if friendship is not None:
        logger.info("Friendship between %s and %s removed", user_id, friend_user_id)
    return friendship is not None


async def friend_ids(db: AsyncSession, user_id: str) -> set[str]:
    rows = (
        await db.execute(
            select(Friendship).where(or_(Friendship.user_low_id == user_id, Friendship.user_high_id == user_id))
        )
    ).scalars().all()
    return {row.user_high_id if row.user_low_id == user_id else row.user_low_id for row in rows}


async def list_friends(db: AsyncSession, user_id: str) -> list[FriendView]:
    rows = (
        await db.execute(
            select(Friendship)
            .where(or_(Friendship.user_low_id == user_id, Friendship.user_high_id == user_id))
            .order_by(Friendship.created_at.asc(), Friendship.id.asc())
        )
    ).scalars().all()
    other_ids = [row.user_high_id if row.user_low_id == user_id else row.user_low_id for row in rows]
    users = await directory.get_users(db, set(other_ids))

    out: list[FriendView] = []
    for row, other_id in zip(rows, other_ids):
        user = users.get(other_id)
        out.append(
            FriendView(
                user_id=other_id,
                nickname=user.nickname if user else other_id,
                avatar=user.avatar_url if user else None,
                phone=user.phone if user else None,
                added_at=as_utc(row.created_at),
            )
        )
    return out


async def list_incoming_requests(
    db: AsyncSession,
    user_id: str,
    *,
    status: str | None = "pending",
    limit: int = 50,
) -> list[FriendRequest]:
    stmt = select(FriendRequest).where(FriendRequest.to_user_id == user_id)
    if status is not None:
        stmt = stmt.where(FriendRequest.status == status)
    stmt = stmt.order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc()).limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def list_sent_requests(
    db: AsyncSession,
    user_id: str,
    *,
    status: str | None = "pending",
    limit: int = 50,
) -> list[FriendRequest]:
    stmt = select(FriendRequest).where(FriendRequest.from_user_id == user_id)
    if status is not None:
        stmt = stmt.where(FriendRequest.status == status)
    stmt = stmt.order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc()).limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def pending_requests_count(db: AsyncSession, user_id: str) -> int:
    return (
        await db.execute(
            select(func.count())
            .select_from(FriendRequest)
            .where(and_(FriendRequest.to_user_id == user_id, FriendRequest.status == "pending"))
        )
    ).scalar_one()


# --- follow edges ----------------------------------------------------------


async def _get_follow(db: AsyncSession, follower_user_id: str, followee_user_id: str) -> Follow | None:
    return (
        await db.execute(
            select(Follow).where(
                and_(Follow.follower_user_id == follower_user_id, Follow.followee_user_id == followee_user_id)
            )
        )
    ).scalar_one_or_none()


async def is_following(db: AsyncSession, follower_user_id: str, followee_user_id: str) -> bool:
    return await _get_follow(db, follower_user_id, followee_user_id) is not None


async def is_mutual_follow(db: AsyncSession, user_id: str, other_user_id: str) -> bool:
    if not await is_following(db, user_id, other_user_id):
        return False
    return await is_following(db, other_user_id, user_id)


async def follow_user(
    db: AsyncSession,
    *,
    follower_user_id: str,
    followee_user_id: str,
    followee_nickname: str | None = None,
    followee_avatar: str | None = None,
) -> Follow:
    if follower_user_id == followee_user_id:
        raise CannotFollowSelf()
    if await is_following(db, follower_user_id, followee_user_id):
        raise AlreadyFollowing()

    if followee_nickname or followee_avatar:
        await directory.upsert_user(
            db,
            user_id=followee_user_id,
            nickname=followee_nickname,
            avatar_url=followee_avatar,
            commit=False,
        )

    row = Follow(follower_user_id=follower_user_id, followee_user_id=followee_user_id, created_at=utcnow())
    db.add(row)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise AlreadyFollowing() from exc
    await db.refresh(row)
    logger.info("%s followed %s", follower_user_id, followee_user_id)
    return row


async def unfollow_user(db: AsyncSession, *, follower_user_id: str, followee_user_id: str) -> bool:
    row = await _get_follow(db, follower_user_id, followee_user_id)
    if row is None:
        return False
    await db.delete(row)
    await db.commit()
    logger.info("%s unfollowed %s", follower_user_id, followee_user_id)
    return True


async def _follow_views(db: AsyncSession, rows: Sequence[Follow], *, other_attr: str) -> list[FollowView]:
    other_ids = [getattr(row, other_attr) for row in rows]
    users = await directory.get_users(db, set(other_ids))
    out: list[FollowView] = []
    for row, other_id in zip(rows, other_ids):
        user = users.get(other_id)
        out.append(
            FollowView(
                user_id=other_id,
                nickname=user.nickname if user else other_id,
                avatar=user.avatar_url if user else None,
                followed_at=as_utc(row.created_at),
            )
        )
    return out


async def get_following_list(db: AsyncSession, user_id: str) -> list[FollowView]:
    rows = (
        await db.execute(
            select(Follow).where(Follow.follower_user_id == user_id).order_by(Follow.created_at.asc(), Follow.id.asc())
        )
    ).scalars().all()
    return await _follow_views(db, rows, other_attr="followee_user_id")


async def get_followers_list(db: AsyncSession, user_id: str) -> list[FollowView]:
    rows = (
        await db.execute(
            select(Follow).where(Follow.followee_user_id == user_id).order_by(Follow.created_at.asc(), Follow.id.asc())
        )
    ).scalars().all()
    return await _follow_views(db, rows, other_attr="follower_user_id")


async def follower_ids(db: AsyncSession, user_id: str) -> list[str]:
    return list(
        (await db.execute(select(Follow.follower_user_id).where(Follow.followee_user_id == user_id))).scalars().all()
    )


async def get_followers_count(db: AsyncSession, user_id: str) -> int:
    return (
        await db.execute(select(func.count()).select_from(Follow).where(Follow.followee_user_id == user_id))
    ).scalar_one()


async def get_following_count(db: AsyncSession, user_id: str) -> int:
    return (
        await db.execute(select(func.count()).select_from(Follow).where(Follow.follower_user_id == user_id))
    ).scalar_one()


async def get_user_stats(db: AsyncSession, user_id: str) -> UserStats:
    posts_count = (
        await db.execute(select(func.count()).select_from(Post).where(Post.user_id == user_id))
    ).scalar_one()
    total_likes = (
        await db.execute(
            select(func.count())
            .select_from(PostLike)
            .join(Post, Post.id == PostLike.post_id)
            .where(Post.user_id == user_id)
        )
    ).scalar_one()
    return UserStats(
        user_id=user_id,
        followers_count=await get_followers_count(db, user_id),
        following_count=await get_following_count(db, user_id),
        total_likes=total_likes,
        posts_count=posts_count,
    )


# --- privacy and history visibility ----------------------------------------


async def get_privacy_settings(db: AsyncSession, user_id: str) -> PrivacySettings:
    row = (
        await db.execute(select(PrivacySettings).where(PrivacySettings.user_id == user_id))
    ).scalar_one_or_none()
    if row is None:
        # unsaved defaults; persisted on first update
        row = PrivacySettings(
            user_id=user_id,
            allow_friends_view_history=True,
            history_visibility="friends_only",
            history_time_range="all",
        )
    return row


async def update_privacy_settings(
    db: AsyncSession,
    user_id: str,
    *,
    allow_friends_view_history: bool | None = None,
    history_visibility: str | None = None,
    history_time_range: str | None = None,
) -> PrivacySettings:
    if history_visibility is not None and history_visibility not in HISTORY_VISIBILITY:
        raise InvalidSetting(f"Invalid history_visibility: {history_visibility}")
    if history_time_range is not None and history_time_range not in HISTORY_TIME_RANGES:
        raise InvalidSetting(f"Invalid history_time_range: {history_time_range}")

    row = await get_privacy_settings(db, user_id)
    if row.id is None:
        db.add(row)
    if allow_friends_view_history is not None:
        row.allow_friends_view_history = allow_friends_view_history
    if history_visibility is not None:
        row.history_visibility = history_visibility
    if history_time_range is not None:
        row.history_time_range = history_time_range

    await db.commit()
    await db.refresh(row)
    return row


def history_visible(settings_row: PrivacySettings, *, is_self: bool, are_friends: bool) -> bool:
    if is_self:
        return True
    if settings_row.history_visibility == "none":
        return False
    if settings_row.history_visibility == "everyone":
        return True
    if settings_row.history_visibility == "friends_only":
        return are_friends and bool(settings_row.allow_friends_view_history)
    return False


def filter_history_by_range(
    items: Iterable[T],
    time_range: str,
    *,
    now: datetime | None = None,
    key: str = "created_at",
) -> list[T]:
    window = HISTORY_TIME_RANGES.get(time_range)
    if window is None:
        return list(items)
    cutoff = as_utc(now or utcnow()) - window
    return [item for item in items if as_utc(getattr(item, key)) >= cutoff]


async def can_view_history(db: AsyncSession, *, viewer_user_id: str, target_user_id: str) -> bool:
    if viewer_user_id == target_user_id:
        return True
    settings_row = await get_privacy_settings(db, target_user_id)
    are_friends = False
    if settings_row.history_visibility == "friends_only":
        are_friends = await is_friend(db, viewer_user_id, target_user_id)
    return history_visible(settings_row, is_self=False, are_friends=are_friends)


async def get_filtered_history(
    db: AsyncSession,
    *,
    target_user_id: str,
    items: Iterable[Any],
    now: datetime | None = None,
) -> list[Any]:
    settings_row = await get_privacy_settings(db, target_user_id)
    return filter_history_by_range(items, settings_row.history_time_range, now=now)
