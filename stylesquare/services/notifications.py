from __future__ import annotations

import json
import logging

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.config import settings
from stylesquare.core.errors import NotificationNotFound
from stylesquare.db.redis import redis_client
from stylesquare.models.common import as_utc
from stylesquare.models.notification import Notification
from stylesquare.services.text import preview

logger = logging.getLogger(__name__)

NOTIFICATION_KINDS = (
    "follow",
    "like",
    "comment",
    "new_post",
    "system",
    "friend_request",
    "friend_request_accepted",
)


def channel_for(user_id: str) -> str:
    return f"notif:{user_id}"


def serialize(row: Notification) -> dict:
    return {
        "id": row.id,
        "kind": row.kind,
        "from_user_id": row.from_user_id,
        "from_nickname": row.from_nickname,
        "from_avatar": row.from_avatar,
        "target_id": row.target_id,
        "target_preview": row.target_preview,
        "message": row.message,
        "is_read": row.is_read,
        "created_at": as_utc(row.created_at).isoformat(),
    }


async def _trim(db: AsyncSession, user_id: str) -> None:
    keep = max(int(settings.notifications_max_per_user or 0), 1)
    stale_ids = (
        await db.execute(
            select(Notification.id)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(keep)
        )
    ).scalars().all()
    if stale_ids:
        await db.execute(delete(Notification).where(Notification.id.in_(stale_ids)))


async def _publish(row: Notification) -> None:
    if not settings.realtime_enabled:
        return
    try:
        await redis_client.publish(channel_for(row.user_id), json.dumps(serialize(row)))
    except Exception:
        logger.exception("Failed to publish notification id=%s", row.id)


async def create_notification(
    db: AsyncSession,
    *,
    user_id: str,
    kind: str,
    message: str,
    from_user_id: str | None = None,
    from_nickname: str | None = None,
    from_avatar: str | None = None,
    target_id: str | None = None,
    target_preview: str | None = None,
) -> Notification:
    row = Notification(
        user_id=user_id,
        kind=kind,
        message=message,
        from_user_id=from_user_id,
        from_nickname=from_nickname,
        from_avatar=from_avatar,
        target_id=target_id,
        target_preview=target_preview,
        is_read=False,
    )
    db.add(row)
    await db.flush()
    await _trim(db, user_id)
    await db.commit()
    await db.refresh(row)

    await _publish(row)
    return row


async def notify_follow(db: AsyncSession, *, user_id: str, from_user_id: str, from_nickname: str, from_avatar: str | None = None) -> Notification:
    return await create_notification(
        db,
        user_id=user_id,
        kind="follow",
        message="started following you",
        from_user_id=from_user_id,
        from_nickname=from_nickname,
        from_avatar=from_avatar,
    )


async def notify_like(
    db: AsyncSession,
    *,
    user_id: str,
    from_user_id: str,
    from_nickname: str,
    post_id: int,
    post_preview: str | None = None,
    from_avatar: str | None = None,
) -> Notification | None:
    if user_id == from_user_id:
        return None
    return await create_notification(
        db,
        user_id=user_id,
        kind="like",
        message="liked your post",
        from_user_id=from_user_id,
        from_nickname=from_nickname,
        from_avatar=from_avatar,
        target_id=str(post_id),
        target_preview=preview(post_preview),
    )


async def notify_comment(
    db: AsyncSession,
    *,
    user_id: str,
    from_user_id: str,
    from_nickname: str,
    post_id: int,
    comment_content: str,
    from_avatar: str | None = None,
) -> Notification | None:
    if user_id == from_user_id:
        return None
    return await create_notification(
        db,
        user_id=user_id,
        kind="comment",
        message="commented on your post",
        from_user_id=from_user_id,
        from_nickname=from_nickname,
        from_avatar=from_avatar,
        target_id=str(post_id),
        target_preview=preview(comment_content),
    )


async def notify_new_post(
    db: AsyncSession,
    *,
    user_ids: list[str],
    from_user_id: str,
    from_nickname: str,
    post_id: int,
    post_preview: str | None = None,
    from_avatar: str | None = None,
) -> int:
    sent = 0
    for user_id in user_ids:
        if user_id == from_user_id:
            continue
        await create_notification(
            db,
            user_id=user_id,
            kind="new_post",
            message="published a new post",
            from_user_id=from_user_id,
            from_nickname=from_nickname,
            from_avatar=from_avatar,
            target_id=str(post_id),
            target_preview=preview(post_preview),
        )
        sent += 1
    return sent


async def list_notifications(db: AsyncSession, user_id: str, *, limit: int = 50) -> list[Notification]:
    return list(
        (
            await db.execute(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())
                .limit(limit)
            )
        ).scalars().all()
    )


async def unread_count(db: AsyncSession, user_id: str) -> int:
    return (
        await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(and_(Notification.user_id == user_id, Notification.is_read.is_(False)))
        )
    ).scalar_one()


async def _get_owned(db: AsyncSession, user_id: str, notification_id: int) -> Notification:
    row = (
        await db.execute(
            select(Notification).where(and_(Notification.id == notification_id, Notification.user_id == user_id))
        )
    ).scalar_one_or_none()
    if row is None:
        raise NotificationNotFound()
    return row


async def mark_read(db: AsyncSession, *, user_id: str, notification_id: int) -> Notification:
    row = await _get_owned(db, user_id, notification_id)
    row.is_read = True
    await db.commit()
    return row


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(and_(Notification.user_id == user_id, Notification.is_read.is_(False)))
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount


async def delete_notification(db: AsyncSession, *, user_id: str, notification_id: int) -> None:
    row = await _get_owned(db, user_id, notification_id)
    await db.delete(row)
    await db.commit()


async def clear_notifications(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(delete(Notification).where(Notification.user_id == user_id))
    await db.commit()
    return result.rowcount
