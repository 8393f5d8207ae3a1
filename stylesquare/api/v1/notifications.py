from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import as_iso
from stylesquare.db.session import get_db
from stylesquare.models.notification import Notification
from stylesquare.schemas.common import CountResponse, MessageResponse
from stylesquare.schemas.notification import NotificationOut
from stylesquare.services import notifications
from stylesquare.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_out(row: Notification) -> NotificationOut:
    return NotificationOut(
        id=row.id,
        kind=row.kind,
        from_user_id=row.from_user_id,
        from_nickname=row.from_nickname,
        from_avatar=row.from_avatar,
        target_id=row.target_id,
        target_preview=row.target_preview,
        message=row.message,
        is_read=row.is_read,
        created_at=as_iso(row.created_at),
    )


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    limit: int = Query(default=50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[NotificationOut]:
    rows = await notifications.list_notifications(db, current_user.user_id, limit=limit)
    return [_notification_out(row) for row in rows]


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await notifications.unread_count(db, current_user.user_id))


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await notifications.mark_all_read(db, current_user.user_id))


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> NotificationOut:
    row = await notifications.mark_read(db, user_id=current_user.user_id, notification_id=notification_id)
    return _notification_out(row)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    await notifications.delete_notification(db, user_id=current_user.user_id, notification_id=notification_id)
    return MessageResponse(message="Notification deleted")


@router.delete("", response_model=CountResponse)
async def clear_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await notifications.clear_notifications(db, current_user.user_id))
