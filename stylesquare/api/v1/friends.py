from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import as_iso, friend_request_out
from stylesquare.core.errors import NotFoundError
from stylesquare.db.session import get_db
from stylesquare.schemas.common import CountResponse, MessageResponse
from stylesquare.schemas.profile import FriendOut, FriendRequestCreate, FriendRequestOut, FriendStatusOut
from stylesquare.services import directory, relationships
from stylesquare.services.auth import AuthUser, get_current_user
from stylesquare.services.notifications import create_notification

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[FriendOut])
async def list_friends(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[FriendOut]:
    rows = await relationships.list_friends(db, current_user.user_id)
    return [
        FriendOut(
            user_id=row.user_id,
            nickname=row.nickname,
            avatar=row.avatar,
            phone=row.phone,
            added_at=as_iso(row.added_at),
        )
        for row in rows
    ]


@router.post("/requests", response_model=FriendRequestOut)
async def create_friend_request(
    payload: FriendRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestOut:
    await directory.require_user(db, payload.to_user_id)
    row = await relationships.send_friend_request(
        db,
        from_user_id=current_user.user_id,
        to_user_id=payload.to_user_id,
        from_nickname=current_user.nickname,
        from_avatar=current_user.avatar,
    )
    await create_notification(
        db,
        user_id=row.to_user_id,
        kind="friend_request",
        message="sent you a friend request",
        from_user_id=current_user.user_id,
        from_nickname=current_user.nickname,
        from_avatar=current_user.avatar,
        target_id=str(row.id),
    )
    return friend_request_out(row)


@router.get("/requests/incoming", response_model=list[FriendRequestOut])
async def list_incoming_requests(
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[FriendRequestOut]:
    rows = await relationships.list_incoming_requests(db, current_user.user_id, limit=limit)
    return [friend_request_out(row) for row in rows]


@router.get("/requests/outgoing", response_model=list[FriendRequestOut])
async def list_outgoing_requests(
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[FriendRequestOut]:
    rows = await relationships.list_sent_requests(db, current_user.user_id, limit=limit)
    return [friend_request_out(row) for row in rows]


@router.get("/requests/count", response_model=CountResponse)
async def pending_requests_count(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await relationships.pending_requests_count(db, current_user.user_id))


@router.post("/requests/{request_id}/accept", response_model=FriendRequestOut)
async def accept_friend_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestOut:
    row = await relationships.accept_friend_request(db, request_id=request_id, user_id=current_user.user_id)
    await create_notification(
        db,
        user_id=row.from_user_id,
        kind="friend_request_accepted",
        message="accepted your friend request",
        from_user_id=current_user.user_id,
        from_nickname=current_user.nickname,
        from_avatar=current_user.avatar,
        target_id=str(row.id),
    )
    return friend_request_out(row)


@router.post("/requests/{request_id}/reject", response_model=FriendRequestOut)
async def reject_friend_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestOut:
    row = await relationships.reject_friend_request(db, request_id=request_id, user_id=current_user.user_id)
    return friend_request_out(row)


@router.post("/requests/{request_id}/cancel", response_model=FriendRequestOut)
async def cancel_friend_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestOut:
    row = await relationships.cancel_friend_request(db, request_id=request_id, user_id=current_user.user_id)
    return friend_request_out(row)


@router.get("/status/{user_id}", response_model=FriendStatusOut)
async def friend_status(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FriendStatusOut:
    me = current_user.user_id
    return FriendStatusOut(
        user_id=user_id,
        is_friend=await relationships.is_friend(db, me, user_id),
        outgoing_pending=await relationships.has_pending_request(db, me, user_id),
        incoming_pending=await relationships.has_pending_request(db, user_id, me),
    )


@router.delete("/{friend_user_id}", response_model=MessageResponse)
async def remove_friend(
    friend_user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    removed = await relationships.remove_friend(db, user_id=current_user.user_id, friend_user_id=friend_user_id)
    if not removed:
        raise NotFoundError("Friendship not found")
    return MessageResponse(message="Friend removed")
