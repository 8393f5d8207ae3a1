from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import as_iso
from stylesquare.db.session import get_db
from stylesquare.schemas.common import MessageResponse
from stylesquare.schemas.profile import FollowCreate, FollowOut, FollowStatusOut
from stylesquare.services import directory, relationships
from stylesquare.services.auth import AuthUser, get_current_user
from stylesquare.services.notifications import notify_follow
from stylesquare.services.relationships import FollowView

router = APIRouter(prefix="/follows", tags=["follows"])


def _follow_out(view: FollowView) -> FollowOut:
    return FollowOut(
        user_id=view.user_id,
        nickname=view.nickname,
        avatar=view.avatar,
        followed_at=as_iso(view.followed_at),
    )


@router.get("/following", response_model=list[FollowOut])
async def following_list(
    user_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[FollowOut]:
    rows = await relationships.get_following_list(db, user_id or current_user.user_id)
    return [_follow_out(row) for row in rows]


@router.get("/followers", response_model=list[FollowOut])
async def followers_list(
    user_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[FollowOut]:
    rows = await relationships.get_followers_list(db, user_id or current_user.user_id)
    return [_follow_out(row) for row in rows]


@router.get("/status/{user_id}", response_model=FollowStatusOut)
async def follow_status(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FollowStatusOut:
    is_following = await relationships.is_following(db, current_user.user_id, user_id)
    followed_by = await relationships.is_following(db, user_id, current_user.user_id)
    return FollowStatusOut(
        user_id=user_id,
        is_following=is_following,
        followed_by=followed_by,
        mutual=is_following and followed_by,
    )


@router.post("/{user_id}", response_model=FollowOut)
async def follow(
    user_id: str,
    payload: FollowCreate | None = Body(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> FollowOut:
    row = await relationships.follow_user(
        db,
        follower_user_id=current_user.user_id,
        followee_user_id=user_id,
        followee_nickname=payload.nickname if payload else None,
        followee_avatar=payload.avatar if payload else None,
    )
    await notify_follow(
        db,
        user_id=user_id,
        from_user_id=current_user.user_id,
        from_nickname=current_user.nickname,
        from_avatar=current_user.avatar,
    )
    followee = await directory.get_user(db, user_id)
    return FollowOut(
        user_id=user_id,
        nickname=followee.nickname if followee else user_id,
        avatar=followee.avatar_url if followee else None,
        followed_at=as_iso(row.created_at),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def unfollow(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    removed = await relationships.unfollow_user(db, follower_user_id=current_user.user_id, followee_user_id=user_id)
    return MessageResponse(message="Unfollowed" if removed else "Not following")
