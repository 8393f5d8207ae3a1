from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import history_item_out, user_out
from stylesquare.core.errors import UserNotFound
from stylesquare.db.session import get_db
from stylesquare.schemas.history import VisibleHistoryOut
from stylesquare.schemas.profile import UserOut, UserPatch, UserPatchOut, UserStatsOut
from stylesquare.services import directory, feed, history, relationships
from stylesquare.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=UserOut)
async def search_user(
    q: str = Query(min_length=1, max_length=64),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> UserOut:
    row = await directory.search_user(db, q)
    if row is None:
        raise UserNotFound()
    return user_out(row)


@router.patch("/me", response_model=UserPatchOut)
async def update_me(
    payload: UserPatch,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> UserPatchOut:
    row = await directory.upsert_user(
        db,
        user_id=current_user.user_id,
        avatar_url=payload.avatar_url,
        bio=payload.bio,
    )
    updated: dict[str, int] = {}
    new_nickname = (payload.nickname or "").strip()
    if new_nickname and new_nickname != row.nickname:
        updated = await feed.update_user_nickname(db, user_id=current_user.user_id, new_nickname=new_nickname)
        row = await directory.require_user(db, current_user.user_id)
    return UserPatchOut(user=user_out(row), updated=updated)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> UserOut:
    return user_out(await directory.require_user(db, user_id))


@router.get("/{user_id}/stats", response_model=UserStatsOut)
async def get_user_stats(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> UserStatsOut:
    stats = await relationships.get_user_stats(db, user_id)
    return UserStatsOut(
        user_id=stats.user_id,
        followers_count=stats.followers_count,
        following_count=stats.following_count,
        total_likes=stats.total_likes,
        posts_count=stats.posts_count,
    )


@router.get("/{user_id}/history", response_model=VisibleHistoryOut)
async def get_user_history(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> VisibleHistoryOut:
    items = await history.get_visible_history(db, viewer_user_id=current_user.user_id, target_user_id=user_id)
    if items is None:
        return VisibleHistoryOut(user_id=user_id, visible=False, items=[])
    return VisibleHistoryOut(user_id=user_id, visible=True, items=[history_item_out(x) for x in items])
