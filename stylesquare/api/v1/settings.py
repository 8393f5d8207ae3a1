from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.db.session import get_db
from stylesquare.models.user import PrivacySettings
from stylesquare.schemas.profile import PrivacyOut, PrivacyPatch
from stylesquare.services import relationships
from stylesquare.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/settings", tags=["settings"])


def _privacy_out(row: PrivacySettings) -> PrivacyOut:
    return PrivacyOut(
        allow_friends_view_history=row.allow_friends_view_history,
        history_visibility=row.history_visibility,
        history_time_range=row.history_time_range,
    )


@router.get("/privacy", response_model=PrivacyOut)
async def get_privacy(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> PrivacyOut:
    return _privacy_out(await relationships.get_privacy_settings(db, current_user.user_id))


@router.patch("/privacy", response_model=PrivacyOut)
async def patch_privacy(
    payload: PrivacyPatch,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> PrivacyOut:
    row = await relationships.update_privacy_settings(
        db,
        current_user.user_id,
        allow_friends_view_history=payload.allow_friends_view_history,
        history_visibility=payload.history_visibility,
        history_time_range=payload.history_time_range,
    )
    return _privacy_out(row)
