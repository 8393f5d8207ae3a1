from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.api.v1.deps import history_item_out
from stylesquare.db.session import get_db
from stylesquare.schemas.common import CountResponse, MessageResponse
from stylesquare.schemas.history import HistoryCreate, HistoryItemOut, HistoryPermissionPatch
from stylesquare.services import history
from stylesquare.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=list[HistoryItemOut])
async def list_history(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[HistoryItemOut]:
    return [history_item_out(x) for x in await history.list_history(db, current_user.user_id)]


@router.post("", response_model=HistoryItemOut)
async def add_history_item(
    payload: HistoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> HistoryItemOut:
    row = await history.add_history_item(
        db,
        user_id=current_user.user_id,
        original_image_uri=payload.original_image_uri,
        result_image_uri=payload.result_image_uri,
        template_id=payload.template_id,
        template_name=payload.template_name,
        allow_square_publish=payload.allow_square_publish,
    )
    return history_item_out(row)


@router.patch("/{item_id}/permission", response_model=HistoryItemOut)
async def set_permission(
    item_id: str,
    payload: HistoryPermissionPatch,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> HistoryItemOut:
    row = await history.set_square_publish_permission(
        db,
        user_id=current_user.user_id,
        item_id=item_id,
        allow_square_publish=payload.allow_square_publish,
    )
    return history_item_out(row)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_history_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    await history.delete_history_item(db, user_id=current_user.user_id, item_id=item_id)
    return MessageResponse(message="History item deleted")


@router.delete("", response_model=CountResponse)
async def clear_history(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await history.clear_history(db, current_user.user_id))
