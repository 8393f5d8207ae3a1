from __future__ import annotations

import logging
import uuid

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.config import settings
from stylesquare.core.errors import HistoryItemNotFound
from stylesquare.models.common import utcnow
from stylesquare.models.history import OutfitChangeHistory
from stylesquare.services import relationships

logger = logging.getLogger(__name__)


def new_history_id() -> str:
    return f"outfit_{uuid.uuid4().hex[:16]}"


async def list_history(db: AsyncSession, user_id: str) -> list[OutfitChangeHistory]:
    return list(
        (
            await db.execute(
                select(OutfitChangeHistory)
                .where(OutfitChangeHistory.user_id == user_id)
                .order_by(OutfitChangeHistory.created_at.desc(), OutfitChangeHistory.id.desc())
            )
        ).scalars().all()
    )


async def get_history_item(db: AsyncSession, *, user_id: str, item_id: str) -> OutfitChangeHistory:
    row = (
        await db.execute(
            select(OutfitChangeHistory).where(
                and_(OutfitChangeHistory.id == item_id, OutfitChangeHistory.user_id == user_id)
            )
        )
    ).scalar_one_or_none()
    if row is None:
        raise HistoryItemNotFound()
    return row


async def add_history_item(
    db: AsyncSession,
    *,
    user_id: str,
    original_image_uri: str,
    result_image_uri: str,
    template_id: str,
    template_name: str,
    allow_square_publish: bool = True,
) -> OutfitChangeHistory:
    row = OutfitChangeHistory(
        id=new_history_id(),
        user_id=user_id,
        original_image_uri=original_image_uri,
        result_image_uri=result_image_uri,
        template_id=template_id,
        template_name=template_name,
        allow_square_publish=allow_square_publish,
        is_published_to_square=False,
        created_at=utcnow(),
    )
    db.add(row)
    await db.flush()

    keep = max(int(settings.history_max_items or 0), 1)
    stale_ids = (
        await db.execute(
            select(OutfitChangeHistory.id)
            .where(OutfitChangeHistory.user_id == user_id)
            .order_by(OutfitChangeHistory.created_at.desc(), OutfitChangeHistory.id.desc())
            .offset(keep)
        )
    ).scalars().all()
    if stale_ids:
        await db.execute(delete(OutfitChangeHistory).where(OutfitChangeHistory.id.in_(stale_ids)))
        logger.info("Trimmed %s history items for %s", len(stale_ids), user_id)

    await db.commit()
    await db.refresh(row)
    return row


async def delete_history_item(db: AsyncSession, *, user_id: str, item_id: str) -> None:
    row = await get_history_item(db, user_id=user_id, item_id=item_id)
    await db.delete(row)
    await db.commit()


async def clear_history(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(delete(OutfitChangeHistory).where(OutfitChangeHistory.user_id == user_id))
    await db.commit()
    return result.rowcount


async def set_square_publish_permission(
    db: AsyncSession,
    *,
    user_id: str,
    item_id: str,
    allow_square_publish: bool,
) -> OutfitChangeHistory:
    row = await get_history_item(db, user_id=user_id, item_id=item_id)
    row.allow_square_publish = allow_square_publish
    await db.commit()
    await db.refresh(row)
    return row


async def mark_published(db: AsyncSession, *, user_id: str, item_id: str, published: bool = True) -> bool:
    row = (
        await db.execute(
            select(OutfitChangeHistory).where(
                and_(OutfitChangeHistory.id == item_id, OutfitChangeHistory.user_id == user_id)
            )
        )
    ).scalar_one_or_none()
    if row is None:
        return False
    row.is_published_to_square = published
    await db.commit()
    return True


async def get_visible_history(
    db: AsyncSession,
    *,
    viewer_user_id: str,
    target_user_id: str,
) -> list[OutfitChangeHistory] | None:
    """History of ``target_user_id`` as ``viewer_user_id`` may see it, or None when hidden."""
    if not await relationships.can_view_history(db, viewer_user_id=viewer_user_id, target_user_id=target_user_id):
        return None
    items = await list_history(db, target_user_id)
    if viewer_user_id == target_user_id:
        return items
    return await relationships.get_filtered_history(db, target_user_id=target_user_id, items=items)
