"""User directory: the one place that maps a user id to nickname, avatar and phone.

Both the relationship store and the feed store resolve and record display
data through these helpers instead of keeping their own copies of profiles.
"""

from __future__ import annotations

import logging
import secrets

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.errors import UserNotFound
from stylesquare.models.user import DirectoryUser

logger = logging.getLogger(__name__)

_ID_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_ID_DIGITS = "012356789"


def generate_user_id() -> str:
    letters = "".join(secrets.choice(_ID_LETTERS) for _ in range(3))
    digits = "".join(secrets.choice(_ID_DIGITS) for _ in range(3))
    return letters + digits


def _clean(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None


async def get_user(db: AsyncSession, user_id: str) -> DirectoryUser | None:
    return (
        await db.execute(select(DirectoryUser).where(DirectoryUser.user_id == user_id))
    ).scalar_one_or_none()


async def require_user(db: AsyncSession, user_id: str) -> DirectoryUser:
    user = await get_user(db, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def get_users(db: AsyncSession, user_ids: set[str]) -> dict[str, DirectoryUser]:
    if not user_ids:
        return {}
    rows = (
        await db.execute(select(DirectoryUser).where(DirectoryUser.user_id.in_(user_ids)))
    ).scalars().all()
    return {row.user_id: row for row in rows}


async def upsert_user(
    db: AsyncSession,
    *,
    user_id: str,
    nickname: str | None = None,
    avatar_url: str | None = None,
    phone: str | None = None,
    bio: str | None = None,
    commit: bool = True,
) -> DirectoryUser:
    clean_nickname = _clean(nickname)
    clean_avatar = _clean(avatar_url)
    clean_phone = _clean(phone)

    row = await get_user(db, user_id)
    if row is None:
        row = DirectoryUser(
            user_id=user_id,
            nickname=clean_nickname or user_id,
            avatar_url=clean_avatar,
            phone=clean_phone,
            bio=bio,
        )
        db.add(row)
    else:
        if clean_nickname:
            row.nickname = clean_nickname
        if clean_avatar:
            row.avatar_url = clean_avatar
        if clean_phone:
            row.phone = clean_phone
        if bio is not None:
            row.bio = bio

    if commit:
        await db.commit()
        await db.refresh(row)
    else:
        await db.flush()
    return row


async def ensure_user(db: AsyncSession, user_id: str, nickname: str | None = None) -> DirectoryUser:
    row = await get_user(db, user_id)
    if row is not None:
        return row
    return await upsert_user(db, user_id=user_id, nickname=nickname)


async def search_user(db: AsyncSession, query: str) -> DirectoryUser | None:
    needle = (query or "").strip()
    if not needle:
        return None
    return (
        await db.execute(
            select(DirectoryUser)
            .where(or_(func.upper(DirectoryUser.user_id) == needle.upper(), DirectoryUser.phone == needle))
            .limit(1)
        )
    ).scalar_one_or_none()


async def register_by_phone(
    db: AsyncSession,
    phone: str,
    *,
    nickname: str | None = None,
) -> tuple[DirectoryUser, bool]:
    clean_phone = (phone or "").strip()
    existing = (
        await db.execute(select(DirectoryUser).where(DirectoryUser.phone == clean_phone))
    ).scalar_one_or_none()
    if existing is not None:
        return existing, False

    user_id = generate_user_id()
    while await get_user(db, user_id) is not None:
        user_id = generate_user_id()

    row = await upsert_user(db, user_id=user_id, nickname=nickname, phone=clean_phone)
    logger.info("Registered user %s by phone", user_id)
    return row, True
