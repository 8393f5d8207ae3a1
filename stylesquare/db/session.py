from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stylesquare.core.config import settings

logger = logging.getLogger(__name__)


def normalize_database_url(raw: str) -> str:
    """Map sync driver URLs (Heroku-style ``postgres://``, plain ``sqlite://``) to their async drivers."""
    url = str(raw or "").strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://") :]
    elif url.startswith("sqlite://"):
        url = "sqlite+aiosqlite://" + url[len("sqlite://") :]
    return url


def _engine_options(url: str) -> dict[str, Any]:
    # pre-ping only matters for pooled network connections
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True}


DATABASE_URL = normalize_database_url(settings.database_url)
engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def dispose_engine() -> None:
    await engine.dispose()
    logger.info("Database engine disposed")
