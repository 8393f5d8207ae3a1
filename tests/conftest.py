from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REALTIME_ENABLED"] = "false"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["ALLOW_HEADER_IDENTITY"] = "true"
os.environ["JWT_SECRET"] = "test-secret-long-enough-for-hs256-signing"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import stylesquare.models  # noqa: F401
from stylesquare.db.base import Base
from stylesquare.db.session import get_db


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    from stylesquare.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_user(user_id: str, nickname: str | None = None) -> dict[str, str]:
    headers = {"X-User-Id": user_id}
    if nickname:
        headers["X-User-Nickname"] = nickname
    return headers
