from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from stylesquare.api.v1.router import api_router
from stylesquare.core.config import settings
from stylesquare.core.errors import StoreError
from stylesquare.core.logging import configure_logging
from stylesquare.db.redis import close_redis
from stylesquare.db.session import SessionLocal, dispose_engine
from stylesquare.middleware.rate_limit import RedisRateLimitMiddleware
from stylesquare.services.topics import seed_official_topics
from stylesquare.websockets.notifications import notifications_ws_router


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logger.info("%s starting (env=%s, realtime=%s)", settings.app_name, settings.app_env, settings.realtime_enabled)
    async with SessionLocal() as db:
        await seed_official_topics(db)
    yield
    if settings.realtime_enabled or settings.rate_limit_per_minute > 0:
        await close_redis()
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    default_response_class=ORJSONResponse,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RedisRateLimitMiddleware)

app.include_router(api_router, prefix=settings.api_prefix)
app.include_router(notifications_ws_router, prefix=settings.ws_prefix)

Instrumentator().instrument(app).expose(app)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> ORJSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return ORJSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env}
