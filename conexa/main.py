import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import redis.asyncio as aioredis

from conexa.api.auth import router as auth_router
from conexa.api.health import router as health_router
from conexa.api.messages import router as messages_router
from conexa.api.notifications import router as notifications_router
from conexa.api.posts import router as posts_router
from conexa.api.reactions import router as reactions_router
from conexa.api.users import router as users_router
from conexa.api.ws import router as ws_router
from conexa.config import settings
from conexa.database import engine
from conexa.logging import setup_logging
from conexa.models import Base
from conexa.redis_client import set_redis
from conexa.services.gateway import RealtimeGateway
from conexa.tasks.heartbeat import run_heartbeat_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    async with engine.begin() as conn:
        if settings.RESET_DB:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    redis_client = aioredis.from_url(settings.REDIS_URL)
    set_redis(redis_client)
    task = None
    if settings.WS_HEARTBEAT_TIMEOUT_SECONDS > 0:
        task = asyncio.create_task(run_heartbeat_loop(app.state.gateway))
    logger.info("Conexa started")
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        set_redis(None)
        await redis_client.aclose()


def create_app() -> FastAPI:
    app = FastAPI(title="Conexa", version="0.1.0", lifespan=lifespan)
    # one directory per process, shared by the WebSocket endpoint and every HTTP handler
    app.state.gateway = RealtimeGateway(heartbeat_timeout=settings.WS_HEARTBEAT_TIMEOUT_SECONDS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(messages_router, prefix="/api")
    app.include_router(reactions_router, prefix="/api")
    app.include_router(posts_router, prefix="/api")
    app.include_router(notifications_router, prefix="/api")
    app.include_router(ws_router)

    @app.get("/api")
    def api_root():
        return {"message": "Conexa API"}

    return app


app = create_app()
