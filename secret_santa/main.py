# secret_santa/main.py
from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from secret_santa.settings import get_settings
from secret_santa.store.roster import load_roster
from secret_santa.store.state_repo import StateRepo
from secret_santa.transport.broadcast import EventBus, LocalBroadcaster, RedisBroadcaster
from secret_santa.transport.http import router as http_router
from secret_santa.transport.ws import router as ws_router
from secret_santa.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


def _log_task_exit(task: asyncio.Task) -> None:
    """Background tasks only end on shutdown; anything else is logged when it happens."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task %s died", task.get_name(), exc_info=exc)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME)
    allowed_origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    roster = load_roster(settings.ROSTER_PATH)
    app.state.roster = roster
    app.state.repo = StateRepo(roster)
    app.state.wsman = WSManager()
    app.state.redis = None

    if settings.BROADCAST_BACKEND == "redis":
        r = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        app.state.redis = r
        backend = RedisBroadcaster(r, settings.BROADCAST_CHANNEL, app.state.wsman)
    else:
        backend = LocalBroadcaster(app.state.wsman)
    app.state.broadcaster = backend
    app.state.bus = EventBus(backend)
    app.state.tasks = []

    @app.on_event("startup")
    async def _startup() -> None:
        r = app.state.redis
        if r is not None:
            await r.ping()
            app.state.tasks.append(asyncio.create_task(backend.listen(), name="redis-listener"))
        app.state.tasks.append(asyncio.create_task(app.state.bus.run(), name="event-bus"))
        for task in app.state.tasks:
            task.add_done_callback(_log_task_exit)
        logger.info("%s started (backend=%s, participants=%d)", settings.APP_NAME, settings.BROADCAST_BACKEND, len(roster.participants))

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        for task in app.state.tasks:
            task.cancel()
        await asyncio.gather(*app.state.tasks, return_exceptions=True)
        app.state.tasks = []
        r = app.state.redis
        if r is not None:
            await r.close()

    @app.get("/health")
    async def health():
        state = await app.state.repo.peek_state()
        out = {
            "ok": True,
            "backend": settings.BROADCAST_BACKEND,
            "connections": await app.state.wsman.size(),
            "queued_events": app.state.bus.pending(),
            "version": state.version if state else 0,
        }
        r = app.state.redis
        if r is not None:
            out["redis"] = str(await r.ping())
        return out

    app.include_router(http_router)
    app.include_router(ws_router)
    return app


app = create_app()
