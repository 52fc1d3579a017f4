# secret_santa/transport/broadcast.py
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from redis.asyncio import Redis

from secret_santa.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


class LocalBroadcaster:
    """Single-process fan-out straight to this process's observers."""

    def __init__(self, wsman: WSManager) -> None:
        self.wsman = wsman

    async def publish(self, event: Dict[str, Any]) -> None:
        await self.wsman.broadcast(event)


class RedisBroadcaster:
    """
    Fan-out through a redis pub/sub channel.
    Every gateway process runs `listen()` and forwards what it hears to its own observers,
    including the process that published.
    """

    def __init__(self, redis: Redis, channel: str, wsman: WSManager) -> None:
        self.redis = redis
        self.channel = channel
        self.wsman = wsman

    async def publish(self, event: Dict[str, Any]) -> None:
        await self.redis.publish(self.channel, json.dumps(event))

    async def listen(self) -> None:
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info("Subscribed to broadcast channel %s", self.channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = message.get("data")
                if isinstance(data, bytes):
                    data = data.decode("utf-8")
                try:
                    event = json.loads(data)
                except (TypeError, ValueError):
                    logger.warning("Ignoring malformed broadcast payload on %s", self.channel)
                    continue
                await self.wsman.broadcast(event)
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.close()


class EventBus:
    """
    Ordered outbox between the state writer and the broadcast channel.

    The dispatcher enqueues a handler's room events while it still holds the state
    lock, so events leave in commit order; `run()` drains the queue and publishes
    one event at a time. A failed publish is logged and skipped: the state is
    already committed and observers catch up from the next snapshot.
    """

    def __init__(self, backend) -> None:
        self.backend = backend
        self._queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()

    def publish_nowait(self, events: List[Dict[str, Any]]) -> None:
        for ev in events:
            self._queue.put_nowait(ev)

    def pending(self) -> int:
        return self._queue.qsize()

    async def drain_one(self) -> Optional[Dict[str, Any]]:
        ev = await self._queue.get()
        try:
            await self.backend.publish(ev)
        except Exception:
            logger.exception("Broadcast of %s failed", ev.get("type"))
        finally:
            self._queue.task_done()
        return ev

    async def run(self) -> None:
        while True:
            await self.drain_one()
