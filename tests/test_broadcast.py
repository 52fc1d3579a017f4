import asyncio
import json

import pytest

from secret_santa.transport.broadcast import EventBus, LocalBroadcaster, RedisBroadcaster
from secret_santa.transport.ws_manager import WSManager


class FakeWS:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


class FlakyBackend:
    def __init__(self):
        self.published = []

    async def publish(self, event):
        if event.get("boom"):
            raise ConnectionError("channel down")
        self.published.append(event)


class FakeRedis:
    def __init__(self):
        self.published = []

    async def publish(self, channel, data):
        self.published.append((channel, data))


@pytest.mark.asyncio
async def test_bus_publishes_in_order_and_survives_failures():
    backend = FlakyBackend()
    bus = EventBus(backend)
    bus.publish_nowait([{"type": "a"}, {"type": "b", "boom": True}])
    bus.publish_nowait([{"type": "c"}])
    assert bus.pending() == 3

    for _ in range(3):
        await bus.drain_one()
    assert [e["type"] for e in backend.published] == ["a", "c"]
    assert bus.pending() == 0


@pytest.mark.asyncio
async def test_bus_run_loop_drains_queue():
    backend = FlakyBackend()
    bus = EventBus(backend)
    task = asyncio.create_task(bus.run())
    bus.publish_nowait([{"type": str(i)} for i in range(5)])
    await asyncio.wait_for(bus._queue.join(), timeout=1)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    assert [e["type"] for e in backend.published] == ["0", "1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_local_broadcast_reaches_every_observer():
    wsman = WSManager()
    good, dead = FakeWS(), FakeWS(fail=True)
    await wsman.add("c1", good)
    await wsman.add("c2", dead)
    assert await wsman.size() == 2

    await LocalBroadcaster(wsman).publish({"type": "turn-locked"})
    assert good.sent == [{"type": "turn-locked"}]

    await wsman.remove("c2")
    assert await wsman.size() == 1


@pytest.mark.asyncio
async def test_redis_broadcaster_publishes_json():
    redis = FakeRedis()
    b = RedisBroadcaster(redis, "santa", WSManager())
    await b.publish({"type": "game-reset", "state": {"version": 3}})
    channel, data = redis.published[0]
    assert channel == "santa"
    assert json.loads(data) == {"type": "game-reset", "state": {"version": 3}}
