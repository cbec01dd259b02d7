import asyncio
import json

import pytest

from transport import WebSocketHub


class _FakeWebSocket:
    def __init__(self, fail_after=None):
        self.frames = []
        self.fail_after = fail_after

    async def send_text(self, data):
        if self.fail_after is not None and len(self.frames) >= self.fail_after:
            raise RuntimeError("socket closed")
        self.frames.append(json.loads(data))


@pytest.mark.asyncio
async def test_pump_writes_queued_messages_in_order_then_stops():
    hub = WebSocketHub()
    websocket = _FakeWebSocket()
    queue = hub.open("a")
    writer = asyncio.create_task(hub.pump("a", queue, websocket))

    hub.send("a", {"type": "one"})
    hub.broadcast({"type": "two"})
    hub.close("a")
    await asyncio.wait_for(writer, timeout=0.5)

    assert websocket.frames == [{"type": "one"}, {"type": "two"}]
    assert not hub.is_open("a")


@pytest.mark.asyncio
async def test_send_after_close_is_dropped():
    hub = WebSocketHub()
    queue = hub.open("a")
    hub.close("a")
    hub.send("a", {"type": "late"})

    assert queue.get_nowait() is None
    assert queue.empty()
    assert len(hub) == 0


@pytest.mark.asyncio
async def test_broadcast_and_send_many_reach_open_outboxes():
    hub = WebSocketHub()
    queues = {name: hub.open(name) for name in ("a", "b", "c")}

    hub.send_many(["a", "c", "gone"], {"type": "peer"})
    hub.broadcast({"type": "all"})

    assert queues["a"].qsize() == 2
    assert queues["b"].qsize() == 1
    assert queues["c"].qsize() == 2


@pytest.mark.asyncio
async def test_pump_stops_when_send_fails():
    hub = WebSocketHub()
    websocket = _FakeWebSocket(fail_after=1)
    queue = hub.open("a")
    writer = asyncio.create_task(hub.pump("a", queue, websocket))

    hub.send("a", {"type": "one"})
    hub.send("a", {"type": "two"})
    await asyncio.wait_for(writer, timeout=0.5)

    assert websocket.frames == [{"type": "one"}]
