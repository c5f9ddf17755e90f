"""
Notification hub fan-out, with in-memory sockets
"""
import asyncio
import json

import pytest

from swingeats.services.hub import NotificationHub, encode


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))


async def _drain(hub: NotificationHub, *clients):
    tasks = [asyncio.create_task(hub.pump(c)) for c in clients]
    await asyncio.sleep(0)
    for client in clients:
        if not client.closed:
            await asyncio.wait_for(client.queue.join(), timeout=1)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def test_envelope_shape():
    assert json.loads(encode("ordersUpdate", [])) == {"type": "ordersUpdate", "data": []}


@pytest.mark.asyncio
async def test_broadcast_reaches_everyone_and_bay_messages_only_the_bay():
    hub = NotificationHub()
    kitchen, bay5, bay6 = (hub.connect(FakeSocket()) for _ in range(3))
    hub.register(kitchen, "kitchen")
    hub.register(bay5, "guest", bay_id=5)
    hub.register(bay6, "server")
    hub.subscribe_to_bay(bay6, 6)

    assert hub.broadcast("ordersUpdate", [{"id": 1}]) == 3
    assert hub.send_to_bay(5, "order_created", {"orderId": 1}) == 1
    await _drain(hub, kitchen, bay5, bay6)

    assert [m["type"] for m in kitchen.websocket.sent] == ["ordersUpdate"]
    assert [m["type"] for m in bay5.websocket.sent] == ["ordersUpdate", "order_created"]
    assert [m["type"] for m in bay6.websocket.sent] == ["ordersUpdate"]
    assert bay5.websocket.sent[1]["data"] == {"orderId": 1}


@pytest.mark.asyncio
async def test_failed_send_drops_client_silently():
    hub = NotificationHub()
    good = hub.connect(FakeSocket())
    bad = hub.connect(FakeSocket(fail=True))

    hub.broadcast("ordersUpdate", [])
    await _drain(hub, good, bad)

    assert bad.closed
    assert hub.clients == [good]
    assert good.websocket.sent == [{"type": "ordersUpdate", "data": []}]
    # later fan-out skips the dropped client
    assert hub.broadcast("ordersUpdate", []) == 1


@pytest.mark.asyncio
async def test_full_queue_drops_client():
    hub = NotificationHub()
    slow = hub.connect(FakeSocket())
    for _ in range(slow.queue.maxsize):
        hub.send(slow, "ordersUpdate", [])
    assert not slow.closed

    hub.send(slow, "ordersUpdate", [])
    assert slow.closed
    assert hub.clients == []


@pytest.mark.asyncio
async def test_disconnect_is_idempotent():
    hub = NotificationHub()
    client = hub.connect(FakeSocket())
    hub.disconnect(client)
    hub.disconnect(client)
    assert hub.clients == []
    assert hub.send_to_bay(5, "order_updated", {}) == 0
