"""
WebSocket protocol over the TestClient
"""
import time

import pytest
from starlette.websockets import WebSocketDisconnect

from swingeats.services.hub import hub

from conftest import FRIES


def _place(client, bay_id):
    r = client.post("/api/orders", json={"bayId": bay_id, "items": [{"menuItemId": FRIES}]})
    assert r.status_code == 201
    return r.json()


def _wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not condition():
        assert time.monotonic() < deadline, "condition not met in time"
        time.sleep(0.01)


def test_snapshot_on_connect(client):
    order = _place(client, 2)
    with client.websocket_connect("/ws") as ws:
        message = ws.receive_json()
        assert message["type"] == "ordersUpdate"
        assert [o["id"] for o in message["data"]] == [order["id"]]


def test_register_sends_bay_snapshot(client):
    order = _place(client, 5)
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "register", "data": {"clientType": "guest", "bayId": 5}})
        message = ws.receive_json()
        assert message["type"] == "bay_updated"
        assert message["data"]["status"] == "active"
        assert message["data"]["bay"]["number"] == 5
        assert [o["id"] for o in message["data"]["orders"]] == [order["id"]]


def test_mutation_reaches_bay_subscribers(client):
    with client.websocket_connect("/ws") as guest, client.websocket_connect("/ws") as kitchen:
        assert guest.receive_json()["data"] == []
        assert kitchen.receive_json()["data"] == []
        guest.send_json({"type": "register", "data": {"clientType": "guest", "bayId": 3}})
        assert guest.receive_json()["type"] == "bay_updated"
        kitchen.send_json({"type": "register", "data": {"clientType": "kitchen"}})
        # unknown types are ignored without closing
        kitchen.send_json({"type": "ping", "data": None})

        order = _place(client, 3)

        update = guest.receive_json()
        assert update["type"] == "ordersUpdate"
        assert [o["id"] for o in update["data"]] == [order["id"]]
        created = guest.receive_json()
        assert created["type"] == "order_created"
        assert created["data"]["order"]["id"] == order["id"]

        assert kitchen.receive_json()["type"] == "ordersUpdate"


def test_subscribe_to_bay(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "subscribeToBay", "data": {"bayId": 4}})
        _wait_for(lambda: any(c.bay_id == 4 for c in hub.clients))

        order = _place(client, 4)
        assert ws.receive_json()["type"] == "ordersUpdate"
        created = ws.receive_json()
        assert created["type"] == "order_created"
        assert created["data"]["order"]["id"] == order["id"]
        assert created["data"]["order"]["bayId"] == 4


def test_invalid_json_closes_socket(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("{not json")
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()
        assert exc_info.value.code == 1003


@pytest.mark.parametrize(
    "frame",
    [
        {"data": {"clientType": "guest"}},
        {"type": "register", "data": {"clientType": "owner"}},
        {"type": "subscribeToBay", "data": {"bayId": "seven"}},
    ],
    ids=["missing-type", "bad-client-type", "bad-bay-id"],
)
def test_malformed_message_closes_socket(client, frame):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json(frame)
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()
        assert exc_info.value.code == 1008
