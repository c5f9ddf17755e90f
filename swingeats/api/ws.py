"""
SwingEats — WebSocket endpoint

Protocol (JSON envelope {"type": str, "data": any}):
  server → client   ordersUpdate on connect, then hub traffic
  client → server   register {clientType, bayId?}
                    subscribeToBay {bayId}

Frames that are not JSON text close the socket with 1003; a JSON envelope or
payload of the wrong shape closes it with 1008. Unknown types are ignored.
"""
import asyncio
import json
import logging

import pydantic
from fastapi import APIRouter, WebSocket, status

from swingeats.core.errors import SwingEatsError
from swingeats.db.database import SessionLocal
from swingeats.schemas.ws import RegisterData, SubscribeData, WSMessage
from swingeats.services.hub import ClientConnection, NotificationHub, get_hub
from swingeats.services.lifecycle import OrderLifecycle, to_wire

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _push_orders(hub: NotificationHub, client: ClientConnection) -> None:
    async with SessionLocal() as session:
        orders = await OrderLifecycle(session, hub).get_active_orders()
    hub.send(client, "ordersUpdate", [to_wire(o) for o in orders])


async def _push_bay(hub: NotificationHub, client: ClientConnection, bay_id: int) -> None:
    async with SessionLocal() as session:
        snapshot = await OrderLifecycle(session, hub).get_bay_snapshot(bay_id)
    if snapshot is None:
        logger.info("Client %s registered for unknown bay %s", client.id, bay_id)
        return
    hub.send(client, "bay_updated", snapshot)


async def _handle(hub: NotificationHub, client: ClientConnection, message: WSMessage) -> None:
    if message.type == "register":
        data = RegisterData.model_validate(message.data)
        hub.register(client, data.client_type, data.bay_id)
        if data.client_type in ("guest", "server") and data.bay_id is not None:
            await _push_bay(hub, client, data.bay_id)
    elif message.type == "subscribeToBay":
        data = SubscribeData.model_validate(message.data)
        hub.subscribe_to_bay(client, data.bay_id)
    else:
        logger.info("Ignoring unknown message type %r from client %s", message.type, client.id)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    hub = get_hub()
    await websocket.accept()
    client = hub.connect(websocket)
    pump = asyncio.create_task(hub.pump(client), name=f"ws-pump-{client.id}")
    close_code = None

    try:
        try:
            await _push_orders(hub, client)
        except SwingEatsError as exc:
            logger.warning("Initial snapshot for client %s failed: %s", client.id, exc)

        while not client.closed:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            text = frame.get("text")
            if text is None:
                close_code = status.WS_1003_UNSUPPORTED_DATA
                break
            try:
                raw = json.loads(text)
            except ValueError:
                logger.info("Client %s sent invalid JSON, closing", client.id)
                close_code = status.WS_1003_UNSUPPORTED_DATA
                break
            try:
                await _handle(hub, client, WSMessage.model_validate(raw))
            except pydantic.ValidationError as exc:
                logger.info("Client %s sent a malformed message, closing: %s", client.id, exc.errors()[:1])
                close_code = status.WS_1008_POLICY_VIOLATION
                break
            except SwingEatsError as exc:
                logger.warning("Client %s message failed: %s", client.id, exc)
    finally:
        hub.disconnect(client)
        pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)

    if close_code is not None:
        await websocket.close(code=close_code)
