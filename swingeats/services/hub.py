"""
SwingEats — Realtime notification hub

In-memory registry of connected WebSocket clients, each optionally scoped to a bay.

Architecture:
  - every connection owns a bounded outbound queue and a pump task that writes it
  - broadcast() / send_to_bay() only enqueue, so callers never wait on a socket
  - a failed send or a full queue drops the connection; nothing is raised
  - the registry lives for the process; reconnecting clients re-register and
    get a fresh snapshot
"""
import asyncio
import itertools
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from starlette.websockets import WebSocket

from swingeats.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_client_ids = itertools.count(1)


@dataclass(eq=False)
class ClientConnection:
    websocket: WebSocket
    client_type: str | None = None
    bay_id: int | None = None
    id: int = field(default_factory=lambda: next(_client_ids))
    queue: asyncio.Queue = field(
        default_factory=lambda: asyncio.Queue(maxsize=settings.WS_SEND_QUEUE_SIZE)
    )
    closed: bool = False


def encode(message_type: str, data: Any) -> str:
    return json.dumps({"type": message_type, "data": data})


class NotificationHub:
    def __init__(self):
        self._clients: dict[int, ClientConnection] = {}

    @property
    def clients(self) -> list[ClientConnection]:
        return list(self._clients.values())

    def connect(self, websocket: WebSocket) -> ClientConnection:
        client = ClientConnection(websocket=websocket)
        self._clients[client.id] = client
        logger.info("Client %s connected (%d open)", client.id, len(self._clients))
        return client

    def disconnect(self, client: ClientConnection) -> None:
        client.closed = True
        if self._clients.pop(client.id, None) is not None:
            logger.info("Client %s disconnected (%d open)", client.id, len(self._clients))

    def register(self, client: ClientConnection, client_type: str, bay_id: int | None = None) -> None:
        client.client_type = client_type
        client.bay_id = bay_id
        logger.info(
            "Client %s registered as %s%s",
            client.id, client_type, f" for bay {bay_id}" if bay_id is not None else "",
        )

    def subscribe_to_bay(self, client: ClientConnection, bay_id: int) -> None:
        client.bay_id = bay_id
        logger.info("Client %s subscribed to bay %s", client.id, bay_id)

    # ── Outbound ──────────────────────────────────────────────────────────────
    def _enqueue(self, client: ClientConnection, frame: str) -> None:
        if client.closed:
            return
        try:
            client.queue.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("Client %s send queue full, dropping connection", client.id)
            self.disconnect(client)

    def send(self, client: ClientConnection, message_type: str, data: Any) -> None:
        self._enqueue(client, encode(message_type, data))

    def broadcast(self, message_type: str, data: Any) -> int:
        """Enqueue to every open client. Returns the number of clients targeted."""
        frame = encode(message_type, data)
        targets = self.clients
        for client in targets:
            self._enqueue(client, frame)
        return len(targets)

    def send_to_bay(self, bay_id: int, message_type: str, data: Any) -> int:
        frame = encode(message_type, data)
        targets = [c for c in self.clients if c.bay_id == bay_id]
        for client in targets:
            self._enqueue(client, frame)
        return len(targets)

    async def pump(self, client: ClientConnection) -> None:
        """Write queued frames to the socket until it fails or the task is cancelled."""
        while True:
            frame = await client.queue.get()
            try:
                await client.websocket.send_text(frame)
            except Exception as exc:
                logger.info("Send to client %s failed (%s), dropping", client.id, exc)
                self.disconnect(client)
                return
            finally:
                client.queue.task_done()


hub = NotificationHub()


def get_hub() -> NotificationHub:
    return hub
