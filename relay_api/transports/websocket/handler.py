"""WebSocket transport for live telemetry fan-out.

Protocol:
1. Client connects to ``/ws`` (or ``/``).
2. Server → latest record of every known source (ascending source id).
3. Server → every accepted record, one JSON object per message.
Client messages are read and ignored; they only keep the socket alive.

Each connection owns a bounded outbound queue drained by its own sender
task, so a slow viewer never stalls the producer or other viewers. When the
queue overflows the connection is closed and the hub drops it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from fastapi import WebSocket, status
from starlette.websockets import WebSocketState

from ...core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_OUTBOUND_QUEUE = 256


class WebSocketSubscriber:
    """Subscriber handle backed by a FastAPI ``WebSocket``."""

    def __init__(self, websocket: WebSocket, max_pending: int = DEFAULT_OUTBOUND_QUEUE):
        self._websocket = websocket
        # None es el centinela de cierre del sender
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=max_pending)
        self._closed = False
        self.close_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return not self._closed

    def send(self, message: str) -> None:
        if self._closed:
            raise TransportError(f"connection closed ({self.close_reason or 'closed'})")
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self._mark_closed("outbound buffer full")
            raise TransportError("outbound buffer full") from None

    def close(self) -> None:
        self._mark_closed("closed by server")

    def _mark_closed(self, reason: str) -> None:
        if not self._closed:
            self._closed = True
            self.close_reason = reason
            # Despierta al sender si espera en una cola vacía
            with contextlib.suppress(asyncio.QueueFull):
                self._queue.put_nowait(None)

    async def run_sender(self) -> None:
        """Drains the outbound queue into the socket until closed or failing."""
        while not self._closed:
            message = await self._queue.get()
            if message is None:
                return
            try:
                await self._websocket.send_text(message)
            except Exception as e:  # noqa: BLE001
                self._mark_closed(f"send failed: {type(e).__name__}")
                logger.info("[WS] Send failed, closing: %s", e)
                return


async def _drain_client(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message.get("type") == "websocket.disconnect":
            return


async def websocket_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint: catch-up burst, then live broadcast."""
    relay = websocket.app.state.relay
    await websocket.accept()

    subscriber = WebSocketSubscriber(websocket, relay.settings.ws_outbound_queue_size)
    try:
        relay.hub.subscribe(subscriber)
    except TransportError as e:
        logger.warning("[WS] Catch-up failed, closing: %s", e)
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    client = websocket.client
    logger.info("[WS] Viewer connected: %s", client)

    sender = asyncio.create_task(subscriber.run_sender())
    receiver = asyncio.create_task(_drain_client(websocket))
    try:
        await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        relay.hub.unsubscribe(subscriber)
        subscriber.close()
        for task in (sender, receiver):
            task.cancel()
        # wait() no propaga la cancelación de los hijos
        await asyncio.wait({sender, receiver})

        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
            except RuntimeError:
                # ya cerrado por el cliente
                pass
        logger.info("[WS] Viewer disconnected: %s reason=%s", client, subscriber.close_reason)
