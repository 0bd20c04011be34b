"""Fan-out of change events to connected clients.

The hub holds the set of registered connections and nothing else: there is
no backlog for clients that connect later. ``broadcast`` serializes once and
hands the frame to every open connection without awaiting any of them, so a
slow or broken client never delays the others or the caller.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import Mapping
from typing import Any, Protocol

import structlog
from starlette.websockets import WebSocket, WebSocketState

from peekmd.daemon.events import ChangeEvent

logger = structlog.get_logger()


class Connection(Protocol):
    """A client channel as seen by the hub."""

    @property
    def is_open(self) -> bool: ...

    def send(self, message: str) -> None:
        """Queue one text frame without blocking. May raise on failure."""
        ...


class BroadcastHub:
    """Holds connected clients and fans out messages to all of them."""

    def __init__(self) -> None:
        self._connections: set[Connection] = set()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, conn: object) -> bool:
        return conn in self._connections

    def register(self, conn: Connection) -> None:
        self._connections.add(conn)
        logger.debug("client_registered", clients=len(self._connections))

    def unregister(self, conn: Connection) -> None:
        self._connections.discard(conn)
        logger.debug("client_unregistered", clients=len(self._connections))

    def broadcast(self, event: ChangeEvent | Mapping[str, Any]) -> int:
        """Send ``event`` to every open connection. Returns the delivery count.

        Never raises because of a client: closed connections are skipped and a
        failing send is logged and ignored. Dead connections are removed by
        the transport when it notices the disconnect.
        """
        payload = event.to_message() if isinstance(event, ChangeEvent) else dict(event)
        message = json.dumps(payload)
        delivered = 0
        for conn in list(self._connections):
            if not conn.is_open:
                continue
            try:
                conn.send(message)
            except Exception as e:
                logger.debug("broadcast_send_failed", error=str(e), error_type=type(e).__name__)
                continue
            delivered += 1
        logger.debug("broadcast", type=payload.get("type"), delivered=delivered)
        return delivered


class OutboundBufferFull(Exception):
    """A client is not reading fast enough; the message was dropped for it."""


class WebSocketConnection:
    """Adapts a Starlette WebSocket to the hub's Connection protocol.

    Frames go through a bounded queue drained by ``pump``; ``send`` never
    waits. Once a write fails the connection reports itself closed.
    """

    def __init__(self, websocket: WebSocket, max_buffer: int = 256) -> None:
        self.websocket = websocket
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_buffer)
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def send(self, message: str) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull as e:
            raise OutboundBufferFull(f"{self._queue.maxsize} messages pending") from e

    def close(self) -> None:
        self._closed = True

    async def pump(self) -> None:
        """Write queued frames until the socket fails or the task is cancelled."""
        try:
            while not self._closed:
                message = await self._queue.get()
                await self.websocket.send_text(message)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug("client_write_failed", error=str(e))
        finally:
            self._closed = True

    async def serve(self, hub: BroadcastHub) -> None:
        """Register with ``hub`` for the lifetime of the socket.

        Incoming frames are read and discarded; reading is how a disconnect is
        noticed.
        """
        hub.register(self)
        pump_task = asyncio.create_task(self.pump())
        try:
            while True:
                message = await self.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            self.close()
            hub.unregister(self)
            pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump_task
