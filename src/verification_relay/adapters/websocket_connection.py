"""FastAPI WebSocket adapter for the connection interface."""

import asyncio
import logging
from dataclasses import dataclass, field
from uuid import uuid4

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

logger = logging.getLogger(__name__)

_CLOSE = object()


@dataclass
class WebSocketConnection:
    """Connection backed by a WebSocket with a bounded outbound queue."""

    websocket: WebSocket
    connection_id: str
    outbox: asyncio.Queue
    _closed: bool = field(default=False, init=False)

    @classmethod
    def create(cls, websocket: WebSocket, outbox_size: int) -> "WebSocketConnection":
        """Wrap an accepted WebSocket with a fresh connection id."""
        return cls(
            websocket=websocket,
            connection_id=uuid4().hex,
            outbox=asyncio.Queue(maxsize=outbox_size),
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: str, data: object) -> bool:
        """Queue a frame; drops it when the outbox is full."""
        if self._closed:
            return False
        try:
            self.outbox.put_nowait({"event": event, "data": data})
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        """Stop accepting frames and let the pump exit."""
        if self._closed:
            return
        self._closed = True
        try:
            self.outbox.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # The pump is cancelled by its owner in this case.
            pass

    async def pump(self) -> None:
        """Write queued frames to the socket until closed."""
        while True:
            frame = await self.outbox.get()
            if frame is _CLOSE:
                return
            if self.websocket.application_state is not WebSocketState.CONNECTED:
                return
            try:
                await self.websocket.send_json(frame)
            except Exception:
                logger.warning(
                    "WebSocket send failed",
                    extra={"connection_id": self.connection_id},
                    exc_info=True,
                )
                self._closed = True
                return
