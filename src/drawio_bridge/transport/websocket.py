"""WebSocket transport.

Full-duplex transport: commands are pushed over the socket and the editor
answers over the same connection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ..errors import TransportSendError
from .base import new_transport_id

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """Server-side transport for one WebSocket connection."""

    kind = "websocket"

    def __init__(self, websocket: WebSocket):
        self.transport_id = new_transport_id(self.kind)
        self._websocket = websocket
        self._connected = False
        self._send_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Check if the WebSocket is connected."""
        return self._connected and self._websocket.client_state == WebSocketState.CONNECTED

    async def accept(self) -> None:
        """Accept the WebSocket connection."""
        await self._websocket.accept()
        self._connected = True

    async def send_text(self, data: str) -> None:
        async with self._send_lock:
            if not self.is_connected:
                raise TransportSendError(f"WebSocket {self.transport_id} is not connected")
            await self._websocket.send_text(data)

    async def close(self) -> None:
        """Close the WebSocket connection."""
        self._connected = False
        if self._websocket.client_state == WebSocketState.CONNECTED:
            try:
                await self._websocket.close()
            except RuntimeError as e:
                # Already closed by the peer
                logger.debug(f"WebSocket {self.transport_id} close: {e}")

    async def receive_messages(self) -> AsyncIterator[str]:
        """Yield raw text messages until the client disconnects."""
        try:
            while self.is_connected:
                message = await self._websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is None and message.get("bytes") is not None:
                    text = message["bytes"].decode("utf-8", errors="replace")
                if text is not None:
                    yield text
        except WebSocketDisconnect:
            pass
        finally:
            self._connected = False
