"""Server-Sent Events push transport.

Each SSE subscriber gets a bounded queue. ``send_text`` never waits: if the
client is not draining its queue, the send fails and the registry evicts it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from ..errors import TransportSendError
from .base import new_transport_id

logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keepalive\n\n"
CONNECTED_FRAME = ": connected\n\n"


def format_sse(data: str) -> str:
    """Format one message as an SSE data frame."""
    lines = data.splitlines() or [""]
    return "".join(f"data: {line}\n" for line in lines) + "\n"


class SSETransport:
    """Push-only transport backed by an SSE response stream."""

    kind = "sse"

    def __init__(self, queue_size: int = 100):
        self.transport_id = new_transport_id(self.kind)
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return not self._closed

    async def send_text(self, data: str) -> None:
        if self._closed:
            raise TransportSendError(f"SSE stream {self.transport_id} is closed")
        try:
            self._queue.put_nowait(data)
        except asyncio.QueueFull as e:
            raise TransportSendError(f"SSE stream {self.transport_id} is not draining") from e

    async def close(self) -> None:
        self._closed = True

    async def frames(self, heartbeat: float) -> AsyncIterator[str]:
        """Yield SSE frames until the transport is closed.

        Emits a comment frame first and a keepalive comment whenever no
        message was sent for ``heartbeat`` seconds.
        """
        yield CONNECTED_FRAME
        while not self._closed:
            try:
                data = await asyncio.wait_for(self._queue.get(), timeout=heartbeat)
            except TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            yield format_sse(data)
