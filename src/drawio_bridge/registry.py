"""Registry of connected editor transports."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from .errors import TransportSendError
from .transport.base import ClientTransport

logger = logging.getLogger(__name__)


class TransportRegistry:
    """Live set of connected client transports.

    Mutations are serialized with an asyncio.Lock. Broadcasts iterate over a
    snapshot, so transports may connect or disconnect mid-broadcast without
    affecting delivery to the others.
    """

    def __init__(self, send_timeout: float = 5.0):
        self._send_timeout = send_timeout
        self._transports: dict[str, ClientTransport] = {}
        self._lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the lock (lazy init for event loop safety)."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def __len__(self) -> int:
        return len(self._transports)

    def __contains__(self, transport: object) -> bool:
        transport_id = getattr(transport, "transport_id", None)
        return transport_id is not None and self._transports.get(transport_id) is transport

    async def add(self, transport: ClientTransport) -> None:
        """Register a newly connected transport."""
        async with self._get_lock():
            self._transports[transport.transport_id] = transport
            total = len(self._transports)
        logger.info(f"Client {transport.transport_id} ({transport.kind}) connected, {total} total")

    async def remove(self, transport: ClientTransport) -> bool:
        """Unregister a transport.

        Returns:
            True if the transport was registered, False otherwise
        """
        async with self._get_lock():
            if self._transports.get(transport.transport_id) is not transport:
                return False
            del self._transports[transport.transport_id]
            remaining = len(self._transports)
        logger.info(f"Client {transport.transport_id} disconnected, {remaining} remaining")
        return True

    def snapshot(self) -> list[ClientTransport]:
        """Copy of the current members."""
        return list(self._transports.values())

    def count_by_kind(self) -> dict[str, int]:
        """Number of connected transports per kind."""
        return dict(Counter(t.kind for t in self._transports.values()))

    async def broadcast(self, data: str) -> int:
        """Send a message to every registered transport.

        Sends run concurrently, each bounded by the send timeout. A transport
        whose send fails or times out is removed and closed; the others
        still receive the message.

        Returns:
            Number of transports that accepted the message
        """
        targets = self.snapshot()
        if not targets:
            logger.debug("Broadcast with no connected clients")
            return 0

        results = await asyncio.gather(*(self._send(t, data) for t in targets))
        return sum(results)

    async def _send(self, transport: ClientTransport, data: str) -> bool:
        try:
            if not transport.is_connected:
                raise TransportSendError("transport is not connected")
            await asyncio.wait_for(transport.send_text(data), timeout=self._send_timeout)
            return True
        except TimeoutError:
            logger.warning(
                f"Send to {transport.transport_id} timed out after {self._send_timeout}s, evicting"
            )
        except Exception as e:
            logger.warning(f"Send to {transport.transport_id} failed, evicting: {e}")

        await self._evict(transport)
        return False

    async def _evict(self, transport: ClientTransport) -> None:
        if await self.remove(transport):
            try:
                await transport.close()
            except Exception as e:
                logger.debug(f"Error closing evicted transport {transport.transport_id}: {e}")
