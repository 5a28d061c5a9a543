"""Fan-out forwarder between the correlation bus and editor transports.

Outbound: every command.requested event is serialized once and broadcast to
all registered transports. The broadcast runs as a background task, so the
publisher never waits on a slow client; the request deadline alone decides
how long a caller waits.

Inbound: raw messages from any transport are parsed and republished as
reply.received events. Bad input is logged and dropped here so that one
misbehaving client can never disturb the others.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from .errors import MalformedReplyError
from .events import CommandRequested, EventDispatcher, ReplyReceived
from .messages import InboundReply, OutboundCommand, parse_reply
from .registry import TransportRegistry
from .transport.base import ClientTransport

logger = logging.getLogger(__name__)


class FanOutForwarder:
    """Connects the event dispatcher to the transport registry."""

    def __init__(self, events: EventDispatcher, registry: TransportRegistry):
        self._events = events
        self._registry = registry
        self._unsubscribe: Callable[[], None] | None = None
        self._broadcasts: set[asyncio.Task[None]] = set()

    async def start(self) -> None:
        """Start forwarding command.requested events."""
        if self._unsubscribe is None:
            self._unsubscribe = await self._events.subscribe(CommandRequested, self._on_command)

    async def stop(self) -> None:
        """Stop forwarding and close every registered transport."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._broadcasts):
            task.cancel()
        for task in list(self._broadcasts):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for transport in self._registry.snapshot():
            await self.transport_disconnected(transport)
            try:
                await transport.close()
            except Exception as e:
                logger.debug(f"Error closing {transport.transport_id}: {e}")

    async def drain(self) -> None:
        """Wait for every in-flight broadcast to finish."""
        while self._broadcasts:
            await asyncio.gather(*list(self._broadcasts), return_exceptions=True)

    async def _on_command(self, command: OutboundCommand) -> None:
        task = asyncio.create_task(self._broadcast(command))
        self._broadcasts.add(task)
        task.add_done_callback(self._broadcasts.discard)

    async def _broadcast(self, command: OutboundCommand) -> None:
        delivered = await self._registry.broadcast(command.to_json())
        if delivered:
            logger.debug(f"Forwarded {command.name} ({command.id}) to {delivered} client(s)")
        else:
            logger.warning(
                f"No connected clients for {command.name} ({command.id}); "
                "request will time out unless one connects"
            )

    async def transport_connected(self, transport: ClientTransport) -> None:
        """Register a newly connected transport."""
        await self._registry.add(transport)

    async def transport_disconnected(self, transport: ClientTransport) -> None:
        """Unregister a transport that closed or failed."""
        await self._registry.remove(transport)

    async def transport_message(
        self, transport: ClientTransport | None, raw: str | bytes
    ) -> InboundReply | None:
        """Handle a raw message received from a client.

        Args:
            transport: The sending transport, or None for stateless
                ingress such as POST /message
            raw: Message body as received

        Returns:
            The parsed reply if it was forwarded, None if it was dropped
        """
        source = transport.transport_id if transport is not None else "http"
        try:
            reply = parse_reply(raw)
        except MalformedReplyError as e:
            logger.warning(f"Dropping malformed message from {source}: {e}")
            return None

        logger.debug(f"Received reply {reply.id} from {source}")
        await self._events.publish(ReplyReceived, reply)
        return reply
