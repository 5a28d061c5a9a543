"""Request/reply correlation over a broadcast channel.

A command is broadcast to every connected editor, but the caller wants a
single answer. ``CorrelationBus.request`` tags each command with a fresh
identifier, parks a future in the pending table, and waits for the first
reply carrying that identifier, for at most the configured timeout.

Every pending entry is settled exactly once, by whichever comes first:
- a matching reply (success or remote error),
- the deadline,
- explicit cancellation, or cancellation of the waiting task.

The entry is removed on settlement, so replies arriving afterwards (late
answers, or a second editor answering the same command) find nothing and
are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import DEFAULT_REQUEST_TIMEOUT
from .errors import RemoteExecutionError, RequestCancelledError, RequestTimeoutError
from .events import CommandRequested, EventDispatcher, ReplyReceived
from .ids import IdGenerator, uuid_id_generator
from .messages import InboundReply, OutboundCommand

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """A broadcast command waiting for its reply."""

    id: str
    name: str
    deadline: float
    future: asyncio.Future[Any]


class CorrelationBus:
    """Turns broadcast-and-wait into a call/response abstraction."""

    def __init__(
        self,
        events: EventDispatcher,
        id_generator: IdGenerator | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the bus.

        Args:
            events: Dispatcher carrying command.requested / reply.received
            id_generator: Source of unique correlation identifiers
            timeout: Default seconds to wait for a reply
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._events = events
        self._new_id = id_generator or uuid_id_generator()
        self._timeout = timeout
        self._pending: dict[str, PendingRequest] = {}
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def timeout(self) -> float:
        """Default reply timeout in seconds."""
        return self._timeout

    @property
    def pending_count(self) -> int:
        """Number of requests still waiting for a reply."""
        return len(self._pending)

    def pending_ids(self) -> list[str]:
        """Identifiers of requests still waiting for a reply."""
        return list(self._pending)

    async def start(self) -> None:
        """Start consuming reply.received events."""
        if self._unsubscribe is None:
            self._unsubscribe = await self._events.subscribe(ReplyReceived, self._on_reply_event)

    async def stop(self) -> None:
        """Stop consuming replies and fail everything still pending."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        cancelled = self.cancel_all(reason="bridge shutting down")
        if cancelled:
            logger.info(f"Cancelled {cancelled} pending request(s) on shutdown")

    async def request(
        self,
        name: str,
        payload: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Broadcast a command and wait for the first matching reply.

        Args:
            name: Command name (e.g., "add-rectangle")
            payload: Command arguments, passed through untouched
            timeout: Seconds to wait; defaults to the bus timeout

        Returns:
            The reply payload

        Raises:
            RemoteExecutionError: The editor replied with an error
            RequestTimeoutError: No reply before the deadline
            RequestCancelledError: The request was cancelled via cancel()
        """
        wait = self._timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()

        request_id = self._new_id()
        if request_id in self._pending:
            logger.warning(f"Correlation id {request_id} already pending, overwriting")

        pending = PendingRequest(
            id=request_id,
            name=name,
            deadline=loop.time() + wait,
            future=loop.create_future(),
        )
        self._pending[request_id] = pending

        try:
            # The deadline covers publishing too, so a slow subscriber cannot extend it
            async with asyncio.timeout_at(pending.deadline):
                await self._events.publish(
                    CommandRequested,
                    OutboundCommand(id=request_id, name=name, payload=payload or {}),
                )
                logger.debug(f"Sent {name} ({request_id}), waiting up to {wait:g}s")
                return await pending.future

        except TimeoutError:
            logger.warning(f"Command {name} ({request_id}) timed out after {wait:g}s")
            raise RequestTimeoutError(request_id, name, wait) from None

        finally:
            # Only remove our own entry; a colliding id may have replaced it
            if self._pending.get(request_id) is pending:
                del self._pending[request_id]

    def on_reply(self, reply: InboundReply) -> bool:
        """Settle the pending request matching a reply.

        Returns:
            True if a pending request was resolved, False if the reply was
            unknown, late, or a duplicate
        """
        pending = self._pending.pop(reply.id, None)
        if pending is None:
            logger.debug(f"Discarding reply for unknown or settled request {reply.id}")
            return False

        if pending.future.done():
            return False

        if reply.is_error:
            pending.future.set_exception(RemoteExecutionError(reply.error, pending.id, pending.name))
            logger.debug(f"Request {pending.id} ({pending.name}) failed remotely")
        else:
            pending.future.set_result(reply.payload)
            logger.debug(f"Request {pending.id} ({pending.name}) resolved")
        return True

    def cancel(self, request_id: str, reason: str = "cancelled") -> bool:
        """Cancel a pending request.

        The waiting caller gets RequestCancelledError; a reply arriving
        afterwards is discarded like any late reply.

        Returns:
            True if the request was pending, False otherwise
        """
        pending = self._pending.pop(request_id, None)
        if pending is None or pending.future.done():
            return False
        pending.future.set_exception(RequestCancelledError(pending.id, pending.name, reason))
        return True

    def cancel_all(self, reason: str = "cancelled") -> int:
        """Cancel every pending request.

        Returns:
            Number of requests cancelled
        """
        count = 0
        for request_id in list(self._pending):
            if self.cancel(request_id, reason):
                count += 1
        return count

    async def _on_reply_event(self, reply: InboundReply) -> None:
        self.on_reply(reply)
