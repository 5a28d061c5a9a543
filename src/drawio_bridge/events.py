"""Typed event dispatch between the correlation bus and the forwarder.

Each runtime owns its own ``EventDispatcher``; there is no process-wide
singleton, so several runtimes (and tests) never see each other's events.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .messages import InboundReply, OutboundCommand

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class EventDefinition(Generic[T]):
    """Typed event definition.

    Usage:
        CommandRequested = define_event("command.requested", OutboundCommand)
        await dispatcher.publish(CommandRequested, command)
    """

    type: str
    schema: type[T]


# Type for event callbacks
EventCallback = Callable[[Any], Coroutine[Any, Any, None]]


def define_event(event_type: str, schema: type[T]) -> EventDefinition[T]:
    """Define a typed event.

    Args:
        event_type: Dot-separated event name (e.g., "command.requested")
        schema: Pydantic model carried by the event

    Returns:
        EventDefinition usable with publish/subscribe
    """
    return EventDefinition(type=event_type, schema=schema)


CommandRequested = define_event("command.requested", OutboundCommand)
ReplyReceived = define_event("reply.received", InboundReply)


class EventDispatcher:
    """Publish/subscribe dispatcher keyed by event type.

    Subscriber lists are guarded by an asyncio.Lock and copied before
    delivery, so callbacks may subscribe or unsubscribe while an event is
    being published.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[EventCallback]] = {}
        self._lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the lock (lazy init for event loop safety)."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def publish(self, event_def: EventDefinition[T], properties: T) -> int:
        """Publish an event to its subscribers.

        Subscriber failures are logged and never reach the publisher.

        Returns:
            Number of subscribers notified
        """
        if not isinstance(properties, event_def.schema):
            raise TypeError(
                f"Event {event_def.type} expects {event_def.schema.__name__}, "
                f"got {type(properties).__name__}"
            )

        async with self._get_lock():
            subscribers = list(self._subscriptions.get(event_def.type, []))

        for callback in subscribers:
            try:
                await callback(properties)
            except Exception:
                logger.exception(f"Error in subscriber for {event_def.type}")

        return len(subscribers)

    async def subscribe(
        self, event_def: EventDefinition[T], callback: EventCallback
    ) -> Callable[[], None]:
        """Subscribe to an event type.

        Returns:
            Unsubscribe function
        """
        key = event_def.type
        async with self._get_lock():
            self._subscriptions.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            # Synchronous unsubscribe (safe because we're just removing)
            callbacks = self._subscriptions.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def subscriber_count(self, event_def: EventDefinition[Any]) -> int:
        """Number of subscribers for an event type."""
        return len(self._subscriptions.get(event_def.type, []))
