"""Bridge runtime: wires the dispatcher, registry, forwarder and bus."""

from __future__ import annotations

import logging
from typing import Any

from .config import BridgeConfig
from .correlation import CorrelationBus
from .events import EventDispatcher
from .forwarder import FanOutForwarder
from .ids import IdGenerator
from .registry import TransportRegistry

logger = logging.getLogger(__name__)


class BridgeRuntime:
    """Owns one complete request/reply bridge.

    Usage:
        runtime = BridgeRuntime(BridgeConfig.from_env())
        await runtime.start()
        result = await runtime.bus.request("get-selected-cell")
        await runtime.stop()
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.events = EventDispatcher()
        self.registry = TransportRegistry(send_timeout=self.config.send_timeout)
        self.forwarder = FanOutForwarder(self.events, self.registry)
        self.bus = CorrelationBus(
            self.events,
            id_generator=id_generator,
            timeout=self.config.request_timeout,
        )
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Subscribe the bus and forwarder to the dispatcher."""
        if self._started:
            return
        await self.bus.start()
        await self.forwarder.start()
        self._started = True
        logger.info(f"Bridge runtime started (request timeout {self.bus.timeout:g}s)")

    async def stop(self) -> None:
        """Fail pending requests and disconnect all clients."""
        if not self._started:
            return
        self._started = False
        await self.bus.stop()
        await self.forwarder.stop()
        logger.info("Bridge runtime stopped")

    async def __aenter__(self) -> BridgeRuntime:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    def status(self) -> dict[str, Any]:
        """Connection and pending-request summary."""
        by_kind = self.registry.count_by_kind()
        return {
            "clients": {
                "sse": by_kind.get("sse", 0),
                "websocket": by_kind.get("websocket", 0),
            },
            "pending": self.bus.pending_count,
        }
