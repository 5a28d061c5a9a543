"""Command handlers: validate arguments, then round-trip through the bus."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .commands import COMMANDS, CommandSpec
from .correlation import CorrelationBus
from .errors import CommandValidationError, UnknownCommandError

logger = logging.getLogger(__name__)


class DiagramTools:
    """Executes catalogue commands against connected editors."""

    def __init__(self, bus: CorrelationBus, commands: dict[str, CommandSpec] | None = None):
        self._bus = bus
        self._commands = COMMANDS if commands is None else commands

    @property
    def commands(self) -> dict[str, CommandSpec]:
        return self._commands

    def build_payload(self, name: str, args: dict[str, Any] | None = None) -> dict[str, Any]:
        """Validate arguments for a command and return the wire payload.

        Raises:
            UnknownCommandError: No such command
            CommandValidationError: Arguments do not match the command
        """
        spec = self._commands.get(name)
        if spec is None:
            raise UnknownCommandError(f"Unknown command: {name}")

        try:
            parsed = spec.args.model_validate(args or {})
        except ValidationError as e:
            raise CommandValidationError(name, e.errors()) from e

        return parsed.to_payload()

    async def call(self, name: str, args: dict[str, Any] | None = None) -> Any:
        """Run a command on the editor and return its result."""
        payload = self.build_payload(name, args)
        logger.info(f"Executing {name}")
        return await self._bus.request(name, payload)
