"""Exception types raised by the bridge.

Caller-facing errors (timeouts, remote failures, cancellation) propagate out
of ``CorrelationBus.request``. Transport and parsing errors are internal:
they are logged and handled where they occur and never reach a caller.
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class for all bridge errors."""


class RequestTimeoutError(BridgeError, TimeoutError):
    """No matching reply arrived before the request deadline."""

    def __init__(self, request_id: str, command: str, timeout: float):
        self.request_id = request_id
        self.command = command
        self.timeout = timeout
        super().__init__(
            f"Command '{command}' ({request_id}) got no reply within {timeout:g}s"
        )


class RemoteExecutionError(BridgeError):
    """The editor replied with an error payload for the request."""

    def __init__(self, error: Any, request_id: str, command: str):
        self.error = error
        self.request_id = request_id
        self.command = command
        super().__init__(f"Command '{command}' ({request_id}) failed remotely: {error}")


class RequestCancelledError(BridgeError):
    """The request was cancelled before a reply arrived."""

    def __init__(self, request_id: str, command: str, reason: str = "cancelled"):
        self.request_id = request_id
        self.command = command
        self.reason = reason
        super().__init__(f"Command '{command}' ({request_id}) {reason}")


class MalformedReplyError(BridgeError):
    """An inbound message could not be parsed into a reply."""


class TransportSendError(BridgeError):
    """Sending to a single client transport failed."""


class UnknownCommandError(BridgeError):
    """No command with the given name is registered."""


class CommandValidationError(BridgeError):
    """Command arguments failed validation."""

    def __init__(self, command: str, errors: list[dict[str, Any]]):
        self.command = command
        self.errors = errors
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors
        )
        super().__init__(f"Invalid arguments for '{command}': {details}")


class ConfigError(BridgeError):
    """Invalid configuration value."""
