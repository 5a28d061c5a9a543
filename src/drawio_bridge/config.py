"""Runtime configuration.

Values come from ``DRAWIO_BRIDGE_*`` environment variables, falling back to
the defaults below. CLI options are applied on top with ``replace()``.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from .errors import ConfigError

ENV_PREFIX = "DRAWIO_BRIDGE_"

DEFAULT_REQUEST_TIMEOUT = 30.0

T = TypeVar("T")


@dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration."""

    # Extension-facing server (SSE, POST /message, WebSocket)
    host: str = "127.0.0.1"
    port: int = 3333

    # Agent-facing MCP server
    mcp_host: str = "127.0.0.1"
    mcp_port: int = 3334
    mcp_path: str = "/"

    # Correlation and fan-out
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    send_timeout: float = 5.0

    # SSE push channel
    sse_heartbeat: float = 15.0
    sse_queue_size: int = 100

    cors_origins: tuple[str, ...] = field(default=("*",))
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("request_timeout", "send_timeout", "sse_heartbeat"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.sse_queue_size <= 0:
            raise ConfigError(f"sse_queue_size must be positive, got {self.sse_queue_size}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeConfig:
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        def read(name: str, convert: Callable[[str], T]) -> None:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or raw.strip() == "":
                return
            try:
                values[name] = convert(raw.strip())
            except ValueError as e:
                raise ConfigError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from e

        read("host", str)
        read("port", int)
        read("mcp_host", str)
        read("mcp_port", int)
        read("mcp_path", str)
        read("request_timeout", float)
        read("send_timeout", float)
        read("sse_heartbeat", float)
        read("sse_queue_size", int)
        read("cors_origins", _split_origins)
        read("log_level", str.upper)

        return cls(**values)

    def with_overrides(self, **overrides: Any) -> BridgeConfig:
        """Return a copy with non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _split_origins(raw: str) -> tuple[str, ...]:
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    if not origins:
        raise ValueError("empty origin list")
    return origins
