"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from drawio_bridge.config import BridgeConfig
from drawio_bridge.runtime import BridgeRuntime


@pytest.fixture
def config() -> BridgeConfig:
    """Config with short timeouts for fast tests."""
    return BridgeConfig(request_timeout=1.0, send_timeout=0.2, sse_heartbeat=0.05)


@pytest.fixture
def runtime(config: BridgeConfig) -> BridgeRuntime:
    """Unstarted bridge runtime."""
    return BridgeRuntime(config)

