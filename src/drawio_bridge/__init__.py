"""drawio-bridge - request/reply bridge between MCP agents and the draw.io editor."""

from .config import BridgeConfig
from .correlation import CorrelationBus, PendingRequest
from .errors import (
    BridgeError,
    CommandValidationError,
    RemoteExecutionError,
    RequestCancelledError,
    RequestTimeoutError,
    UnknownCommandError,
)
from .events import CommandRequested, EventDispatcher, ReplyReceived
from .forwarder import FanOutForwarder
from .messages import InboundReply, OutboundCommand, parse_reply
from .registry import TransportRegistry
from .runtime import BridgeRuntime
from .tools import DiagramTools

__version__ = "0.1.0"

__all__ = [
    "BridgeConfig",
    "BridgeError",
    "BridgeRuntime",
    "CommandRequested",
    "CommandValidationError",
    "CorrelationBus",
    "DiagramTools",
    "EventDispatcher",
    "FanOutForwarder",
    "InboundReply",
    "OutboundCommand",
    "PendingRequest",
    "RemoteExecutionError",
    "ReplyReceived",
    "RequestCancelledError",
    "RequestTimeoutError",
    "TransportRegistry",
    "UnknownCommandError",
    "parse_reply",
]
