"""HTTP routes for editor clients."""

from .events import event_routes
from .health import health_routes
from .message import message_routes
from .websocket import websocket_routes

__all__ = [
    "event_routes",
    "health_routes",
    "message_routes",
    "websocket_routes",
]
