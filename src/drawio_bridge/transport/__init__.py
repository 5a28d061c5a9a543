"""Editor-facing transports.

- SSE - one-way push channel; replies come back over POST /message
- WebSocket - bidirectional, replies come back over the same socket
"""

from .base import ClientTransport, new_transport_id
from .sse import SSETransport, format_sse
from .websocket import WebSocketTransport

__all__ = [
    "ClientTransport",
    "new_transport_id",
    "SSETransport",
    "format_sse",
    "WebSocketTransport",
]
