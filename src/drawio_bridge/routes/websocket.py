"""WebSocket endpoint for editor clients.

Commands are pushed over the socket and replies come back over it, using
the same JSON shapes as the SSE and POST /message channels.
"""

from __future__ import annotations

import logging

from starlette.routing import WebSocketRoute
from starlette.websockets import WebSocket

from ..transport.websocket import WebSocketTransport

logger = logging.getLogger(__name__)


async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint.

    URL: / or /ws

    Protocol:
    1. Client connects and is registered for broadcasts
    2. Server sends {"id", "name", "payload"} for every command
    3. Client answers with {"id", "payload"} or {"id", "error"}
    """
    runtime = websocket.app.state.runtime
    transport = WebSocketTransport(websocket)

    await transport.accept()
    await runtime.forwarder.transport_connected(transport)

    try:
        async for raw in transport.receive_messages():
            await runtime.forwarder.transport_message(transport, raw)
    except Exception as e:
        logger.exception(f"WebSocket error on {transport.transport_id}: {e}")
    finally:
        await runtime.forwarder.transport_disconnected(transport)
        await transport.close()


# The extension connects to the server root; /ws is kept as an explicit alias
websocket_routes = [
    WebSocketRoute("/", websocket_endpoint),
    WebSocketRoute("/ws", websocket_endpoint),
]
