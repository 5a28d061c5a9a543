"""SSE push channel for editor clients."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import StreamingResponse
from starlette.routing import Route

from ..transport.sse import SSETransport

logger = logging.getLogger(__name__)


async def sse_endpoint(request: Request) -> StreamingResponse:
    """SSE endpoint - streams every broadcast command to the client.

    Replies are not accepted here; SSE clients answer via POST /message.
    """
    runtime = request.app.state.runtime
    transport = SSETransport(queue_size=runtime.config.sse_queue_size)

    async def event_stream():
        await runtime.forwarder.transport_connected(transport)
        try:
            async for frame in transport.frames(heartbeat=runtime.config.sse_heartbeat):
                # Check for client disconnect
                if await request.is_disconnected():
                    break
                yield frame
        finally:
            await transport.close()
            await runtime.forwarder.transport_disconnected(transport)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


event_routes = [
    Route("/events", sse_endpoint, methods=["GET"]),
]
