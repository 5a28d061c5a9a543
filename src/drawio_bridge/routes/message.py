"""Ingress channel: editor clients POST their replies here."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route


async def message_endpoint(request: Request) -> JSONResponse:
    """Accept one reply message from an editor client.

    Unknown or late correlation ids are still accepted; only messages that
    cannot be parsed into a reply are rejected.
    """
    runtime = request.app.state.runtime
    body = await request.body()

    reply = await runtime.forwarder.transport_message(None, body)
    if reply is None:
        return JSONResponse({"error": "Invalid reply message"}, status_code=400)

    return JSONResponse({"success": True})


message_routes = [
    Route("/message", message_endpoint, methods=["POST"]),
]
