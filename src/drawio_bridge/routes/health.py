"""Health check endpoint."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route


async def health_check(request: Request) -> JSONResponse:
    """Health check with connected-client and pending-request counts."""
    runtime = request.app.state.runtime
    return JSONResponse({"status": "ok", **runtime.status()})


health_routes = [
    Route("/health", health_check, methods=["GET"]),
]
