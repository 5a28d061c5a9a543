"""Editor-facing server application.

Creates the Starlette ASGI application the draw.io extension connects to.

Routes:
- /health  - Health check with client and pending counts
- /events  - SSE push channel (commands out)
- /message - POST ingress channel (replies in)
- / and /ws - WebSocket channel (commands out, replies in)
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route, WebSocketRoute

from .config import BridgeConfig
from .routes import event_routes, health_routes, message_routes, websocket_routes
from .runtime import BridgeRuntime


def create_app(
    runtime: BridgeRuntime | None = None,
    *,
    manage_runtime: bool = True,
) -> Starlette:
    """Create the editor-facing application.

    Args:
        runtime: Bridge runtime to serve; a new one is built from the
                 environment if omitted
        manage_runtime: Start and stop the runtime with the app lifespan.
                        Disable when the runtime is shared with another
                        server that owns its lifecycle.

    Returns:
        Configured Starlette application
    """
    if runtime is None:
        runtime = BridgeRuntime(BridgeConfig.from_env())

    routes: list[Route | WebSocketRoute] = []
    routes.extend(health_routes)
    routes.extend(event_routes)
    routes.extend(message_routes)
    routes.extend(websocket_routes)

    # The extension runs on arbitrary page origins
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=list(runtime.config.cors_origins),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        ),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        if manage_runtime:
            await runtime.start()
        try:
            yield
        finally:
            if manage_runtime:
                await runtime.stop()

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.runtime = runtime
    return app
