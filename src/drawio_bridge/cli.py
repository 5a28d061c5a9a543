"""drawio-bridge CLI.

Runs the editor-facing server and the MCP server in one process so they
share a single correlation bus.

Usage:
    drawio-bridge                          # Extension server :3333, MCP :3334
    drawio-bridge --port 4000 --timeout 10 # Custom port and reply timeout
    drawio-bridge --no-mcp                 # Extension server only
    drawio-bridge --health                 # Check a running server and exit
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click
import httpx

from .config import BridgeConfig
from .errors import ConfigError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    """Send all logging to stderr at the given level."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stderr, force=True)


@click.command()
@click.option("--host", default=None, help="Extension server host [env DRAWIO_BRIDGE_HOST]")
@click.option("--port", type=int, default=None, help="Extension server port [3333]")
@click.option("--mcp-host", default=None, help="MCP server host")
@click.option("--mcp-port", type=int, default=None, help="MCP server port [3334]")
@click.option("--mcp-path", default=None, help="MCP endpoint path [/]")
@click.option(
    "--timeout",
    "request_timeout",
    type=float,
    default=None,
    help="Seconds to wait for an editor reply [30]",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level [INFO]",
)
@click.option("--no-mcp", is_flag=True, help="Run only the extension server")
@click.option("--health", "health_check", is_flag=True, help="Check server health and exit")
@click.option("--health-url", default=None, help="Server URL for health check")
def main(
    host: str | None,
    port: int | None,
    mcp_host: str | None,
    mcp_port: int | None,
    mcp_path: str | None,
    request_timeout: float | None,
    log_level: str | None,
    no_mcp: bool,
    health_check: bool,
    health_url: str | None,
) -> None:
    """Bridge between MCP agents and the draw.io editor extension."""
    try:
        config = BridgeConfig.from_env().with_overrides(
            host=host,
            port=port,
            mcp_host=mcp_host,
            mcp_port=mcp_port,
            mcp_path=mcp_path,
            request_timeout=request_timeout,
            log_level=log_level.upper() if log_level else None,
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    if health_check:
        _do_health_check(health_url or f"http://{config.host}:{config.port}")
        return

    configure_logging(config.log_level)

    click.echo(f"Extension server on http://{config.host}:{config.port}", err=True)
    if not no_mcp:
        click.echo(
            f"MCP server on http://{config.mcp_host}:{config.mcp_port}{config.mcp_path}", err=True
        )
    click.echo("Press Ctrl+C to stop", err=True)

    try:
        asyncio.run(_serve(config, with_mcp=not no_mcp))
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)


def format_health(data: dict) -> str:
    """Render a /health response as one human-readable line."""
    clients = data.get("clients", {})
    return (
        f"Bridge is {data.get('status', 'unknown')}: "
        f"{clients.get('sse', 0)} SSE client(s), "
        f"{clients.get('websocket', 0)} WebSocket client(s), "
        f"{data.get('pending', 0)} pending request(s)"
    )


def _do_health_check(url: str) -> None:
    """Query a running bridge and report its clients and pending requests."""

    async def fetch() -> httpx.Response:
        async with httpx.AsyncClient(timeout=5.0) as client:
            return await client.get(f"{url}/health")

    try:
        response = asyncio.run(fetch())
    except httpx.HTTPError as e:
        click.echo(f"Cannot reach bridge at {url}: {e}", err=True)
        sys.exit(1)

    if response.status_code != 200:
        click.echo(f"Bridge at {url} returned HTTP {response.status_code}", err=True)
        sys.exit(1)

    click.echo(format_health(response.json()))



async def _serve(config: BridgeConfig, with_mcp: bool = True) -> None:
    """Run both servers on one event loop until they exit."""
    import uvicorn

    from .app import create_app
    from .mcp_server import create_mcp_server
    from .runtime import BridgeRuntime
    from .tools import DiagramTools

    runtime = BridgeRuntime(config)
    await runtime.start()

    app = create_app(runtime, manage_runtime=False)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    )
    servers = [server.serve()]

    if with_mcp:
        mcp = create_mcp_server(DiagramTools(runtime.bus))
        servers.append(
            mcp.run_async(
                transport="http",
                host=config.mcp_host,
                port=config.mcp_port,
                path=config.mcp_path,
                # Each tool call is independent; no MCP session state is kept
                stateless_http=True,
            )
        )

    try:
        await asyncio.gather(*servers)
    finally:
        await runtime.stop()


if __name__ == "__main__":
    main()
