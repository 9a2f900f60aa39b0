"""``tailscale-mcp serve`` — run the MCP server over stdio or HTTP."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

import click

from tailscale_mcp.cli_commands._output import err_console

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--mode",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="Transport to serve on (default: MCP_SERVER_MODE or stdio).",
)
@click.option("--host", default=None, help="HTTP bind address (default: MCP_SERVER_HOST or 0.0.0.0).")
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="HTTP port (default: MCP_SERVER_PORT or 8080).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to stderr.")
@click.option("--otlp-endpoint", default=None, help="Also export spans over OTLP/gRPC to this endpoint.")
def serve(
    mode: str | None,
    host: str | None,
    port: int | None,
    verbose: bool,
    telemetry: bool,
    otlp_endpoint: str | None,
) -> None:
    """Start the MCP server.

    Exits 0 on clean shutdown (end of input or SIGINT/SIGTERM) and 1 on error.
    """
    from tailscale_mcp.app import TailscaleMCPServer
    from tailscale_mcp.config import ConfigError, load_config
    from tailscale_mcp.log import configure_logging, shutdown_logging

    try:
        config = load_config()
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    level = logging.DEBUG if verbose else config.logging_level
    configure_logging(level, log_file=config.log_file, fmt=config.log_format)

    if telemetry or otlp_endpoint:
        from tailscale_mcp.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(export_to_console=telemetry, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            err_console.print(f"[red]Telemetry error:[/red] {exc}")
            shutdown_logging()
            sys.exit(1)

    mode = mode or config.server_mode

    async def _serve() -> None:
        server = TailscaleMCPServer(config)
        shutdown = asyncio.Event()
        _install_signal_handlers(shutdown)
        try:
            if mode == "http":
                await server.start_http(shutdown, host=host, port=port)
            else:
                await server.start_stdio(shutdown)
        finally:
            await server.shutdown()

    exit_code = 0
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as exc:
        logger.error("Server error: %s", exc)
        err_console.print(f"[red]Server error:[/red] {exc}")
        exit_code = 1
    finally:
        shutdown_logging()

    sys.exit(exit_code)


def _install_signal_handlers(shutdown: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _on_signal(signame: str) -> None:
        logger.info("Received %s, shutting down", signame)
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal, sig.name)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler.
            with contextlib.suppress(ValueError):
                signal.signal(sig, lambda _s, _f, name=sig.name: loop.call_soon_threadsafe(_on_signal, name))
