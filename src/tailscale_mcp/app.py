"""TailscaleMCPServer — owns the server components and runs a transport."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import BinaryIO

from tailscale_mcp import __version__
from tailscale_mcp.config import ServerConfig
from tailscale_mcp.mcp.dispatcher import Dispatcher
from tailscale_mcp.mcp.server import MCPServer
from tailscale_mcp.tailscale.api import APIClient
from tailscale_mcp.tailscale.cli import TailscaleCLI
from tailscale_mcp.tools.builtin import register_builtin_tools
from tailscale_mcp.tools.registry import ToolRegistry
from tailscale_mcp.transport.http import HTTPServer
from tailscale_mcp.transport.stdio import StdioServer

logger = logging.getLogger(__name__)

SERVER_NAME = "tailscale-mcp-server"


class ServerAlreadyRunningError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("server is already running")


class TailscaleMCPServer:
    """Composition root for one MCP server process.

    Collaborators are built from *config* unless passed in explicitly.  A
    custom *registry* is used as-is; otherwise the built-in tools are
    registered on a fresh one.

    Raises:
        BinaryNotFoundError: If no *cli* is given and the ``tailscale``
            binary cannot be located.
    """

    def __init__(
        self,
        config: ServerConfig,
        *,
        cli: TailscaleCLI | None = None,
        api: APIClient | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self.config = config
        logger.info(
            "Initializing server: config=%s has_api_credentials=%s",
            config.sanitized(),
            config.has_api_credentials,
        )

        self.api = api or APIClient(config)
        self.cli = cli or TailscaleCLI(config.tailscale_path)
        if registry is None:
            registry = ToolRegistry(cli=self.cli, api=self.api)
            register_builtin_tools(registry, cli=self.cli, api=self.api)
        self.registry = registry

        self.mcp_server = MCPServer(self.registry, name=SERVER_NAME, version=__version__)
        self.dispatcher = Dispatcher(self.mcp_server)

        self._lock = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def tool_count(self) -> int:
        return self.registry.count

    def _mark_running(self) -> None:
        with self._lock:
            if self._running:
                raise ServerAlreadyRunningError
            self._running = True

    def _mark_stopped(self) -> None:
        with self._lock:
            self._running = False

    async def start_stdio(
        self,
        shutdown: asyncio.Event | None = None,
        *,
        reader: asyncio.StreamReader | None = None,
        writer: BinaryIO | None = None,
    ) -> None:
        """Serve over stdin/stdout (or *reader*/*writer*) until EOF or *shutdown*."""
        self._mark_running()
        try:
            await StdioServer(self.dispatcher, reader=reader, writer=writer).serve(shutdown)
        finally:
            self._mark_stopped()

    async def start_http(
        self,
        shutdown: asyncio.Event | None = None,
        *,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        """Serve over HTTP until *shutdown* is set."""
        self._mark_running()
        try:
            server = HTTPServer(
                self.dispatcher,
                server_info=self.mcp_server.info,
                host=host or self.config.http_host,
                port=port if port is not None else self.config.http_port,
            )
            await server.serve(shutdown)
        finally:
            self._mark_stopped()

    async def shutdown(self) -> None:
        """Release the registry and the API client."""
        logger.info("Shutting down TailscaleMCPServer")
        self.mcp_server.shutdown()
        self.registry.close()
        await self.api.aclose()
        self._mark_stopped()
