"""MCPServer — handlers behind the four MCP methods."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from tailscale_mcp.mcp.errors import MCPError
from tailscale_mcp.mcp.models import (
    CallToolParams,
    CallToolResult,
    InitializeParams,
    InitializeResult,
    ListToolsResult,
    ServerCapabilities,
    ServerInfo,
)
from tailscale_mcp.mcp.protocol import PROTOCOL_VERSION, validate_initialize
from tailscale_mcp.tools.errors import ToolExecutionError, ToolNotFoundError
from tailscale_mcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class MCPServer:
    """Protocol-level handlers bound to a :class:`ToolRegistry`.

    ``on_shutdown`` is called when a client sends ``shutdown``; it must not
    block.  The transport decides whether to stop serving.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        name: str,
        version: str,
        on_shutdown: Callable[[], None] | None = None,
    ) -> None:
        self.registry = registry
        self.info = ServerInfo(name=name, version=version)
        self._on_shutdown = on_shutdown

    def initialize(self, params: InitializeParams) -> InitializeResult:
        validate_initialize(params)
        logger.info(
            "MCP server initialized for client %s %s",
            params.client_info.name,
            params.client_info.version,
        )
        return InitializeResult(
            protocol_version=PROTOCOL_VERSION,
            capabilities=ServerCapabilities(),
            server_info=self.info,
        )

    def list_tools(self) -> ListToolsResult:
        return ListToolsResult(tools=self.registry.list())

    async def call_tool(
        self,
        params: CallToolParams,
        cancel_event: asyncio.Event | None = None,
    ) -> CallToolResult:
        try:
            text = await self.registry.execute(params.name, params.arguments, cancel_event)
        except ToolNotFoundError as exc:
            raise MCPError.tool_not_found(exc.name) from exc
        except ToolExecutionError as exc:
            raise MCPError.tool_execution_failed(exc.name, exc.detail) from exc
        return CallToolResult.from_text(text)

    def shutdown(self) -> None:
        logger.info("MCP server shutting down")
        if self._on_shutdown is not None:
            self._on_shutdown()
