"""Tests for MCPServer handlers."""

from __future__ import annotations

import pytest

from tailscale_mcp.mcp.errors import ErrorCode, MCPError
from tailscale_mcp.mcp.models import CallToolParams, InitializeParams
from tailscale_mcp.mcp.protocol import PROTOCOL_VERSION
from tailscale_mcp.mcp.server import MCPServer
from tailscale_mcp.tools.registry import ToolRegistry


class TestMCPServer:
    def test_initialize(self, mcp_server: MCPServer) -> None:
        result = mcp_server.initialize(
            InitializeParams.model_validate(
                {"protocolVersion": PROTOCOL_VERSION, "clientInfo": {"name": "c", "version": "1"}}
            )
        )
        assert result.protocol_version == PROTOCOL_VERSION
        assert result.server_info.name == "test-server"
        assert result.server_info.version == "9.9.9"

    def test_list_tools(self, mcp_server: MCPServer) -> None:
        assert [t.name for t in mcp_server.list_tools().tools] == ["echo", "boom"]

    def test_list_tools_empty(self) -> None:
        server = MCPServer(ToolRegistry(), name="s", version="1")
        assert server.list_tools().tools == []

    async def test_call_tool(self, mcp_server: MCPServer) -> None:
        result = await mcp_server.call_tool(CallToolParams(name="echo", arguments={"a": "b"}))
        assert result.content[0].type == "text"
        assert result.content[0].text == "echo: {'a': 'b'}"
        assert result.is_error is None

    async def test_call_unknown_tool(self, mcp_server: MCPServer) -> None:
        with pytest.raises(MCPError) as exc_info:
            await mcp_server.call_tool(CallToolParams(name="missing"))
        assert exc_info.value.code == ErrorCode.TOOL_NOT_FOUND
        assert exc_info.value.data == {"tool": "missing"}

    async def test_call_failing_tool(self, mcp_server: MCPServer) -> None:
        with pytest.raises(MCPError) as exc_info:
            await mcp_server.call_tool(CallToolParams(name="boom"))
        assert exc_info.value.code == ErrorCode.TOOL_EXECUTION_ERROR
        assert exc_info.value.data == {"tool": "boom", "error": "kaboom"}

    def test_shutdown_hook(self, registry: ToolRegistry) -> None:
        calls: list[str] = []
        server = MCPServer(registry, name="s", version="1", on_shutdown=lambda: calls.append("down"))
        server.shutdown()
        assert calls == ["down"]

    def test_shutdown_without_hook(self, mcp_server: MCPServer) -> None:
        mcp_server.shutdown()
