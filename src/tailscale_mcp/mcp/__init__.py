"""MCP protocol handling over JSON-RPC 2.0."""

from tailscale_mcp.mcp.dispatcher import Dispatcher
from tailscale_mcp.mcp.errors import ErrorCode, MCPError
from tailscale_mcp.mcp.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from tailscale_mcp.mcp.protocol import PROTOCOL_VERSION, Method
from tailscale_mcp.mcp.server import MCPServer

__all__ = [
    "PROTOCOL_VERSION",
    "Dispatcher",
    "ErrorCode",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPError",
    "MCPServer",
    "Method",
]
