"""Tool contract, registry and built-in tools."""

from tailscale_mcp.tools.base import BaseTool, Tool, ToolContext, ToolDescriptor, ToolInput
from tailscale_mcp.tools.builtin import register_builtin_tools
from tailscale_mcp.tools.errors import ToolError, ToolExecutionError, ToolInputError, ToolNotFoundError
from tailscale_mcp.tools.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "Tool",
    "ToolContext",
    "ToolDescriptor",
    "ToolError",
    "ToolExecutionError",
    "ToolInput",
    "ToolInputError",
    "ToolNotFoundError",
    "ToolRegistry",
    "register_builtin_tools",
]
