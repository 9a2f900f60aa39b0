"""Registration of the built-in Tailscale tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tailscale_mcp.tools.acl import ACLTool
from tailscale_mcp.tools.admin import AdminTool
from tailscale_mcp.tools.device import DeviceManagementTool, ListDevicesTool
from tailscale_mcp.tools.network import NetworkTool

if TYPE_CHECKING:
    from tailscale_mcp.tailscale.api import APIClient
    from tailscale_mcp.tailscale.cli import TailscaleCLI
    from tailscale_mcp.tools.registry import ToolRegistry

BUILTIN_TOOLS = (ListDevicesTool, DeviceManagementTool, NetworkTool, AdminTool, ACLTool)


def register_builtin_tools(
    registry: ToolRegistry,
    cli: TailscaleCLI | None = None,
    api: APIClient | None = None,
) -> None:
    """Instantiate every built-in tool with *cli* / *api* and register it."""
    for tool_cls in BUILTIN_TOOLS:
        registry.register(tool_cls(cli=cli, api=api))
