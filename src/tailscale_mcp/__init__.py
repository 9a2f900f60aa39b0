"""Tailscale MCP server exposing the Tailscale CLI and REST API as MCP tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from tailscale_mcp.app import TailscaleMCPServer as TailscaleMCPServer
    from tailscale_mcp.config import ServerConfig as ServerConfig
    from tailscale_mcp.config import load_config as load_config

_EXPORTS = {
    "TailscaleMCPServer": "tailscale_mcp.app",
    "ServerConfig": "tailscale_mcp.config",
    "load_config": "tailscale_mcp.config",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'tailscale_mcp' has no attribute {name!r}")
