"""Stdio line server and HTTP request server."""

from tailscale_mcp.transport.errors import TransportError
from tailscale_mcp.transport.http import HTTPServer, status_for_error
from tailscale_mcp.transport.stdio import StdioServer

__all__ = ["HTTPServer", "StdioServer", "TransportError", "status_for_error"]
