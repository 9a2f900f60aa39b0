"""MCP method set, protocol version and handshake validation."""

from __future__ import annotations

from enum import Enum

from tailscale_mcp.mcp.errors import MCPError
from tailscale_mcp.mcp.models import InitializeParams

PROTOCOL_VERSION = "2024-11-05"


class Method(str, Enum):
    INITIALIZE = "initialize"
    LIST_TOOLS = "tools/list"
    CALL_TOOL = "tools/call"
    SHUTDOWN = "shutdown"

    @classmethod
    def parse(cls, name: str) -> Method:
        """Return the member for *name* or raise method-not-found."""
        try:
            return cls(name)
        except ValueError:
            raise MCPError.method_not_found(name) from None


def is_compatible_protocol_version(version: str) -> bool:
    return version == PROTOCOL_VERSION


def validate_initialize(params: InitializeParams) -> None:
    """Check the client's handshake; raises :class:`MCPError` on the first problem."""
    if not params.protocol_version:
        raise MCPError.invalid_params("protocolVersion is required")
    if not is_compatible_protocol_version(params.protocol_version):
        raise MCPError.unsupported_protocol_version(params.protocol_version, PROTOCOL_VERSION)
    if not params.client_info.name:
        raise MCPError.invalid_params("clientInfo.name is required")
    if not params.client_info.version:
        raise MCPError.invalid_params("clientInfo.version is required")
