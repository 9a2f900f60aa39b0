"""Protocol-level errors and the fixed JSON-RPC error code table."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tailscale_mcp.mcp.models import JsonRpcError


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    UNSUPPORTED_PROTOCOL_VERSION = -32000
    TOOL_NOT_FOUND = -32001
    TOOL_EXECUTION_ERROR = -32002


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.INVALID_REQUEST: "Invalid Request",
    ErrorCode.METHOD_NOT_FOUND: "Method not found",
    ErrorCode.INVALID_PARAMS: "Invalid params",
    ErrorCode.INTERNAL_ERROR: "Internal error",
    ErrorCode.UNSUPPORTED_PROTOCOL_VERSION: "Unsupported protocol version",
    ErrorCode.TOOL_NOT_FOUND: "Tool not found",
    ErrorCode.TOOL_EXECUTION_ERROR: "Tool execution failed",
}


class MCPError(Exception):
    """A protocol error that is answered with a JSON-RPC error object.

    The message is fixed per :class:`ErrorCode`; only ``data`` varies.
    """

    def __init__(self, code: ErrorCode, data: Any = None) -> None:
        if not isinstance(code, ErrorCode):
            raise TypeError(f"code must be an ErrorCode, got {code!r}")
        self.code = code
        self.message = _MESSAGES[code]
        self.data = data
        super().__init__(self.message if data is None else f"{self.message}: {data}")

    def to_error(self) -> JsonRpcError:
        from tailscale_mcp.mcp.models import JsonRpcError

        return JsonRpcError(code=int(self.code), message=self.message, data=self.data)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def parse_error(cls, detail: str | None = None) -> MCPError:
        return cls(ErrorCode.PARSE_ERROR, detail)

    @classmethod
    def invalid_request(cls, detail: str | None = None) -> MCPError:
        return cls(ErrorCode.INVALID_REQUEST, detail)

    @classmethod
    def method_not_found(cls, method: str) -> MCPError:
        return cls(ErrorCode.METHOD_NOT_FOUND, {"method": method})

    @classmethod
    def invalid_params(cls, detail: Any = None) -> MCPError:
        return cls(ErrorCode.INVALID_PARAMS, detail)

    @classmethod
    def internal_error(cls, detail: str | None = None) -> MCPError:
        return cls(ErrorCode.INTERNAL_ERROR, detail)

    @classmethod
    def unsupported_protocol_version(cls, client_version: str, server_version: str) -> MCPError:
        return cls(
            ErrorCode.UNSUPPORTED_PROTOCOL_VERSION,
            {"clientVersion": client_version, "serverVersion": server_version},
        )

    @classmethod
    def tool_not_found(cls, name: str) -> MCPError:
        return cls(ErrorCode.TOOL_NOT_FOUND, {"tool": name})

    @classmethod
    def tool_execution_failed(cls, name: str, detail: str) -> MCPError:
        return cls(ErrorCode.TOOL_EXECUTION_ERROR, {"tool": name, "error": detail})
