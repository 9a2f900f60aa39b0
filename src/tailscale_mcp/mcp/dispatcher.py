"""Dispatcher — answers one raw JSON-RPC message.

Both transports feed raw messages through :meth:`Dispatcher.dispatch`.  The
dispatcher never raises for protocol or tool failures: every outcome is
either a :class:`JsonRpcResponse` or ``None`` for notifications.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from tailscale_mcp.mcp.errors import ErrorCode, MCPError
from tailscale_mcp.mcp.models import (
    JSONRPC_VERSION,
    CallToolParams,
    InitializeParams,
    JsonRpcRequest,
    JsonRpcResponse,
    dump_result,
)
from tailscale_mcp.mcp.protocol import Method
from tailscale_mcp.mcp.server import MCPServer
from tailscale_mcp.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_METHOD,
    ATTR_REQUEST_ID,
    get_tracer,
)
from tailscale_mcp.utils.validation import validation_messages

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

M = TypeVar("M", bound=BaseModel)


class Dispatcher:
    """Routes decoded requests to an :class:`MCPServer`.

    Usage::

        dispatcher = Dispatcher(MCPServer(registry, name="tailscale-mcp", version="0.1.0"))
        response = await dispatcher.dispatch('{"jsonrpc":"2.0","id":1,"method":"tools/list"}')
        if response is not None:
            print(json.dumps(response.to_wire()))
    """

    def __init__(self, server: MCPServer) -> None:
        self.server = server

    async def dispatch(
        self,
        raw: str | bytes,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> JsonRpcResponse | None:
        """Handle one raw message; returns ``None`` for notifications."""
        try:
            message = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            logger.warning("Failed to parse message: %s", exc)
            return _error_response(None, MCPError.parse_error(str(exc)))

        if not isinstance(message, dict):
            return _error_response(None, MCPError.invalid_request("message must be a JSON object"))

        return await self.handle(message, cancel_event=cancel_event)

    async def handle(
        self,
        message: dict[str, Any],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> JsonRpcResponse | None:
        """Handle an already decoded envelope."""
        notification = "id" not in message

        try:
            request = decode_request(message)
        except MCPError as exc:
            if notification:
                logger.debug("Dropping invalid notification: %s", exc)
                return None
            return _error_response(_safe_id(message.get("id")), exc)

        with _tracer.start_as_current_span("mcp.dispatch") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            if request.id is not None:
                span.set_attribute(ATTR_REQUEST_ID, str(request.id))

            logger.debug("Dispatching %s (id=%r)", request.method, request.id)
            try:
                result = await self._route(request, cancel_event)
            except MCPError as exc:
                span.set_attribute(ATTR_ERROR_CODE, int(exc.code))
                log = logger.warning if exc.code != ErrorCode.INTERNAL_ERROR else logger.error
                log("%s failed: %s", request.method, exc)
                response = _error_response(request.id, exc)
            except Exception as exc:
                logger.exception("Unexpected error handling %s", request.method)
                span.set_attribute(ATTR_ERROR_CODE, int(ErrorCode.INTERNAL_ERROR))
                response = _error_response(request.id, MCPError.internal_error(str(exc)))
            else:
                response = JsonRpcResponse(id=request.id, result=result)

        if notification:
            return None
        return response

    async def _route(
        self,
        request: JsonRpcRequest,
        cancel_event: asyncio.Event | None,
    ) -> dict[str, Any]:
        method = Method.parse(request.method)

        if method is Method.INITIALIZE:
            if request.params is None:
                raise MCPError.invalid_params("missing params")
            params = _parse_params(InitializeParams, request.params)
            return dump_result(self.server.initialize(params))

        if method is Method.LIST_TOOLS:
            return dump_result(self.server.list_tools())

        if method is Method.CALL_TOOL:
            if request.params is None:
                raise MCPError.invalid_params("missing params")
            call = _parse_params(CallToolParams, request.params)
            return dump_result(await self.server.call_tool(call, cancel_event))

        self.server.shutdown()
        return {}


def decode_request(message: dict[str, Any]) -> JsonRpcRequest:
    """Validate the envelope fields of *message*.

    Raises:
        MCPError: invalid-request for a bad ``jsonrpc`` tag, ``id`` or
            ``method``; invalid-params when ``params`` is not an object.
    """
    if "jsonrpc" in message and message["jsonrpc"] != JSONRPC_VERSION:
        raise MCPError.invalid_request("jsonrpc must be '2.0'")

    if "id" in message and _safe_id(message["id"]) is None and message["id"] is not None:
        raise MCPError.invalid_request("id must be a string, an integer or null")

    method = message.get("method")
    if not isinstance(method, str) or not method:
        raise MCPError.invalid_request("method must be a non-empty string")

    params = message.get("params")
    if params is not None and not isinstance(params, dict):
        raise MCPError.invalid_params("params must be an object")

    return JsonRpcRequest(method=method, id=message.get("id"), params=params)


def _safe_id(value: Any) -> int | str | None:
    # bool is an int subclass but never a valid id.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        return value
    return None


def _parse_params(model: type[M], params: dict[str, Any]) -> M:
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        raise MCPError.invalid_params(validation_messages(exc)) from None


def _error_response(request_id: int | str | None, error: MCPError) -> JsonRpcResponse:
    return JsonRpcResponse(id=request_id, error=error.to_error())
