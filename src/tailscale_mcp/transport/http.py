"""HTTPServer — JSON-RPC over HTTP POST, served by Starlette and uvicorn.

Routes:

* ``POST /mcp``    one JSON-RPC message per request
* ``GET /health``  liveness, never touches the dispatcher
* ``GET /info``    static server identity and capabilities
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import socket
import time
from typing import TYPE_CHECKING, Any

import uvicorn
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from tailscale_mcp.mcp.dispatcher import Dispatcher
from tailscale_mcp.mcp.errors import ErrorCode
from tailscale_mcp.mcp.models import ServerCapabilities, ServerInfo, ToolsCapability, dump_result
from tailscale_mcp.mcp.protocol import PROTOCOL_VERSION
from tailscale_mcp.transport.errors import TransportError

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_GRACE = 30.0

_CLIENT_ERRORS = frozenset({ErrorCode.PARSE_ERROR, ErrorCode.INVALID_REQUEST, ErrorCode.INVALID_PARAMS})
_NOT_FOUND_ERRORS = frozenset({ErrorCode.METHOD_NOT_FOUND, ErrorCode.TOOL_NOT_FOUND})


def status_for_error(code: int) -> int:
    """Map a JSON-RPC error code to an HTTP status code."""
    if code in _CLIENT_ERRORS:
        return 400
    if code in _NOT_FOUND_ERRORS:
        return 404
    return 500


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, duration and client of every request."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        client = f"{request.client.host}:{request.client.port}" if request.client else "-"
        logger.info(
            "HTTP %s %s -> %d (%.1f ms) from %s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            client,
        )
        return response


class HTTPServer:
    """Expose a :class:`Dispatcher` over HTTP.

    Example::

        server = HTTPServer(dispatcher, host="127.0.0.1", port=8080, server_info=info)
        await server.serve(shutdown_event)
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        server_info: ServerInfo,
        host: str = "0.0.0.0",
        port: int = 8080,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE,
    ) -> None:
        self._dispatcher = dispatcher
        self._info = server_info
        self.host = host
        self.port = port
        self._shutdown_grace = shutdown_grace
        self._shutdown = asyncio.Event()
        self.app = self._create_app()

    def _create_app(self) -> Starlette:
        app = Starlette(
            routes=[
                Route("/mcp", endpoint=self._handle_mcp, methods=["POST", "OPTIONS"]),
                Route("/health", endpoint=self._health, methods=["GET"]),
                Route("/info", endpoint=self._server_info, methods=["GET"]),
            ],
        )
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
            max_age=86400,
        )
        app.add_middleware(RequestLoggingMiddleware)
        return app

    async def _handle_mcp(self, request: Request) -> Response:
        # Real preflights never get here; CORSMiddleware answers them.
        if request.method == "OPTIONS":
            return Response(status_code=200)

        body = await request.body()
        response = await self._dispatcher.dispatch(body, cancel_event=self._shutdown)
        if response is None:
            return Response(status_code=204)

        status = 200 if response.error is None else status_for_error(response.error.code)
        return Response(
            content=json.dumps(response.to_wire(), default=str),
            status_code=status,
            media_type="application/json",
        )

    async def _health(self, request: Request) -> JSONResponse:
        return JSONResponse({"status": "healthy", "server": self._info.name})

    async def _server_info(self, request: Request) -> JSONResponse:
        capabilities = ServerCapabilities(tools=ToolsCapability(list_changed=False))
        return JSONResponse(
            {
                "name": self._info.name,
                "version": self._info.version,
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": dump_result(capabilities),
            }
        )

    def bind(self) -> socket.socket:
        """Bind the listening socket.

        Raises:
            TransportError: If the address cannot be bound.
        """
        try:
            infos = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
            family, socktype, proto, _, address = infos[0]
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            raise TransportError(f"cannot resolve {self.host}:{self.port}: {exc}") from exc
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(address)
            sock.listen(128)
            sock.setblocking(False)
        except OSError as exc:
            sock.close()
            logger.error("Failed to bind %s:%d: %s", self.host, self.port, exc)
            raise TransportError(f"cannot bind {self.host}:{self.port}: {exc}") from exc
        return sock

    async def serve(self, shutdown: asyncio.Event | None = None, *, sock: socket.socket | None = None) -> None:
        """Serve until *shutdown* is set, then drain in-flight requests.

        Raises:
            TransportError: On bind failure.
        """
        shutdown = shutdown or asyncio.Event()
        sock = sock or self.bind()
        self.port = sock.getsockname()[1]

        config = uvicorn.Config(
            self.app,
            log_config=None,
            timeout_graceful_shutdown=int(self._shutdown_grace),
            lifespan="off",
        )
        server = _Server(config)

        async def _watch() -> None:
            await shutdown.wait()
            logger.info("HTTP server shutting down")
            self._shutdown.set()
            server.should_exit = True

        watcher = asyncio.ensure_future(_watch())
        logger.info("Starting HTTP MCP server on %s:%d", self.host, self.port)
        try:
            await server.serve(sockets=[sock])
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
            sock.close()
        logger.info("HTTP server stopped")


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to the caller."""

    @contextlib.contextmanager
    def capture_signals(self) -> Any:
        yield

    def install_signal_handlers(self) -> None:
        pass
