"""StdioServer — newline-delimited JSON-RPC over stdin/stdout.

One message per line in, one response per line out.  Lines are dispatched
strictly in order, so responses come back in request order.  stdout is
reserved for protocol traffic; all logging goes to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import threading
from typing import BinaryIO

from tailscale_mcp.mcp.dispatcher import Dispatcher
from tailscale_mcp.mcp.models import JsonRpcResponse
from tailscale_mcp.transport.errors import TransportError

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 10 * 1024 * 1024
DEFAULT_SHUTDOWN_GRACE = 30.0
_FEED_CHUNK = 64 * 1024


class StdioServer:
    """Serve a :class:`Dispatcher` over a line-oriented byte stream.

    *reader* defaults to the process's stdin and *writer* to
    ``sys.stdout.buffer``.  Both are injectable for tests.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        reader: asyncio.StreamReader | None = None,
        writer: BinaryIO | None = None,
        max_line_bytes: int = MAX_LINE_BYTES,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE,
    ) -> None:
        self._dispatcher = dispatcher
        self._reader = reader
        self._writer = writer if writer is not None else sys.stdout.buffer
        self._max_line_bytes = max_line_bytes
        self._shutdown_grace = shutdown_grace
        self._write_lock = asyncio.Lock()

    async def serve(self, shutdown: asyncio.Event | None = None) -> None:
        """Read and answer messages until EOF or *shutdown* is set.

        Raises:
            TransportError: If the input stream fails or a line exceeds the
                size limit.
        """
        shutdown = shutdown or asyncio.Event()
        reader = self._reader or await open_stdin_reader(self._max_line_bytes)
        logger.info("Starting stdio MCP server")

        stop = asyncio.ensure_future(shutdown.wait())
        inflight: asyncio.Future[JsonRpcResponse | None] | None = None
        try:
            while True:
                read = asyncio.ensure_future(reader.readline())
                done, _ = await asyncio.wait({read, stop}, return_when=asyncio.FIRST_COMPLETED)
                if stop in done:
                    read.cancel()
                    logger.info("Stdio server shutting down")
                    return

                try:
                    line = read.result()
                except ValueError as exc:
                    logger.error("Input line exceeds %d bytes", self._max_line_bytes)
                    raise TransportError(f"line too long: {exc}") from exc
                except OSError as exc:
                    logger.error("Error reading from stdin: %s", exc)
                    raise TransportError(f"stdin read error: {exc}") from exc

                if not line:
                    logger.info("Stdin closed, shutting down")
                    return

                line = line.strip()
                if not line:
                    continue

                logger.debug("Received message: %d bytes", len(line))
                inflight = asyncio.ensure_future(self._dispatcher.dispatch(line, cancel_event=shutdown))
                done, _ = await asyncio.wait({inflight, stop}, return_when=asyncio.FIRST_COMPLETED)
                if inflight not in done and not await self._drain(inflight):
                    return

                response = inflight.result()
                inflight = None
                if response is not None:
                    await self.write(response)
        finally:
            stop.cancel()
            if inflight is not None and not inflight.done():
                inflight.cancel()

    async def _drain(self, inflight: asyncio.Future[JsonRpcResponse | None]) -> bool:
        """Give the in-flight request the shutdown grace period.

        Returns ``False`` when it had to be abandoned.
        """
        logger.info("Shutdown requested, waiting up to %gs for the in-flight request", self._shutdown_grace)
        done, _ = await asyncio.wait({inflight}, timeout=self._shutdown_grace)
        if inflight in done:
            return True
        logger.warning("In-flight request still running after %gs, abandoning it", self._shutdown_grace)
        inflight.cancel()
        return False

    async def write(self, response: JsonRpcResponse) -> None:
        """Emit *response* as a single JSON line.

        The blocking write runs in a worker thread so a stalled stdout pipe
        never blocks the event loop.
        """
        data = json.dumps(response.to_wire(), separators=(",", ":"), default=str).encode() + b"\n"
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_blocking, data)
            except (OSError, ValueError) as exc:
                logger.error("Failed to write to stdout: %s", exc)
                raise TransportError(f"write error: {exc}") from exc

    def _write_blocking(self, data: bytes) -> None:
        self._writer.write(data)
        self._writer.flush()


async def open_stdin_reader(limit: int = MAX_LINE_BYTES) -> asyncio.StreamReader:
    """Wrap the process's stdin in an :class:`asyncio.StreamReader`.

    Pipes and terminals are attached to the event loop directly; anything
    else (a regular file redirected to stdin) is fed from a daemon thread.
    """
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    try:
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    except (ValueError, OSError, NotImplementedError):
        logger.debug("stdin is not a pipe, reading it from a thread")
        thread = threading.Thread(
            target=_feed,
            args=(loop, reader, sys.stdin.buffer),
            name="stdin-reader",
            daemon=True,
        )
        thread.start()
    return reader


def _feed(loop: asyncio.AbstractEventLoop, reader: asyncio.StreamReader, stream: BinaryIO) -> None:
    try:
        while chunk := stream.read1(_FEED_CHUNK):  # type: ignore[attr-defined]
            loop.call_soon_threadsafe(reader.feed_data, chunk)
    except (OSError, ValueError) as exc:
        loop.call_soon_threadsafe(reader.set_exception, exc)
        return
    loop.call_soon_threadsafe(reader.feed_eof)
