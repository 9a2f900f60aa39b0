"""ToolRegistry — name-to-tool map shared by all transports."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any

from tailscale_mcp.tools.base import Tool, ToolContext, ToolDescriptor
from tailscale_mcp.tools.errors import ToolExecutionError, ToolNotFoundError
from tailscale_mcp.utils.locks import ReadWriteLock
from tailscale_mcp.utils.telemetry import ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from tailscale_mcp.tailscale.api import APIClient
    from tailscale_mcp.tailscale.cli import TailscaleCLI

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ToolRegistry:
    """Thread-safe mapping from tool name to :class:`Tool`.

    Lookups take a shared lock and registration an exclusive one.  The lock
    is never held while a tool runs.

    Usage::

        registry = ToolRegistry(cli=cli, api=api)
        registry.register(ListDevicesTool(api))

        descriptors = registry.list()
        text = await registry.execute("list_devices", {})
    """

    def __init__(self, cli: TailscaleCLI | None = None, api: APIClient | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        self._lock = ReadWriteLock()
        self._cli = cli
        self._api = api

    def register(self, tool: Tool) -> None:
        """Add *tool*; a tool with the same name is replaced."""
        if tool is None:
            raise ValueError("tool cannot be None")
        name = tool.name
        if not name:
            raise ValueError("tool name cannot be empty")
        with self._lock.write():
            if name in self._tools:
                logger.warning("Tool %s already registered, overwriting", name)
            self._tools[name] = tool
        logger.debug("Registered tool %s", name)

    def get(self, name: str) -> Tool | None:
        with self._lock.read():
            return self._tools.get(name)

    def list(self) -> list[ToolDescriptor]:
        """Return a snapshot of descriptors for all registered tools."""
        with self._lock.read():
            tools = list(self._tools.values())
        return [
            ToolDescriptor(name=t.name, description=t.description, input_schema=copy.deepcopy(t.input_schema))
            for t in tools
        ]

    def names(self) -> list[str]:
        with self._lock.read():
            return list(self._tools)

    @property
    def count(self) -> int:
        with self._lock.read():
            return len(self._tools)

    def __len__(self) -> int:
        return self.count

    def __contains__(self, name: object) -> bool:
        with self._lock.read():
            return name in self._tools

    async def execute(
        self,
        name: str,
        arguments: dict[str, Any],
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Run the tool called *name* with a fresh :class:`ToolContext`.

        Raises
        ------
        ToolNotFoundError
            If no tool is registered under *name*.
        ToolExecutionError
            Wrapping any exception raised by the tool.
        """
        tool = self.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        ctx = ToolContext(
            registry=self,
            cli=self._cli,
            api=self._api,
            cancel_event=cancel_event or asyncio.Event(),
        )
        logger.debug("Executing tool %s", name)
        with _tracer.start_as_current_span("mcp.tool.execute") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            try:
                return await tool.execute(ctx, arguments)
            except Exception as exc:
                logger.error("Tool %s failed: %s", name, exc)
                raise ToolExecutionError(name, str(exc)) from exc

    def close(self) -> None:
        """Drop every registered tool."""
        with self._lock.write():
            self._tools.clear()
        logger.debug("Tool registry closed")
