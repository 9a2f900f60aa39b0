"""Tool contract shared by the registry and every built-in tool.

A tool is anything with a ``name``, a ``description``, an ``input_schema``
and an async ``execute(ctx, arguments)`` returning text.  Most tools derive
from :class:`BaseTool`, which validates the raw arguments against a
pydantic model before calling :meth:`BaseTool.run`.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tailscale_mcp.tools.errors import ToolError, ToolInputError
from tailscale_mcp.utils.validation import validation_messages

if TYPE_CHECKING:
    from tailscale_mcp.tailscale.api import APIClient
    from tailscale_mcp.tailscale.cli import TailscaleCLI
    from tailscale_mcp.tools.registry import ToolRegistry


class ToolDescriptor(BaseModel):
    """Discovery metadata for a registered tool."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")


@dataclass(frozen=True)
class ToolContext:
    """Per-call execution context handed to :meth:`Tool.execute`."""

    registry: ToolRegistry | None = None
    cli: TailscaleCLI | None = None
    api: APIClient | None = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


@runtime_checkable
class Tool(Protocol):
    """The minimal interface every tool satisfies."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, ctx: ToolContext, arguments: dict[str, Any]) -> str:
        """Run the tool and return its textual output."""
        ...


class ToolInput(BaseModel):
    """Base for tool input models; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class BaseTool:
    """Convenience base class binding a pydantic input model to a tool.

    Subclasses set ``name``, ``description`` and ``input_model`` and
    implement :meth:`run`.
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    input_model: ClassVar[type[ToolInput]] = ToolInput

    def __init__(self, cli: TailscaleCLI | None = None, api: APIClient | None = None) -> None:
        self._cli = cli
        self._api = api

    def require_cli(self, ctx: ToolContext) -> TailscaleCLI:
        """Return the injected CLI executor, falling back to the context's."""
        cli = self._cli or ctx.cli
        if cli is None:
            raise ToolError("tailscale CLI not available")
        return cli

    def api_client(self, ctx: ToolContext) -> APIClient | None:
        return self._api or ctx.api

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def parse(self, arguments: dict[str, Any]) -> ToolInput:
        try:
            return self.input_model.model_validate(arguments)
        except ValidationError as exc:
            raise ToolInputError("; ".join(validation_messages(exc))) from None

    async def execute(self, ctx: ToolContext, arguments: dict[str, Any]) -> str:
        return await self.run(ctx, self.parse(arguments))

    async def run(self, ctx: ToolContext, params: Any) -> str:
        raise NotImplementedError

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(name=self.name, description=self.description, input_schema=self.input_schema)


def render_json(value: Any) -> str:
    """Serialize a tool result for a text content block."""
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2, by_alias=True, exclude_none=True)
    return json.dumps(value, indent=2, default=str)
