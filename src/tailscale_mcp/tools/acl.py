"""Read access to the tailnet policy file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from tailscale_mcp.tools.base import BaseTool, ToolContext, ToolInput, render_json
from tailscale_mcp.tools.errors import ToolError


class ACLInput(ToolInput):
    action: Literal["get", "set", "validate", "test"] = Field(description="ACL action to perform")
    policy: str = Field(default="", description="ACL policy JSON for set operations")
    source: str = Field(default="", description="Source IP or user for ACL testing")
    destination: str = Field(default="", description="Destination IP or service for ACL testing")
    port: int | None = Field(default=None, ge=1, le=65535, description="Port number for ACL testing")


class ACLTool(BaseTool):
    """Only ``get`` is backed by the API; the mutating actions report as unavailable."""

    name = "acl"
    description = "Access Control List management including viewing, updating, and validating ACL policies"
    input_model = ACLInput

    async def run(self, ctx: ToolContext, params: ACLInput) -> str:
        if params.action == "get":
            api = self.api_client(ctx)
            if api is None:
                raise ToolError("ACL retrieval not available - requires API access")
            resp = await api.get_acl()
            if not resp.success:
                raise ToolError(f"failed to get ACL: {resp.error}")
            return render_json(resp.data)

        if params.action in ("set", "validate"):
            if not params.policy:
                raise ToolError(f"policy is required for {params.action} action")
            noun = "modification" if params.action == "set" else "validation"
            raise ToolError(f"ACL {noun} not available")

        if not params.source or not params.destination:
            raise ToolError("source and destination are required for test action")
        raise ToolError("ACL testing not available")
