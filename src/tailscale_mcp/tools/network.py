"""Network diagnostics tool."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from tailscale_mcp.tailscale.cli import MAX_PING_COUNT, MIN_PING_COUNT
from tailscale_mcp.tools.base import BaseTool, ToolContext, ToolInput, render_json
from tailscale_mcp.tools.errors import ToolError


class NetworkInput(ToolInput):
    action: Literal["ping", "routes", "connectivity", "ip"] = Field(description="Network action to perform")
    target: str = Field(default="", description="Target host or IP for network operations")
    count: int = Field(
        default=4,
        ge=MIN_PING_COUNT,
        le=MAX_PING_COUNT,
        description="Number of ping packets to send",
    )


class NetworkTool(BaseTool):
    name = "network"
    description = "Network operations including ping, connectivity tests, and route management"
    input_model = NetworkInput

    async def run(self, ctx: ToolContext, params: NetworkInput) -> str:
        cli = self.require_cli(ctx)

        if params.action == "ping":
            if not params.target:
                raise ToolError("target is required for ping action")
            return await cli.ping(params.target, params.count)

        if params.action == "routes":
            status = await cli.status()
            routes = {
                peer.host_name or key: peer.primary_routes or []
                for key, peer in (status.peer or {}).items()
            }
            return render_json({"routes": routes, "message": "Route information retrieved"})

        if params.action == "connectivity":
            result = await cli.netcheck()
            return render_json(
                {"connected": True, "result": result, "message": "Connectivity test successful"}
            )

        return await cli.ip()
