"""Node lifecycle operations through the CLI."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from tailscale_mcp.tailscale.models import UpOptions
from tailscale_mcp.tools.base import BaseTool, ToolContext, ToolInput, render_json
from tailscale_mcp.tools.errors import ToolError


class AdminInput(ToolInput):
    action: Literal["status", "logout", "login", "up", "down", "version"] = Field(
        description="Administrative action to perform"
    )
    auth_key: str = Field(default="", description="Authentication key for login operations", repr=False)
    hostname: str = Field(default="", description="Hostname for the device")


class AdminTool(BaseTool):
    name = "admin"
    description = "Administrative operations including user management, settings, and system configuration"
    input_model = AdminInput

    async def run(self, ctx: ToolContext, params: AdminInput) -> str:
        cli = self.require_cli(ctx)

        action = params.action
        if action == "status":
            return render_json(await cli.status())
        if action == "logout":
            await cli.logout()
            return _ok("Successfully logged out")
        if action == "login":
            if not params.auth_key:
                raise ToolError("auth_key is required for login action")
            await cli.up(UpOptions(auth_key=params.auth_key))
            return _ok("Successfully logged in")
        if action == "up":
            await cli.up(UpOptions(hostname=params.hostname))
            return _ok("Tailscale is now up")
        if action == "down":
            await cli.down()
            return _ok("Tailscale is now down")
        return render_json({"version": await cli.version()})


def _ok(message: str) -> str:
    return render_json({"success": True, "message": message})
