"""Tools for listing and managing tailnet devices."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field

from tailscale_mcp.tailscale.models import Device
from tailscale_mcp.tools.base import BaseTool, ToolContext, ToolInput, render_json
from tailscale_mcp.tools.errors import ToolError

logger = logging.getLogger(__name__)


class ListDevicesInput(ToolInput):
    include_routes: bool = Field(default=False, description="Include enabled and advertised routes")


class ListDevicesTool(BaseTool):
    """Render the tailnet's devices, as reported by the REST API, as text."""

    name = "list_devices"
    description = "Lists all devices in the tailnet, with an option to include route information."
    input_model = ListDevicesInput

    async def run(self, ctx: ToolContext, params: ListDevicesInput) -> str:
        api = self.api_client(ctx)
        if api is None:
            raise ToolError("device listing not available - requires API access")
        resp = await api.list_devices()
        if not resp.success or resp.data is None:
            raise ToolError(f"failed to list devices: {resp.error}")
        return "".join(format_device(d, include_routes=params.include_routes) for d in resp.data.devices)


def format_device(device: Device, *, include_routes: bool = False) -> str:
    auth = "authorized" if device.authorized else "unauthorized"
    last_seen = device.last_seen.strftime("%Y-%m-%d %H:%M:%S") if device.last_seen else "never"
    lines = [
        f"Device: {device.name} ({device.id}) - {auth}",
        f"  OS: {device.os}, Version: {device.client_version}",
        f"  Addresses: {', '.join(device.addresses)}",
        f"  Last Seen: {last_seen}",
    ]
    if include_routes:
        lines.append(f"  Enabled Routes: {', '.join(device.enabled_routes)}")
        lines.append(f"  Advertised Routes: {', '.join(device.advertised_routes)}")
    return "\n".join(lines) + "\n\n"


class DeviceManagementInput(ToolInput):
    action: Literal["list", "status", "enable", "disable"] = Field(description="Action to perform")
    device_id: str = Field(default="", description="Device ID for specific operations")


class DeviceManagementTool(BaseTool):
    name = "device_management"
    description = "Manage Tailscale devices including listing, status, and configuration"
    input_model = DeviceManagementInput

    async def run(self, ctx: ToolContext, params: DeviceManagementInput) -> str:
        if params.action == "list":
            return await self._list(ctx)
        if not params.device_id:
            raise ToolError(f"device_id is required for {params.action} action")
        if params.action == "status":
            return await self._status(ctx, params.device_id)
        return await self._authorize(ctx, params.device_id, params.action == "enable")

    async def _list(self, ctx: ToolContext) -> str:
        api = self.api_client(ctx)
        if api is not None:
            resp = await api.list_devices()
            if resp.success and resp.data is not None:
                return render_json(resp.data)
            logger.warning("API device listing failed, falling back to CLI: %s", resp.error)
        status = await self.require_cli(ctx).status()
        return render_json(status)

    async def _status(self, ctx: ToolContext, device_id: str) -> str:
        api = self.api_client(ctx)
        if api is not None:
            resp = await api.get_device(device_id)
            if resp.success and resp.data is not None:
                return render_json(resp.data)
            logger.warning("API device lookup failed, falling back to CLI: %s", resp.error)

        status = await self.require_cli(ctx).status()
        nodes = list((status.peer or {}).values())
        if status.self_node is not None:
            nodes.append(status.self_node)
        for node in nodes:
            if device_id in (node.id, node.host_name, node.dns_name.rstrip(".")):
                return render_json(node)
        raise ToolError(f"device {device_id} not found")

    async def _authorize(self, ctx: ToolContext, device_id: str, authorized: bool) -> str:
        api = self.api_client(ctx)
        verb = "enable" if authorized else "disable"
        if api is None:
            raise ToolError(f"device {verb} not available - requires API access")
        resp = await api.authorize_device(device_id, authorized)
        if not resp.success:
            raise ToolError(f"failed to {verb} device: {resp.error}")
        return render_json({"success": True, "message": f"Device {device_id} {verb}d"})
