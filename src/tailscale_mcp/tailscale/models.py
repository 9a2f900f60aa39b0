"""Data models for Tailscale CLI output and REST API payloads.

Only the fields the built-in tools read are declared; everything else is
kept via ``extra="allow"`` so payloads pass through opaquely.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ---------------------------------------------------------------------------
# ``tailscale status --json``
# ---------------------------------------------------------------------------


class PeerStatus(BaseModel):
    """A node entry from ``tailscale status --json``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(default="", alias="ID")
    host_name: str = Field(default="", alias="HostName")
    dns_name: str = Field(default="", alias="DNSName")
    os: str = Field(default="", alias="OS")
    tailscale_ips: list[str] = Field(default_factory=list, alias="TailscaleIPs")
    online: bool = Field(default=False, alias="Online")
    exit_node: bool = Field(default=False, alias="ExitNode")
    exit_node_option: bool = Field(default=False, alias="ExitNodeOption")
    primary_routes: list[str] | None = Field(default=None, alias="PrimaryRoutes")


class TailscaleStatus(BaseModel):
    """Parsed ``tailscale status --json`` document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = Field(default="", alias="Version")
    backend_state: str = Field(default="", alias="BackendState")
    tailscale_ips: list[str] = Field(default_factory=list, alias="TailscaleIPs")
    self_node: PeerStatus | None = Field(default=None, alias="Self")
    peer: dict[str, PeerStatus] | None = Field(default=None, alias="Peer")
    magic_dns_suffix: str = Field(default="", alias="MagicDNSSuffix")


class UpOptions(BaseModel):
    """Options accepted by ``tailscale up``."""

    login_server: str = ""
    accept_routes: bool = False
    accept_dns: bool = False
    hostname: str = ""
    advertise_routes: list[str] = Field(default_factory=list)
    auth_key: str = Field(default="", repr=False)
    timeout: float = 0.0


# ---------------------------------------------------------------------------
# REST API
# ---------------------------------------------------------------------------


class Device(BaseModel):
    """A device as returned by ``/api/v2/tailnet/{tailnet}/devices``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    name: str = ""
    hostname: str = ""
    client_version: str = Field(default="", alias="clientVersion")
    os: str = ""
    last_seen: datetime | None = Field(default=None, alias="lastSeen")
    authorized: bool = False
    addresses: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    user: str = ""
    enabled_routes: list[str] = Field(default_factory=list, alias="enabledRoutes")
    advertised_routes: list[str] = Field(default_factory=list, alias="advertisedRoutes")


class DeviceList(BaseModel):
    """Envelope of the device listing endpoint."""

    devices: list[Device] = Field(default_factory=list)


class APIResponse(BaseModel, Generic[T]):
    """Uniform result wrapper for REST API calls."""

    success: bool
    data: T | None = None
    error: str = ""
    status_code: int | None = None

    @classmethod
    def ok(cls, data: Any, status_code: int) -> APIResponse[Any]:
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: int | None = None) -> APIResponse[Any]:
        return cls(success=False, error=error, status_code=status_code)
