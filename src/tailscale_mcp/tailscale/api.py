"""APIClient — async client for the Tailscale REST API (``/api/v2``)."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from tailscale_mcp.config import ServerConfig
from tailscale_mcp.tailscale.errors import APIError
from tailscale_mcp.tailscale.models import APIResponse, Device, DeviceList

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class APIClient:
    """Thin wrapper over :class:`httpx.AsyncClient` with bearer-token auth.

    Every public method returns an :class:`APIResponse` rather than raising,
    so tools can fall back to the CLI on failure.

    Usage::

        async with APIClient(config) as api:
            resp = await api.list_devices()
            if resp.success:
                ...
    """

    def __init__(self, config: ServerConfig, client: httpx.AsyncClient | None = None) -> None:
        api_key = config.tailscale_api_key.get_secret_value()
        if not api_key:
            logger.warning(
                "No Tailscale API key provided. API operations will fail until TAILSCALE_API_KEY is set."
            )
        self._tailnet = config.tailscale_tailnet
        self._base_url = f"{config.tailscale_api_base_url}/api/v2"
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        if client is None:
            client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        client.base_url = httpx.URL(self._base_url)
        client.headers.update(headers)
        self._client = client

    async def __aenter__(self) -> APIClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    @property
    def tailnet(self) -> str:
        return self._tailnet

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, endpoint: str, body: Any = None) -> httpx.Response:
        logger.debug("API request: %s %s%s", method, self._base_url, endpoint)
        try:
            response = await self._client.request(method, endpoint, json=body)
        except httpx.HTTPError as exc:
            logger.error("API request error: %s %s: %s", method, endpoint, exc)
            raise APIError(f"request failed: {exc}") from exc
        logger.debug("API response: %d %s", response.status_code, endpoint)

        if response.status_code >= 400:
            raise APIError(_error_message(response), response.status_code)
        return response

    async def _call(self, method: str, endpoint: str, body: Any = None) -> tuple[Any, int]:
        response = await self._request(method, endpoint, body)
        if not response.content:
            return None, response.status_code
        try:
            return response.json(), response.status_code
        except ValueError as exc:
            raise APIError(f"invalid JSON in response: {exc}", response.status_code) from exc

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    async def list_devices(self) -> APIResponse[DeviceList]:
        """List all devices in the tailnet."""
        try:
            data, status = await self._call("GET", f"/tailnet/{self._tailnet}/devices")
            return APIResponse[DeviceList].ok(DeviceList.model_validate(data or {}), status)
        except APIError as exc:
            return APIResponse[DeviceList].fail(exc.message, exc.status_code)
        except ValidationError as exc:
            return APIResponse[DeviceList].fail(f"failed to parse device list: {exc.error_count()} errors")

    async def get_device(self, device_id: str) -> APIResponse[Device]:
        try:
            data, status = await self._call("GET", f"/device/{device_id}")
            return APIResponse[Device].ok(Device.model_validate(data or {}), status)
        except APIError as exc:
            return APIResponse[Device].fail(exc.message, exc.status_code)
        except ValidationError as exc:
            return APIResponse[Device].fail(f"failed to parse device: {exc.error_count()} errors")

    async def authorize_device(self, device_id: str, authorized: bool) -> APIResponse[Any]:
        """Set the authorization flag of a device."""
        try:
            data, status = await self._call(
                "POST", f"/device/{device_id}/authorized", {"authorized": authorized}
            )
            return APIResponse[Any].ok(data, status)
        except APIError as exc:
            return APIResponse[Any].fail(exc.message, exc.status_code)

    # ------------------------------------------------------------------
    # Policy / DNS
    # ------------------------------------------------------------------

    async def get_acl(self) -> APIResponse[Any]:
        """Fetch the tailnet policy file; the document is passed through as-is."""
        try:
            data, status = await self._call("GET", f"/tailnet/{self._tailnet}/acl")
            return APIResponse[Any].ok(data, status)
        except APIError as exc:
            return APIResponse[Any].fail(exc.message, exc.status_code)

    async def get_dns_nameservers(self) -> APIResponse[Any]:
        try:
            data, status = await self._call("GET", f"/tailnet/{self._tailnet}/dns/nameservers")
            return APIResponse[Any].ok(data, status)
        except APIError as exc:
            return APIResponse[Any].fail(exc.message, exc.status_code)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str):
                return value
    return f"HTTP {response.status_code}"
