"""Server configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

DEFAULT_API_BASE_URL = "https://api.tailscale.com"
DEFAULT_TAILNET = "-"
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 8080

# LOG_LEVEL accepts 0-3 (debug..error) or the level name.
_LOG_LEVELS = {
    0: logging.DEBUG,
    1: logging.INFO,
    2: logging.WARNING,
    3: logging.ERROR,
}
_LOG_LEVEL_NAMES = {"debug": 0, "info": 1, "warn": 2, "warning": 2, "error": 3}

_ENV_FIELDS = {
    "TAILSCALE_API_KEY": "tailscale_api_key",
    "TAILSCALE_TAILNET": "tailscale_tailnet",
    "TAILSCALE_API_BASE_URL": "tailscale_api_base_url",
    "TAILSCALE_PATH": "tailscale_path",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
    "MCP_SERVER_LOG_FILE": "log_file",
    "MCP_SERVER_MODE": "server_mode",
    "MCP_SERVER_HOST": "http_host",
    "MCP_SERVER_PORT": "http_port",
}


class ConfigError(Exception):
    """Raised when the environment holds an invalid configuration value."""


class ServerConfig(BaseModel):
    """Runtime settings for the MCP server."""

    tailscale_api_key: SecretStr = Field(default=SecretStr(""), description="Tailscale API access token")
    tailscale_tailnet: str = Field(default=DEFAULT_TAILNET, description="Tailnet name, '-' for the key owner's")
    tailscale_api_base_url: str = DEFAULT_API_BASE_URL
    tailscale_path: str | None = Field(default=None, description="Explicit path to the tailscale binary")
    log_level: int = Field(default=1, ge=0, le=3)
    log_format: Literal["console", "json"] = "console"
    log_file: str | None = None
    server_mode: Literal["stdio", "http"] = "stdio"
    http_host: str = DEFAULT_HTTP_HOST
    http_port: int = Field(default=DEFAULT_HTTP_PORT, ge=1, le=65535)

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _LOG_LEVEL_NAMES:
                return _LOG_LEVEL_NAMES[text]
            return text
        return value

    @field_validator("tailscale_api_base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("tailscale_tailnet")
    @classmethod
    def _default_tailnet(cls, value: str) -> str:
        return value or DEFAULT_TAILNET

    @property
    def logging_level(self) -> int:
        """The stdlib ``logging`` level matching :attr:`log_level`."""
        return _LOG_LEVELS[self.log_level]

    @property
    def has_api_credentials(self) -> bool:
        return bool(self.tailscale_api_key.get_secret_value() and self.tailscale_tailnet)

    def sanitized(self) -> dict[str, Any]:
        """Return the settings as a dict that is safe to log."""
        data = self.model_dump()
        data["tailscale_api_key"] = redact_secret(self.tailscale_api_key.get_secret_value())
        return data


def redact_secret(value: str) -> str:
    """Mask *value*, keeping the first and last four characters of long secrets."""
    if not value:
        return ""
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


def load_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Build a :class:`ServerConfig` from *environ* (defaults to ``os.environ``).

    Empty or whitespace-only variables are treated as unset.

    Raises:
        ConfigError: Listing every invalid field.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for var, field in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        values[field] = raw.strip()

    try:
        return ServerConfig.model_validate(values)
    except ValidationError as exc:
        fields = {field: var for var, field in _ENV_FIELDS.items()}
        problems = [
            f"{fields.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ConfigError("invalid configuration: " + "; ".join(problems)) from exc
