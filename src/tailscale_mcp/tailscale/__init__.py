"""Tailscale integration: guarded CLI execution and the REST API client."""

from tailscale_mcp.tailscale.api import APIClient
from tailscale_mcp.tailscale.cli import TailscaleCLI, resolve_tailscale_binary
from tailscale_mcp.tailscale.errors import (
    APIError,
    BinaryNotFoundError,
    CommandExecutionError,
    CommandTimeoutError,
    CommandValidationError,
    OutputLimitExceededError,
    TailscaleError,
)

__all__ = [
    "APIClient",
    "APIError",
    "BinaryNotFoundError",
    "CommandExecutionError",
    "CommandTimeoutError",
    "CommandValidationError",
    "OutputLimitExceededError",
    "TailscaleCLI",
    "TailscaleError",
    "resolve_tailscale_binary",
]
