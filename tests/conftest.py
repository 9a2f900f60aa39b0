"""Shared fixtures: a fake ``tailscale`` binary and simple stub tools."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

from tailscale_mcp.mcp.dispatcher import Dispatcher
from tailscale_mcp.mcp.server import MCPServer
from tailscale_mcp.tailscale.cli import TailscaleCLI
from tailscale_mcp.tools.base import ToolContext
from tailscale_mcp.tools.registry import ToolRegistry

STATUS_JSON = (
    '{"Version":"1.62.0","BackendState":"Running","TailscaleIPs":["100.64.0.1"],'
    '"Self":{"ID":"n1","HostName":"self-host","DNSName":"self-host.tail.ts.net.",'
    '"OS":"linux","TailscaleIPs":["100.64.0.1"],"Online":true},'
    '"Peer":{"nodekey:abc":{"ID":"n2","HostName":"peer-one","DNSName":"peer-one.tail.ts.net.",'
    '"OS":"macOS","TailscaleIPs":["100.64.0.2"],"Online":true,"PrimaryRoutes":["10.0.0.0/24"]}},'
    '"MagicDNSSuffix":"tail.ts.net"}'
)

# Behaviour is driven by FAKE_* environment variables so each test can
# steer a single script.
FAKE_SCRIPT = f"""#!/bin/sh
if [ -n "$FAKE_PIDFILE" ]; then echo $$ > "$FAKE_PIDFILE"; fi
if [ -n "$FAKE_ARGS_FILE" ]; then printf '%s\\n' "$@" > "$FAKE_ARGS_FILE"; fi
if [ -n "$FAKE_ENV_FILE" ]; then echo "TS_AUTHKEY=$TS_AUTHKEY" > "$FAKE_ENV_FILE"; fi
if [ -n "$FAKE_ORPHAN" ]; then sleep 30 & echo $! > "$FAKE_ORPHAN"; fi
if [ -n "$FAKE_SLEEP" ]; then exec sleep "$FAKE_SLEEP"; fi
if [ -n "$FAKE_BYTES" ]; then exec head -c "$FAKE_BYTES" "$(dirname "$0")/payload"; fi
if [ -n "$FAKE_STDERR" ]; then echo "$FAKE_STDERR" >&2; fi
if [ -n "$FAKE_EXIT" ]; then exit "$FAKE_EXIT"; fi
case "$1" in
  version) echo "1.62.0" ;;
  ip) echo "100.64.0.1"; echo "fd7a:115c:a1e0::1" ;;
  status) echo '{STATUS_JSON}' ;;
  netcheck) echo "Report: UDP: true" ;;
  ping) echo "pong from $2 via DERP" ;;
  *) echo "ok $*" ;;
esac
exit 0
"""


@pytest.fixture
def fake_tailscale(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write an executable fake ``tailscale`` and point TAILSCALE_PATH at it."""
    if sys.platform == "win32":
        pytest.skip("fake tailscale binary is a POSIX shell script")
    for var in (
        "FAKE_PIDFILE",
        "FAKE_ARGS_FILE",
        "FAKE_ENV_FILE",
        "FAKE_ORPHAN",
        "FAKE_SLEEP",
        "FAKE_BYTES",
        "FAKE_STDERR",
        "FAKE_EXIT",
    ):
        monkeypatch.delenv(var, raising=False)
    path = tmp_path / "tailscale"
    path.write_text(FAKE_SCRIPT)
    path.chmod(0o755)
    (tmp_path / "payload").write_text("x" * 200_000)
    monkeypatch.setenv("TAILSCALE_PATH", str(path))
    return path


@pytest.fixture
def cli(fake_tailscale: Path) -> TailscaleCLI:
    return TailscaleCLI(str(fake_tailscale), timeout=5.0)


class StubTool:
    """Minimal object satisfying the tool contract without BaseTool."""

    def __init__(
        self,
        name: str,
        *,
        description: str = "",
        reply: str = "",
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.description = description
        self.input_schema: dict[str, Any] = {"type": "object", "properties": {}}
        self._reply = reply
        self._error = error
        self.calls: list[tuple[ToolContext, dict[str, Any]]] = []

    async def execute(self, ctx: ToolContext, arguments: dict[str, Any]) -> str:
        self.calls.append((ctx, arguments))
        if self._error is not None:
            raise self._error
        return self._reply or f"echo: {arguments}"


@pytest.fixture
def make_tool() -> type[StubTool]:
    return StubTool


@pytest.fixture
def registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(StubTool("echo", description="Echo the arguments"))
    reg.register(StubTool("boom", description="Always fails", error=RuntimeError("kaboom")))
    return reg


@pytest.fixture
def mcp_server(registry: ToolRegistry) -> MCPServer:
    return MCPServer(registry, name="test-server", version="9.9.9")


@pytest.fixture
def dispatcher(mcp_server: MCPServer) -> Dispatcher:
    return Dispatcher(mcp_server)
