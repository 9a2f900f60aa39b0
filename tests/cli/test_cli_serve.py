"""Tests for ``tailscale-mcp serve`` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tailscale_mcp.cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith('{"jsonrpc"')]


class TestServeStdio:
    def test_answers_until_eof(self, fake_tailscale: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "error")
        requests = "\n".join(
            [
                json.dumps({"jsonrpc": "2.0", "id": 1, "method": "tools/list"}),
                json.dumps(
                    {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "admin", "arguments": {"action": "version"}}}
                ),
            ]
        )

        runner = CliRunner()
        result = runner.invoke(main, ["serve"], input=requests + "\n")

        assert result.exit_code == 0
        responses = _json_lines(result.output)
        assert [r["id"] for r in responses] == [1, 2]
        assert len(responses[0]["result"]["tools"]) == 5
        assert json.loads(responses[1]["result"]["content"][0]["text"]) == {"version": "1.62.0"}


class TestServeHTTP:
    def test_mode_and_overrides_forwarded(self, fake_tailscale: Path) -> None:
        seen: dict[str, Any] = {}

        async def fake_start_http(self: Any, shutdown: Any, *, host: Any = None, port: Any = None) -> None:
            seen.update(host=host, port=port)

        with patch("tailscale_mcp.app.TailscaleMCPServer.start_http", fake_start_http):
            result = CliRunner().invoke(main, ["serve", "--mode", "http", "--host", "127.0.0.1", "--port", "9123"])

        assert result.exit_code == 0
        assert seen == {"host": "127.0.0.1", "port": 9123}

    def test_mode_from_environment(self, fake_tailscale: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MCP_SERVER_MODE", "http")
        called: list[bool] = []

        async def fake_start_http(self: Any, shutdown: Any, **_: Any) -> None:
            called.append(True)

        with patch("tailscale_mcp.app.TailscaleMCPServer.start_http", fake_start_http):
            result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 0
        assert called == [True]


class TestServeErrors:
    def test_invalid_configuration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MCP_SERVER_PORT", "not-a-port")
        result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert "MCP_SERVER_PORT" in result.output

    def test_missing_binary(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TAILSCALE_PATH", str(tmp_path / "missing"))
        result = CliRunner().invoke(main, ["serve"], input="")

        assert result.exit_code == 1
        assert "Server error" in result.output

    def test_telemetry_unavailable(self, fake_tailscale: Path) -> None:
        with patch(
            "tailscale_mcp.utils.telemetry.configure_telemetry",
            side_effect=ImportError("opentelemetry-sdk is required"),
        ):
            result = CliRunner().invoke(main, ["serve", "--telemetry"], input="")

        assert result.exit_code == 1
        assert "Telemetry error" in result.output

    def test_invalid_port_option(self) -> None:
        result = CliRunner().invoke(main, ["serve", "--port", "0"])
        assert result.exit_code == 2

    def test_otlp_endpoint_forwarded(self, fake_tailscale: Path) -> None:
        seen: dict[str, Any] = {}

        def fake_configure(**kwargs: Any) -> None:
            seen.update(kwargs)

        with patch("tailscale_mcp.utils.telemetry.configure_telemetry", fake_configure):
            result = CliRunner().invoke(main, ["serve", "--otlp-endpoint", "http://collector:4317"], input="")

        assert result.exit_code == 0
        assert seen == {"export_to_console": False, "otlp_endpoint": "http://collector:4317"}
