"""Tests for ``tailscale-mcp tools`` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import patch

from click.testing import CliRunner

from tailscale_mcp.cli import main

if TYPE_CHECKING:
    from pathlib import Path


class TestToolsList:
    def test_table(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list"])

        assert result.exit_code == 0
        assert "Registered Tools" in result.output
        assert "acl" in result.output

    def test_json(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list", "--format", "json"])

        assert result.exit_code == 0
        tools = json.loads(result.output)
        assert [t["name"] for t in tools] == ["list_devices", "device_management", "network", "admin", "acl"]
        assert tools[2]["inputSchema"]["required"] == ["action"]

    def test_empty_registry(self) -> None:
        with patch("tailscale_mcp.tools.builtin.BUILTIN_TOOLS", ()):
            runner = CliRunner()
            result = runner.invoke(main, ["tools", "list"])

        assert result.exit_code == 0
        assert "No tools registered" in result.output


class TestToolsCall:
    def test_call_against_fake_binary(self, fake_tailscale: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "call", "network", "--args", '{"action": "ip"}'])

        assert result.exit_code == 0
        assert "100.64.0.1" in result.output

    def test_invalid_json(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "call", "network", "--args", "{bad"])

        assert result.exit_code == 1
        assert "Invalid --args" in result.output

    def test_args_must_be_object(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "call", "network", "--args", "[1, 2]"])

        assert result.exit_code == 1
        assert "expected a JSON object" in result.output

    def test_unknown_tool(self, fake_tailscale: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "call", "teleport"])

        assert result.exit_code == 1
        assert "Tool error" in result.output
        assert "teleport" in result.output
