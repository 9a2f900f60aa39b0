"""Tests for ``tailscale-mcp version`` and ``--version``."""

from __future__ import annotations

import json

from click.testing import CliRunner

from tailscale_mcp import __version__
from tailscale_mcp.cli import main


class TestVersion:
    def test_plain(self) -> None:
        result = CliRunner().invoke(main, ["version"])

        assert result.exit_code == 0
        assert f"tailscale-mcp-server {__version__}" in result.output
        assert "MCP protocol: 2024-11-05" in result.output

    def test_json(self) -> None:
        result = CliRunner().invoke(main, ["version", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "name": "tailscale-mcp-server",
            "version": __version__,
            "protocolVersion": "2024-11-05",
        }

    def test_version_option(self) -> None:
        result = CliRunner().invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
