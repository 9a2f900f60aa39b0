"""``tailscale-mcp version`` — print version information."""

from __future__ import annotations

import json

import click

from tailscale_mcp import __version__
from tailscale_mcp.cli_commands._output import console


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
def version(as_json: bool) -> None:
    """Show the server and protocol versions."""
    from tailscale_mcp.app import SERVER_NAME
    from tailscale_mcp.mcp.protocol import PROTOCOL_VERSION

    info = {"name": SERVER_NAME, "version": __version__, "protocolVersion": PROTOCOL_VERSION}
    if as_json:
        console.print_json(json.dumps(info))
        return

    console.print(f"[bold]{SERVER_NAME}[/bold] {__version__}")
    console.print(f"  MCP protocol: {PROTOCOL_VERSION}")
