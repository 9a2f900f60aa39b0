"""``tailscale-mcp tools`` — list and run the built-in tools locally."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from tailscale_mcp.cli_commands._output import console, print_tools_table


@click.group()
def tools() -> None:
    """List and invoke tools."""


@tools.command("list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
def list_tools(output_format: str) -> None:
    """List the registered tools."""
    from tailscale_mcp.tools.builtin import register_builtin_tools
    from tailscale_mcp.tools.registry import ToolRegistry

    registry = ToolRegistry()
    register_builtin_tools(registry)
    descriptors = registry.list()

    if output_format == "json":
        payload = [d.model_dump(by_alias=True) for d in descriptors]
        console.print_json(json.dumps(payload))
        return

    if not descriptors:
        console.print("[yellow]No tools registered.[/yellow]")
        return

    print_tools_table(descriptors)


@tools.command("call")
@click.argument("name")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object.")
def call(name: str, args_json: str) -> None:
    """Run the tool NAME once and print its output."""
    from tailscale_mcp.app import TailscaleMCPServer
    from tailscale_mcp.config import load_config

    try:
        arguments: Any = json.loads(args_json)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid --args:[/red] {exc}")
        sys.exit(1)
    if not isinstance(arguments, dict):
        console.print("[red]Invalid --args:[/red] expected a JSON object")
        sys.exit(1)

    async def _call() -> str:
        server = TailscaleMCPServer(load_config())
        try:
            return await server.registry.execute(name, arguments)
        finally:
            await server.shutdown()

    try:
        output = asyncio.run(_call())
    except Exception as exc:
        console.print(f"[red]Tool error:[/red] {exc}")
        sys.exit(1)

    click.echo(output)
