"""tailscale-mcp CLI entrypoint."""

from __future__ import annotations

import click

from tailscale_mcp import __version__


@click.group()
@click.version_option(version=__version__, prog_name="tailscale-mcp")
def main() -> None:
    """tailscale-mcp: expose Tailscale as Model Context Protocol tools."""


# Register subcommands
from tailscale_mcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
