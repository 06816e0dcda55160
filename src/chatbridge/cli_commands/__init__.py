"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from chatbridge.cli_commands.translate import chunk, request, response, sanitize

    cli.add_command(request)
    cli.add_command(response)
    cli.add_command(chunk)
    cli.add_command(sanitize)
