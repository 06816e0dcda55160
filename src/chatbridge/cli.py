"""chatbridge CLI entrypoint."""

from __future__ import annotations

import click

from chatbridge import __version__


@click.group()
@click.version_option(version=__version__, prog_name="chatbridge")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """chatbridge — inspect turn-structured <-> flat chat translations."""
    from chatbridge.cli_commands._output import configure_logging

    configure_logging(verbose)


# Register subcommands
from chatbridge.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
