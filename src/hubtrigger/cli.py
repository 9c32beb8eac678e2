# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Main CLI entry point for hubtrigger.

Runs trigger handlers against event and host snapshot files, so handlers can
be exercised without a live hub.
"""

import logging

import typer

from hubtrigger import __version__


app = typer.Typer(
    name="hubtrigger",
    help="Run asset hub trigger handlers against local snapshots",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show version information."""
    typer.echo(f"hubtrigger version {__version__}")


# Static commands (config, trigger)
from hubtrigger.commands import config, trigger

app.add_typer(config.app, name="config")
app.add_typer(trigger.app, name="trigger")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
