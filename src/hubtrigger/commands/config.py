# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Config command for hubtrigger.

Provides basic configuration validation.
"""

import typer

from hubtrigger.config import ConfigValidationError, load_config

app = typer.Typer(help="Manage and validate configuration")


@app.command()
def validate(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """
    Validate configuration file.

    Checks that the config file exists, is valid YAML and has sane values.
    """
    typer.echo("Validating configuration...")
    typer.echo()

    try:
        config = load_config(config_path)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except ConfigValidationError as e:
        typer.echo(f"Validation failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("Configuration structure is valid")
    typer.echo()
    typer.echo(f"Source: {config.source or 'built-in defaults'}")
    typer.echo(f"Required group: {config.required_group}")
    typer.echo(f"Web extensions: {', '.join(config.web_extensions)}")
    typer.echo(f"Web asset type: {config.web_asset_type_identifier}")
    typer.echo(f"Metadata property: {config.metadata_property}")
    typer.echo(f"Claim type: {config.claim_type} (default group: {config.default_group})")
    typer.echo(f"Event log: {config.event_log_path}")
    typer.echo()
    typer.echo("Configuration validation complete!")
