# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Trigger command for hubtrigger.

Lists trigger definitions and fires them against local snapshot files.
"""

from pathlib import Path
from typing import Optional

import typer
import yaml

from hubtrigger.config import ConfigValidationError, load_config
from hubtrigger.dispatcher import exit_code_for, fire, render_record
from hubtrigger.event_client import EventClient
from hubtrigger.handlers import disable_script
from hubtrigger.host import HostError, InMemoryHost
from hubtrigger.schemas import ContextError, EventContext
from hubtrigger.triggers import TriggerValidationError, get_triggers

app = typer.Typer(help="List and fire trigger handlers")


def _load_triggers_or_exit(triggers_path: Optional[Path]):
    try:
        return get_triggers(triggers_path)
    except TriggerValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("list")
def list_command(
    triggers_path: Optional[Path] = typer.Option(
        None, "--triggers", "-t", help="Trigger definitions YAML (default: built-in)"
    ),
):
    """List trigger definitions.

    Examples:
        hubtrigger trigger list
        hubtrigger trigger list --triggers ./triggers.yaml
    """
    triggers = _load_triggers_or_exit(triggers_path)

    if not triggers:
        typer.echo("No triggers defined.")
        return

    typer.echo("Available triggers:\n")
    for trigger in triggers.values():
        badge = "" if trigger.enabled else " [DISABLED]"
        typer.echo(f"  {trigger.name}{badge}")
        if trigger.description:
            typer.echo(f"    {trigger.description}")
        objectives = ", ".join(o.value for o in trigger.objectives)
        typer.echo(f"    Phase: {trigger.phase.value}  Objectives: {objectives}")
        typer.echo()


@app.command("info")
def info_command(
    name: str = typer.Argument(..., help="Trigger name"),
    triggers_path: Optional[Path] = typer.Option(
        None, "--triggers", "-t", help="Trigger definitions YAML (default: built-in)"
    ),
):
    """Show a trigger definition.

    Examples:
        hubtrigger trigger info web-extension-check
    """
    triggers = _load_triggers_or_exit(triggers_path)
    trigger = triggers.get(name)
    if trigger is None:
        typer.echo(f"Error: unknown trigger '{name}'", err=True)
        raise typer.Exit(1)

    typer.echo(f"Trigger: {trigger.name}")
    typer.echo(f"  Handler: {trigger.handler}")
    typer.echo(f"  Phase: {trigger.phase.value}")
    typer.echo(f"  Objectives: {', '.join(o.value for o in trigger.objectives)}")
    typer.echo(f"  Enabled: {'yes' if trigger.enabled else 'no'}")
    if trigger.description:
        typer.echo(f"  Description: {trigger.description}")


@app.command("run")
def run_command(
    name: str = typer.Argument(..., help="Trigger name"),
    event_path: Path = typer.Option(..., "--event", "-e", help="Event YAML file"),
    host_path: Path = typer.Option(..., "--host", "-H", help="Host snapshot YAML file"),
    triggers_path: Optional[Path] = typer.Option(
        None, "--triggers", "-t", help="Trigger definitions YAML (default: built-in)"
    ),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    write: bool = typer.Option(
        False, "--write", "-w", help="Write the updated host snapshot back to --host"
    ),
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
):
    """Fire a trigger for one event.

    Exit codes: 0 allowed, 2 rejected, 3 fatal, 1 usage or file errors.

    Examples:
        hubtrigger trigger run web-extension-check --event upload.yaml --host hub.yaml
        hubtrigger trigger run claims-group-sync -e signin.yaml -H hub.yaml --write
    """
    triggers = _load_triggers_or_exit(triggers_path)
    trigger = triggers.get(name)
    if trigger is None:
        typer.echo(f"Error: unknown trigger '{name}'", err=True)
        raise typer.Exit(1)

    try:
        config = load_config(config_path)
        host = InMemoryHost.load(host_path)
        event_path = Path(event_path).expanduser()
        if not event_path.exists():
            raise FileNotFoundError(f"Event file not found: {event_path}")
        context = EventContext.from_dict(yaml.safe_load(event_path.read_text()), host)
    except (FileNotFoundError, ConfigValidationError, HostError, ContextError, yaml.YAMLError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    record = fire(trigger, context, host, config, event_client=EventClient(config.event_log_path))
    render_record(record, format_type=format)

    exit_code = exit_code_for(record.outcome)
    if write and exit_code == 0:
        host.dump(host_path)
    raise typer.Exit(exit_code)


@app.command("disable")
def disable_command(
    script_id: int = typer.Argument(..., help="Id of the script entity to disable"),
    host_path: Path = typer.Option(..., "--host", "-H", help="Host snapshot YAML file"),
):
    """Disable a script entity, e.g. a sign-in script that locks users out.

    Examples:
        hubtrigger trigger disable 9001 --host hub.yaml
    """
    try:
        host = InMemoryHost.load(host_path)
        found = disable_script(host, script_id)
    except (FileNotFoundError, HostError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not found:
        typer.echo(f"Error: script {script_id} not found", err=True)
        raise typer.Exit(1)

    host.dump(host_path)
    typer.echo(f"Disabled script {script_id}")
