"""Trigger definitions: which handler runs on which lifecycle events.

A trigger binds a handler to its objectives (event kinds) and the phase it
runs in. Property-level conditions ("Filename has changed", "Type contains
Web") are configured on the host and are not evaluated here.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from hubtrigger.handlers import HANDLERS
from hubtrigger.schemas import EventContext, EventKind


class TriggerValidationError(Exception):
    """Raised when a trigger definition is invalid."""

    pass


# Trigger name pattern: lowercase alphanumeric with hyphens only
NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


class TriggerPhase(Enum):
    """Where in the host's pipeline the handler runs."""

    SECURITY = "security"
    VALIDATION = "validation"
    PRE_COMMIT = "pre_commit"
    MEDIA_PROCESSING = "media_processing"
    SIGN_IN = "sign_in"


@dataclass
class TriggerDefinition:
    """A trigger from triggers.yaml.

    Required fields:
    - name: Trigger identifier
    - handler: Registered handler name
    - objectives: Event kinds the trigger fires on
    - phase: Pipeline phase of the action

    Optional fields:
    - description: What the trigger does
    - enabled: Disabled triggers are skipped (default true)
    """

    name: str
    handler: str
    objectives: Tuple[EventKind, ...]
    phase: TriggerPhase
    description: str = ""
    enabled: bool = True

    def validate(self) -> None:
        """Validate definition fields.

        Raises:
            TriggerValidationError: If validation fails.
        """
        validate_name(self.name)

        if self.handler not in HANDLERS:
            known = ", ".join(sorted(HANDLERS))
            raise TriggerValidationError(
                f"trigger '{self.name}' uses unknown handler '{self.handler}' (known: {known})"
            )

        if not self.objectives:
            raise TriggerValidationError(f"trigger '{self.name}' needs at least one objective")

    def matches(self, context: EventContext) -> bool:
        return self.enabled and context.event_kind in self.objectives


def validate_name(name: str) -> None:
    """Validate a trigger name.

    Raises:
        TriggerValidationError: If name is invalid.
    """
    if not name:
        raise TriggerValidationError("trigger name cannot be empty")

    if not NAME_PATTERN.match(name):
        raise TriggerValidationError(
            f"trigger name must be lowercase alphanumeric with hyphens only "
            f"([a-z0-9-]+), got: {name}"
        )


_ENTITY_CHANGES = (EventKind.ENTITY_CREATION, EventKind.ENTITY_MODIFICATION)


def default_triggers() -> List[TriggerDefinition]:
    """Built-in triggers, one per handler."""
    return [
        TriggerDefinition(
            name="web-agency-security",
            handler="web-agency-security",
            objectives=_ENTITY_CHANGES,
            phase=TriggerPhase.SECURITY,
            description="Only web agency users may create or modify web assets",
        ),
        TriggerDefinition(
            name="web-extension-check",
            handler="web-extension-check",
            objectives=_ENTITY_CHANGES,
            phase=TriggerPhase.VALIDATION,
            description="Reject assets whose file name is not a web file type",
        ),
        TriggerDefinition(
            name="web-asset-type",
            handler="web-asset-type",
            objectives=_ENTITY_CHANGES,
            phase=TriggerPhase.PRE_COMMIT,
            description="Classify web files as the Web asset type",
        ),
        TriggerDefinition(
            name="media-metadata",
            handler="media-metadata",
            objectives=(EventKind.PROCESSING,),
            phase=TriggerPhase.MEDIA_PROCESSING,
            description="Copy extracted metadata onto the asset",
        ),
        TriggerDefinition(
            name="claims-group-sync",
            handler="claims-group-sync",
            objectives=(EventKind.SIGN_IN,),
            phase=TriggerPhase.SIGN_IN,
            description="Sync user groups from identity provider claims",
        ),
    ]


def load_triggers(path: Path) -> Dict[str, TriggerDefinition]:
    """Load trigger definitions from a YAML file.

    Format:
        triggers:
          - name: web-extension-check
            handler: web-extension-check
            objectives: [entity_creation, entity_modification]
            phase: validation

    Raises:
        TriggerValidationError: If the file or a definition is invalid.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise TriggerValidationError(f"trigger file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise TriggerValidationError(f"invalid YAML in {path}: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("triggers"), list):
        raise TriggerValidationError(f"trigger file {path} must contain a 'triggers' list")

    triggers: Dict[str, TriggerDefinition] = {}
    for item in data["triggers"]:
        if not isinstance(item, dict):
            raise TriggerValidationError(f"each trigger in {path} must be a mapping")
        try:
            definition = TriggerDefinition(
                name=item.get("name", ""),
                handler=item.get("handler", ""),
                objectives=tuple(EventKind(o) for o in item.get("objectives") or []),
                phase=TriggerPhase(item.get("phase")),
                description=item.get("description", ""),
                enabled=bool(item.get("enabled", True)),
            )
        except (TypeError, ValueError) as e:
            raise TriggerValidationError(f"invalid trigger in {path}: {e}")

        definition.validate()
        if definition.name in triggers:
            raise TriggerValidationError(f"duplicate trigger name '{definition.name}' in {path}")
        triggers[definition.name] = definition

    return triggers


def get_triggers(path: Optional[Path] = None) -> Dict[str, TriggerDefinition]:
    """Return triggers from a file, or the built-in set."""
    if path is not None:
        return load_triggers(path)
    return {t.name: t for t in default_triggers()}
