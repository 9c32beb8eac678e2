"""Configuration loading and validation.

Holds the deployment-specific names the handlers depend on (group names,
identifiers, property names). Every value has a default, so a missing
config file is not an error.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml


class ConfigValidationError(Exception):
    """Raised when the configuration file is invalid."""

    pass


DEFAULT_WEB_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")


@dataclass
class HubTriggerConfig:
    """Handler settings from config.yaml.

    Sections:
    - security.required_group: Group whose members may touch web assets
    - validation.web_extensions: Allowed file extensions
    - precommit.web_asset_type_identifier: Identifier of the Web asset type
    - media.metadata_property: Asset property receiving extracted metadata
    - signin.claim_type: Claim type carrying group names
    - signin.default_group: Group used when no claims are sent
    - events.log_path: JSONL audit trail location
    """

    required_group: str = "Web agency users"
    web_extensions: Tuple[str, ...] = DEFAULT_WEB_EXTENSIONS
    web_asset_type_identifier: str = "M.AssetType.Web"
    metadata_property: str = "Metadata"
    claim_type: str = "MySpecialGroupType"
    default_group: str = "Everyone"
    event_log_path: Path = field(
        default_factory=lambda: Path("~/.hubtrigger/events.jsonl").expanduser()
    )
    source: Optional[Path] = None

    def validate(self) -> None:
        """Validate config fields.

        Raises:
            ConfigValidationError: If validation fails.
        """
        for name in (
            "required_group",
            "web_asset_type_identifier",
            "metadata_property",
            "claim_type",
            "default_group",
        ):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigValidationError(f"{name} must be a non-empty string")

        if not self.web_extensions:
            raise ConfigValidationError("web_extensions cannot be empty")
        for ext in self.web_extensions:
            if not isinstance(ext, str) or not ext.startswith(".") or len(ext) < 2:
                raise ConfigValidationError(
                    f"web_extensions entries must look like '.jpg', got: {ext!r}"
                )


def get_search_paths() -> List[Path]:
    """Get config search paths in priority order.

    Order:
    1. $HUBTRIGGER_CONFIG (if set)
    2. ~/.hubtrigger/config.yaml
    """
    paths = []

    env_path = os.environ.get("HUBTRIGGER_CONFIG")
    if env_path:
        paths.append(Path(env_path))

    paths.append(Path("~/.hubtrigger/config.yaml").expanduser())

    return paths


def load_config(path: Optional[str] = None) -> HubTriggerConfig:
    """Load configuration.

    Args:
        path: Explicit config file. Must exist when given.

    Returns:
        HubTriggerConfig, with defaults for anything not set.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigValidationError: If the file is not valid.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return _parse_config(config_path)

    for candidate in get_search_paths():
        candidate = candidate.expanduser()
        if candidate.exists():
            return _parse_config(candidate)

    config = HubTriggerConfig()
    config.validate()
    return config


def _parse_config(config_path: Path) -> HubTriggerConfig:
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"invalid YAML in {config_path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"config file {config_path} must contain a YAML mapping")

    config = HubTriggerConfig(source=config_path)
    security = _section(data, "security")
    validation = _section(data, "validation")
    precommit = _section(data, "precommit")
    media = _section(data, "media")
    signin = _section(data, "signin")
    events = _section(data, "events")

    if "required_group" in security:
        config.required_group = security["required_group"]
    if "web_extensions" in validation:
        extensions = validation["web_extensions"]
        if not isinstance(extensions, list):
            raise ConfigValidationError("validation.web_extensions must be a list")
        # Extensions are compared lower-cased
        config.web_extensions = tuple(
            e.lower() if isinstance(e, str) else e for e in extensions
        )
    if "web_asset_type_identifier" in precommit:
        config.web_asset_type_identifier = precommit["web_asset_type_identifier"]
    if "metadata_property" in media:
        config.metadata_property = media["metadata_property"]
    if "claim_type" in signin:
        config.claim_type = signin["claim_type"]
    if "default_group" in signin:
        config.default_group = signin["default_group"]
    if events.get("log_path"):
        config.event_log_path = Path(events["log_path"]).expanduser()

    config.validate()
    return config


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"'{name}' must be a mapping")
    return section
