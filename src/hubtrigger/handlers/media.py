# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Media processing script - copy extracted metadata onto the asset.

Runs every time the processing worker handles a file. Only the asset's
master file writes its metadata; renditions are ignored.

The metadata is stored as two comma-joined rows:

    Width, Height, "Make, Model"
    1920, 1080, "Canon, EOS R5"
"""

import logging
from typing import Any, Iterable, Mapping

from hubtrigger.config import HubTriggerConfig
from hubtrigger.host import Host, LoadSpec
from hubtrigger.schemas import (
    Allow,
    AllowWithMutation,
    EventContext,
    Outcome,
    SetProperty,
)

logger = logging.getLogger(__name__)

MASTER_FILE_RELATION = "MasterFile"


def to_csv_value(source: Any) -> str:
    """Quote a value when it contains a comma."""
    text = str(source)
    if "," in text:
        return f'"{text}"'
    return text


def _join(values: Iterable[Any]) -> str:
    return ", ".join(to_csv_value(v) for v in values)


def to_csv(metadata: Mapping[str, Any]) -> str:
    """Serialize a mapping as a header row of keys and a row of values."""
    return _join(metadata.keys()) + "\n" + _join(metadata.values())


def handle(context: EventContext, host: Host, config: HubTriggerConfig) -> Outcome:
    if context.file is None or context.asset is None:
        return Allow(note="no file or asset in context")

    host.entities.load_members(context.file, LoadSpec(relations=(MASTER_FILE_RELATION,)))
    relation = context.file.get_relation(MASTER_FILE_RELATION)
    parents = relation.parent_ids if relation is not None else []
    if not parents or context.asset.id not in parents:
        return Allow(note="not the master file")

    asset = context.asset
    text = to_csv(context.metadata_properties)
    mutation = SetProperty(config.metadata_property, text)

    # Processing runs outside an entity commit, so the asset is saved here
    host.entities.load_members(asset, LoadSpec(properties=(config.metadata_property,)))
    mutation.apply_to(asset)
    host.entities.save(asset)
    logger.info(f"Stored {len(context.metadata_properties)} metadata fields on asset {asset.id}")

    return AllowWithMutation(entity_id=asset.id, mutations=(mutation,), committed=True)
