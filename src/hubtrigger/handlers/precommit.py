# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Pre-commit trigger - classify web files as the Web asset type.

Runs before the triggering save commits. The returned mutation is applied by
the host as part of that same commit, so this handler never saves.
"""

import logging

from hubtrigger.config import HubTriggerConfig
from hubtrigger.handlers.extensions import get_extension
from hubtrigger.host import Host, LoadSpec
from hubtrigger.schemas import (
    Allow,
    AllowWithMutation,
    EventContext,
    Outcome,
    SetParent,
)

logger = logging.getLogger(__name__)

FILENAME_PROPERTY = "FileName"
ASSET_TYPE_RELATION = "AssetTypeToAsset"


def handle(context: EventContext, host: Host, config: HubTriggerConfig) -> Outcome:
    entity = context.target
    if entity is None:
        return Allow(note="no target entity")

    host.entities.load_members(
        entity,
        LoadSpec(properties=(FILENAME_PROPERTY,), relations=(ASSET_TYPE_RELATION,)),
    )
    filename = entity.get_property_value(FILENAME_PROPERTY)
    if not filename:
        return Allow(note="no filename")

    extension = get_extension(filename)
    if not extension:
        return Allow(note="no extension")
    if extension.lower() not in config.web_extensions:
        return Allow(note=f"{extension} is not a web extension")

    web_type_id = host.querying.find_single_id_by_identifier(config.web_asset_type_identifier)
    if web_type_id is None:
        logger.warning(f"{config.web_asset_type_identifier} not found, asset left unclassified")
        return Allow(note=f"{config.web_asset_type_identifier} not found")

    relation = entity.get_relation(ASSET_TYPE_RELATION)
    if relation is None:
        return Allow(note=f"no {ASSET_TYPE_RELATION} relation")

    # Same parent on every run, so repeating it is harmless
    logger.info(f"Classifying entity {entity.id} as {config.web_asset_type_identifier}")
    return AllowWithMutation(
        entity_id=entity.id,
        mutations=(SetParent(ASSET_TYPE_RELATION, web_type_id),),
    )
