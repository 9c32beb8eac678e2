# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Validation trigger - reject assets whose file name is not a web file type."""

import logging

from hubtrigger.config import HubTriggerConfig
from hubtrigger.handlers.extensions import get_extension
from hubtrigger.host import Host, LoadSpec
from hubtrigger.schemas import (
    Allow,
    EventContext,
    Outcome,
    ValidationFailure,
    invalid,
)

logger = logging.getLogger(__name__)

FILENAME_PROPERTY = "FileName"


def handle(context: EventContext, host: Host, config: HubTriggerConfig) -> Outcome:
    """Check the target's file extension against the allowed web extensions.

    No file name, or a file name without an extension, has nothing to
    validate and is allowed.
    """
    entity = context.target
    if entity is None:
        return Allow(note="no target entity")

    host.entities.load_members(entity, LoadSpec(properties=(FILENAME_PROPERTY,)))
    filename = entity.get_property_value(FILENAME_PROPERTY)
    if not filename:
        return Allow(note="no filename")

    extension = get_extension(filename)
    if not extension:
        return Allow(note="no extension")

    if extension.lower() not in config.web_extensions:
        logger.info(f"Rejecting '{filename}' on entity {entity.id}")
        return invalid(
            "The asset is not valid.",
            ValidationFailure(
                "The file's extension must be the extension of a valid web filetype.",
                filename,
            ),
        )

    return Allow()
