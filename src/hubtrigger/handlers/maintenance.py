# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Script maintenance helpers."""

import logging

from hubtrigger.host import Host, LoadSpec

logger = logging.getLogger(__name__)

ENABLED_PROPERTY = "M.Script.Enabled"


def disable_script(host: Host, script_id: int) -> bool:
    """Turn off a script entity, e.g. a sign-in script locking users out.

    Returns:
        True if the script was found and saved, False if it does not exist.
    """
    script = host.entities.get(script_id, LoadSpec(properties=(ENABLED_PROPERTY,)))
    if script is None:
        logger.warning(f"Script {script_id} not found")
        return False
    script.set_property_value(ENABLED_PROPERTY, False)
    host.entities.save(script)
    logger.info(f"Disabled script {script_id}")
    return True
