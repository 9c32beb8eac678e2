# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Security trigger - only web agency users may create or modify web assets.

Which assets are gated (asset type "Web") is decided by the trigger's
condition on the host. This handler only checks group membership.
"""

import logging

from hubtrigger.config import HubTriggerConfig
from hubtrigger.host import Host, LoadSpec
from hubtrigger.schemas import Allow, EventContext, Fatal, Outcome, forbidden

logger = logging.getLogger(__name__)

USER_GROUP_RELATION = "UserGroupToUser"


def handle(context: EventContext, host: Host, config: HubTriggerConfig) -> Outcome:
    """Allow the operation only for members of the required group."""
    if context.triggering_user_id is None:
        return Fatal("Triggering user could not be found.")

    user = host.entities.get(
        context.triggering_user_id, LoadSpec(relations=(USER_GROUP_RELATION,))
    )
    if user is None:
        return Fatal("Triggering user could not be found.")

    group = host.groups.get_group_by_name(config.required_group)
    if group is None:
        return Fatal(f"Usergroup '{config.required_group}' not found.")

    relation = user.get_relation(USER_GROUP_RELATION)
    member_of = relation.parent_ids if relation is not None else []
    if group.id not in member_of:
        logger.info(f"User {user.id} is not in '{config.required_group}'")
        return forbidden(
            f"Only users of usergroup '{config.required_group}' are allowed to "
            f"create or modify assets of image-type 'Web'."
        )

    return Allow()
