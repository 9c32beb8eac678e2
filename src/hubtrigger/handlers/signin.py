# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
User sign-in script - sync a user's groups from identity provider claims.

Only runs for externally authenticated users. The user's group relation is
replaced with exactly the groups named in the claims; groups the user had
before and that no longer appear in the claims are removed. Group names
that do not exist on the hub are skipped.

A broken sign-in script can lock every user out. See
hubtrigger.handlers.maintenance.disable_script.
"""

import logging
from typing import List

from hubtrigger.config import HubTriggerConfig
from hubtrigger.host import Host, LoadSpec
from hubtrigger.schemas import (
    Allow,
    AllowWithMutation,
    AuthenticationSource,
    EventContext,
    Outcome,
    SetParents,
)

logger = logging.getLogger(__name__)

USER_GROUP_RELATION = "UserGroupToUser"


def claimed_group_names(context: EventContext, config: HubTriggerConfig) -> List[str]:
    """Collect group names from claims of the configured type.

    Falls back to the default group when the provider sent no claims.
    """
    info = context.external_user_info
    if info is None or not info.claims:
        return [config.default_group]
    return [claim.value for claim in info.claims if claim.type == config.claim_type]


def handle(context: EventContext, host: Host, config: HubTriggerConfig) -> Outcome:
    if context.authentication_source != AuthenticationSource.EXTERNAL:
        return Allow(note="not an external sign-in")

    user = context.user
    if user is None:
        return Allow(note="no user in context")

    names = claimed_group_names(context, config)
    resolved = host.groups.get_group_ids(names) or {}
    dropped = [name for name in names if name not in resolved]
    if dropped:
        logger.debug(f"Skipping unknown groups for user {user.id}: {dropped}")
    group_ids = tuple(resolved[name] for name in names if name in resolved)

    host.entities.load_members(user, LoadSpec(relations=(USER_GROUP_RELATION,)))
    mutation = SetParents(USER_GROUP_RELATION, group_ids)
    mutation.apply_to(user)
    host.entities.save(user)
    logger.info(f"Synced user {user.id} to {len(group_ids)} group(s)")

    return AllowWithMutation(entity_id=user.id, mutations=(mutation,), committed=True)
