"""Shared fixtures for hubtrigger tests."""

import pytest

from hubtrigger.config import HubTriggerConfig
from hubtrigger.host import (
    ChildToManyParentsRelation,
    ChildToOneParentRelation,
    InMemoryHost,
)

WEB_AGENCY_GROUP_ID = 10
EVERYONE_GROUP_ID = 1
WEB_TYPE_ID = 500
PRINT_TYPE_ID = 501


@pytest.fixture
def config(tmp_path):
    """Default config with the event log inside tmp_path."""
    return HubTriggerConfig(event_log_path=tmp_path / "events.jsonl")


@pytest.fixture
def host():
    """A small hub: groups, asset types, a user and a few assets."""
    hub = InMemoryHost()
    hub.add_group(EVERYONE_GROUP_ID, "Everyone")
    hub.add_group(WEB_AGENCY_GROUP_ID, "Web agency users")
    hub.add_group(11, "Editors")
    hub.add_group(12, "Reviewers")

    hub.add_entity(WEB_TYPE_ID, definition="M.AssetType", identifier="M.AssetType.Web")
    hub.add_entity(PRINT_TYPE_ID, definition="M.AssetType", identifier="M.AssetType.Print")

    hub.add_entity(
        42,
        definition="User",
        relations={
            "UserGroupToUser": ChildToManyParentsRelation("UserGroupToUser", [EVERYONE_GROUP_ID]),
        },
    )
    hub.add_entity(
        1001,
        properties={"FileName": "photo.jpg"},
        relations={"AssetTypeToAsset": ChildToOneParentRelation("AssetTypeToAsset", None)},
    )
    return hub
