# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Event context handed to trigger handlers.

Built by the host right before a handler runs and read-only to it.
Entity references are resolved by id but carry no loaded members.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from hubtrigger.host import Entity, InMemoryHost


class ContextError(Exception):
    """Raised when an event description cannot be turned into a context."""

    pass


class EventKind(Enum):
    """Lifecycle event that fired the trigger."""

    ENTITY_CREATION = "entity_creation"
    ENTITY_MODIFICATION = "entity_modification"
    SIGN_IN = "sign_in"
    PROCESSING = "processing"


class AuthenticationSource(Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Claim:
    """A type/value pair asserted by an external identity provider."""
    type: str
    value: str


@dataclass(frozen=True)
class ExternalUserInfo:
    """Identity provider data. `claims` is None when none were sent."""
    claims: Optional[Tuple[Claim, ...]] = None


@dataclass(frozen=True)
class EventContext:
    """Immutable record describing the triggering event."""
    event_kind: EventKind
    triggering_user_id: Optional[int] = None
    target: Optional["Entity"] = None
    user: Optional["Entity"] = None
    authentication_source: Optional[AuthenticationSource] = None
    external_user_info: Optional[ExternalUserInfo] = None
    asset: Optional["Entity"] = None
    file: Optional["Entity"] = None
    metadata_properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Keep insertion order, block writes
        object.__setattr__(
            self, "metadata_properties", MappingProxyType(dict(self.metadata_properties))
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], host: "InMemoryHost") -> "EventContext":
        """Build a context from an event mapping (e.g. a YAML event file).

        Entity fields hold ids and are resolved through the host without
        loading any members:

            event_kind: sign_in
            user: 42
            authentication_source: external
            claims:
              - {type: MySpecialGroupType, value: Editors}
        """
        if not isinstance(data, dict):
            raise ContextError("event must be a mapping")

        raw_kind = data.get("event_kind")
        try:
            event_kind = EventKind(raw_kind)
        except ValueError:
            known = ", ".join(k.value for k in EventKind)
            raise ContextError(f"unknown event_kind '{raw_kind}' (expected one of: {known})")

        source = None
        if data.get("authentication_source") is not None:
            try:
                source = AuthenticationSource(data["authentication_source"])
            except ValueError:
                raise ContextError(
                    f"unknown authentication_source '{data['authentication_source']}'"
                )

        external_user_info = None
        if "claims" in data:
            raw_claims = data["claims"]
            claims = None
            if raw_claims is not None:
                try:
                    claims = tuple(Claim(type=c["type"], value=c["value"]) for c in raw_claims)
                except (KeyError, TypeError):
                    raise ContextError("each claim needs a 'type' and a 'value'")
            external_user_info = ExternalUserInfo(claims=claims)

        def _id(key: str) -> Optional[int]:
            value = data.get(key)
            if value is None:
                return None
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ContextError(f"{key} must be an entity id, got: {value!r}")

        def _ref(key: str) -> Optional["Entity"]:
            entity_id = _id(key)
            if entity_id is None:
                return None
            entity = host.reference(entity_id)
            if entity is None:
                raise ContextError(f"{key} entity {entity_id} does not exist")
            return entity

        metadata = data.get("metadata_properties") or {}
        if not isinstance(metadata, dict):
            raise ContextError("metadata_properties must be a mapping")

        return cls(
            event_kind=event_kind,
            triggering_user_id=_id("triggering_user_id"),
            target=_ref("target"),
            user=_ref("user"),
            authentication_source=source,
            external_user_info=external_user_info,
            asset=_ref("asset"),
            file=_ref("file"),
            metadata_properties=metadata,
        )
