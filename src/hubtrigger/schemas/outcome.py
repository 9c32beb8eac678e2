# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Decision outcomes returned by trigger handlers.

Handlers never raise to signal policy. They return one of:
- Allow: nothing to do, the operation proceeds unchanged
- AllowWithMutation: the operation proceeds with field/relation changes
- Reject: the operation is blocked by policy (forbidden or invalid)
- Fatal: the deployment is incomplete or the host failed to persist

Callers pattern-match on the type.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple, Union

if TYPE_CHECKING:
    from hubtrigger.host import Entity


# =============================================================================
# Mutations
# =============================================================================

@dataclass(frozen=True)
class SetProperty:
    """Assign a value to a single property."""
    name: str
    value: Any

    @property
    def member(self) -> Tuple[str, str]:
        return ("property", self.name)

    def apply_to(self, entity: "Entity") -> None:
        entity.set_property_value(self.name, self.value)


@dataclass(frozen=True)
class SetParent:
    """Point a child-to-one-parent relation at a new parent."""
    relation: str
    parent_id: Optional[int]

    @property
    def member(self) -> Tuple[str, str]:
        return ("relation", self.relation)

    def apply_to(self, entity: "Entity") -> None:
        entity.require_relation(self.relation).parent = self.parent_id


@dataclass(frozen=True)
class SetParents:
    """Replace every parent of a child-to-many-parents relation."""
    relation: str
    parent_ids: Tuple[int, ...]

    @property
    def member(self) -> Tuple[str, str]:
        return ("relation", self.relation)

    def apply_to(self, entity: "Entity") -> None:
        entity.require_relation(self.relation).set_ids(self.parent_ids)


Mutation = Union[SetProperty, SetParent, SetParents]


# =============================================================================
# Outcomes
# =============================================================================

class RejectCategory(Enum):
    """Why an operation was rejected."""

    FORBIDDEN = "forbidden"
    VALIDATION = "validation"


@dataclass(frozen=True)
class ValidationFailure:
    """A single failed check, with the value that failed it."""
    message: str
    value: Any = None


@dataclass(frozen=True)
class Allow:
    """Let the operation proceed unchanged.

    `note` records why a handler stopped early, for logs only.
    """
    note: Optional[str] = None


@dataclass(frozen=True)
class AllowWithMutation:
    """Let the operation proceed with a bounded set of changes.

    When `committed` is False the host applies the mutations together with
    the triggering operation. When True the handler already saved them.
    """
    entity_id: int
    mutations: Tuple[Mutation, ...] = field(default_factory=tuple)
    committed: bool = False


@dataclass(frozen=True)
class Reject:
    """Block the operation for a policy reason the user should see."""
    reason: str
    category: RejectCategory = RejectCategory.VALIDATION
    failures: Tuple[ValidationFailure, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Fatal:
    """Abort the operation: a prerequisite is missing or the host failed."""
    cause: str


Outcome = Union[Allow, AllowWithMutation, Reject, Fatal]


def is_blocking(outcome: Outcome) -> bool:
    """Return True when the outcome must stop the operation from committing."""
    return isinstance(outcome, (Reject, Fatal))


def forbidden(reason: str) -> Reject:
    return Reject(reason=reason, category=RejectCategory.FORBIDDEN)


def invalid(reason: str, *failures: ValidationFailure) -> Reject:
    return Reject(reason=reason, category=RejectCategory.VALIDATION, failures=tuple(failures))


def outcome_to_dict(outcome: Outcome) -> dict:
    """Flatten an outcome into a JSON-friendly dict."""
    if isinstance(outcome, Allow):
        result = {"type": "allow"}
        if outcome.note:
            result["note"] = outcome.note
        return result
    if isinstance(outcome, AllowWithMutation):
        return {
            "type": "allow_with_mutation",
            "entity_id": outcome.entity_id,
            "committed": outcome.committed,
            "mutations": [_mutation_to_dict(m) for m in outcome.mutations],
        }
    if isinstance(outcome, Reject):
        return {
            "type": "reject",
            "category": outcome.category.value,
            "reason": outcome.reason,
            "failures": [
                {"message": f.message, "value": f.value} for f in outcome.failures
            ],
        }
    return {"type": "fatal", "cause": outcome.cause}


def _mutation_to_dict(mutation: Mutation) -> dict:
    if isinstance(mutation, SetProperty):
        return {"op": "set_property", "name": mutation.name, "value": mutation.value}
    if isinstance(mutation, SetParent):
        return {"op": "set_parent", "relation": mutation.relation, "parent_id": mutation.parent_id}
    return {
        "op": "set_parents",
        "relation": mutation.relation,
        "parent_ids": list(mutation.parent_ids),
    }
