# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Hubtrigger schemas."""

from hubtrigger.schemas.context import (
    AuthenticationSource,
    Claim,
    ContextError,
    EventContext,
    EventKind,
    ExternalUserInfo,
)
from hubtrigger.schemas.outcome import (
    Allow,
    AllowWithMutation,
    Fatal,
    Mutation,
    Outcome,
    Reject,
    RejectCategory,
    SetParent,
    SetParents,
    SetProperty,
    ValidationFailure,
    forbidden,
    invalid,
    is_blocking,
    outcome_to_dict,
)

__all__ = [
    "AuthenticationSource",
    "Claim",
    "ContextError",
    "EventContext",
    "EventKind",
    "ExternalUserInfo",
    "Allow",
    "AllowWithMutation",
    "Fatal",
    "Mutation",
    "Outcome",
    "Reject",
    "RejectCategory",
    "SetParent",
    "SetParents",
    "SetProperty",
    "ValidationFailure",
    "forbidden",
    "invalid",
    "is_blocking",
    "outcome_to_dict",
]
