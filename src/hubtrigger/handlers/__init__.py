# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Trigger handlers.

Every handler has the same shape:

    handle(context: EventContext, host: Host, config: HubTriggerConfig) -> Outcome
"""

from typing import Callable, Dict

from hubtrigger.handlers import media, precommit, security, signin, validation
from hubtrigger.handlers.extensions import get_extension
from hubtrigger.handlers.maintenance import disable_script

HANDLERS: Dict[str, Callable] = {
    "web-agency-security": security.handle,
    "web-extension-check": validation.handle,
    "web-asset-type": precommit.handle,
    "media-metadata": media.handle,
    "claims-group-sync": signin.handle,
}


class UnknownHandlerError(Exception):
    """Raised when a trigger names a handler that does not exist."""

    pass


def get_handler(name: str) -> Callable:
    """Look up a handler by name."""
    try:
        return HANDLERS[name]
    except KeyError:
        known = ", ".join(sorted(HANDLERS))
        raise UnknownHandlerError(f"Unknown handler: {name} (known: {known})")


__all__ = [
    "HANDLERS",
    "UnknownHandlerError",
    "get_handler",
    "get_extension",
    "disable_script",
]
