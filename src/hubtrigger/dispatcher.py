# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Dispatcher - fire a trigger for one event.

Checks the trigger's objectives, runs its handler once, turns host and
configuration failures into Fatal outcomes, and commits pending mutations.
Produces a TriggerRecord and an audit trail in the event log.
"""

import json
import logging
import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from hubtrigger.config import HubTriggerConfig
from hubtrigger.event_client import SKIPPED, STARTED, EventClient, TriggerEvent
from hubtrigger.handlers import get_handler
from hubtrigger.host import ConfigurationError, Host, HostError
from hubtrigger.schemas import (
    Allow,
    AllowWithMutation,
    EventContext,
    Fatal,
    Outcome,
    Reject,
    outcome_to_dict,
)
from hubtrigger.triggers import TriggerDefinition

logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_REJECTED = 2
EXIT_FATAL = 3


def _utcnow() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


@dataclass
class TriggerRecord:
    """Result of firing a trigger."""
    run_id: str
    trigger: str
    handler: str
    status: str  # "completed", "rejected", "failed", "skipped"
    outcome: Outcome
    started_at: datetime
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "trigger": self.trigger,
            "handler": self.handler,
            "status": self.status,
            "outcome": outcome_to_dict(self.outcome),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


def exit_code_for(outcome: Outcome) -> int:
    if isinstance(outcome, Reject):
        return EXIT_REJECTED
    if isinstance(outcome, Fatal):
        return EXIT_FATAL
    return EXIT_OK


def _status_for(outcome: Outcome) -> str:
    if isinstance(outcome, Reject):
        return "rejected"
    if isinstance(outcome, Fatal):
        return "failed"
    return "completed"


def fire(
    trigger: TriggerDefinition,
    context: EventContext,
    host: Host,
    config: HubTriggerConfig,
    event_client: Optional[EventClient] = None,
) -> TriggerRecord:
    """
    Fire a trigger for a single event.

    Disabled triggers and events outside the objectives are skipped.
    Reject and Fatal outcomes never commit anything. Any exception raised by
    the handler or the commit becomes Fatal, so a started run always logs a
    terminal event.
    """
    run_id = str(uuid.uuid4())
    started_at = _utcnow()

    if not trigger.matches(context):
        reason = "disabled" if not trigger.enabled else f"{context.event_kind.value} not in objectives"
        logger.debug(f"Skipping trigger '{trigger.name}': {reason}")
        record = TriggerRecord(
            run_id=run_id,
            trigger=trigger.name,
            handler=trigger.handler,
            status="skipped",
            outcome=Allow(note=reason),
            started_at=started_at,
            completed_at=_utcnow(),
        )
        if event_client:
            event_client.emit(
                TriggerEvent(
                    event_type=SKIPPED,
                    run_id=run_id,
                    trigger=trigger.name,
                    status="skipped",
                    payload={"reason": reason},
                )
            )
        return record

    if event_client:
        event_client.emit(
            TriggerEvent(
                event_type=STARTED,
                run_id=run_id,
                trigger=trigger.name,
                status="running",
                payload={
                    "handler": trigger.handler,
                    "phase": trigger.phase.value,
                    "event_kind": context.event_kind.value,
                },
            )
        )

    handler = get_handler(trigger.handler)
    try:
        outcome = handler(context, host, config)
        if isinstance(outcome, AllowWithMutation) and not outcome.committed:
            _commit(outcome, context, host)
    except (ConfigurationError, HostError) as e:
        outcome = Fatal(str(e))
    except Exception as e:
        logger.exception(f"Handler '{trigger.handler}' raised")
        outcome = Fatal(f"{type(e).__name__}: {e}")

    if isinstance(outcome, Fatal):
        logger.error(f"Trigger '{trigger.name}' failed: {outcome.cause}")
    elif isinstance(outcome, Reject):
        logger.info(f"Trigger '{trigger.name}' rejected the operation: {outcome.reason}")

    status = _status_for(outcome)
    record = TriggerRecord(
        run_id=run_id,
        trigger=trigger.name,
        handler=trigger.handler,
        status=status,
        outcome=outcome,
        started_at=started_at,
        completed_at=_utcnow(),
    )

    if event_client:
        duration_ms = int((record.completed_at - started_at).total_seconds() * 1000)
        error_message = None
        if isinstance(outcome, Fatal):
            error_message = outcome.cause
        elif isinstance(outcome, Reject):
            error_message = outcome.reason
        event_client.emit(
            TriggerEvent(
                event_type=f"trigger.{status}",
                run_id=run_id,
                trigger=trigger.name,
                status=status,
                payload={"duration_ms": duration_ms, "outcome": outcome_to_dict(outcome)},
                error_message=error_message,
            )
        )

    return record


def _commit(outcome: AllowWithMutation, context: EventContext, host: Host) -> None:
    """Apply pending mutations as part of the triggering operation."""
    entity = context.target
    if entity is None or entity.id != outcome.entity_id:
        entity = host.entities.get(outcome.entity_id)
        if entity is None:
            raise HostError(f"entity {outcome.entity_id} does not exist")
    host.entities.apply(entity, outcome.mutations)
    logger.info(f"Committed {len(outcome.mutations)} mutation(s) on entity {entity.id}")


# =============================================================================
# Output Rendering
# =============================================================================

def render_record(record: TriggerRecord, format_type: str = "table") -> None:
    """Render a TriggerRecord to stdout."""
    if format_type == "json":
        print(json.dumps(record.to_dict(), default=str))
        return

    outcome = record.outcome
    print(f"Trigger: {record.trigger}")
    print(f"Run ID: {record.run_id}")
    print(f"Status: {record.status}")
    if isinstance(outcome, Allow):
        print("Outcome: allow" + (f" ({outcome.note})" if outcome.note else ""))
    elif isinstance(outcome, AllowWithMutation):
        saved = "saved by handler" if outcome.committed else "committed with operation"
        print(f"Outcome: allow with {len(outcome.mutations)} mutation(s), {saved}")
        for mutation in outcome_to_dict(outcome)["mutations"]:
            details = ", ".join(f"{k}={v}" for k, v in mutation.items() if k != "op")
            print(f"  {mutation['op']}: {details}")
    elif isinstance(outcome, Reject):
        print(f"Outcome: rejected ({outcome.category.value})", file=sys.stderr)
        print(f"  {outcome.reason}", file=sys.stderr)
        for failure in outcome.failures:
            print(f"  {failure.message} [{failure.value}]", file=sys.stderr)
    else:
        print("Outcome: FATAL", file=sys.stderr)
        print(f"  {outcome.cause}", file=sys.stderr)
