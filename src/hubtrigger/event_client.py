# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Audit trail for trigger runs.

Every fired trigger writes one line per lifecycle step to a JSONL file:
trigger.started, then exactly one of trigger.completed, trigger.rejected or
trigger.failed. Triggers that do not apply write a single trigger.skipped.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

STARTED = "trigger.started"
SKIPPED = "trigger.skipped"
TERMINAL_EVENTS = ("trigger.completed", "trigger.rejected", "trigger.failed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TriggerEvent:
    """One audit line, keyed by the run id of the trigger it belongs to."""

    event_type: str
    run_id: str
    trigger: str
    status: str  # "running", "completed", "rejected", "failed", "skipped"
    payload: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.event_type in TERMINAL_EVENTS

    def to_dict(self) -> Dict[str, Any]:
        event: Dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "correlation_id": self.run_id,
            "trigger": self.trigger,
            "status": self.status,
        }
        if self.payload:
            event["payload"] = self.payload
        if self.error_message:
            event["error_message"] = self.error_message
        return event


class EventClient:
    """Appends trigger events to a JSONL file."""

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: TriggerEvent) -> None:
        with open(self.log_path, "a") as f:
            f.write(json.dumps(event.to_dict(), default=str) + "\n")

    def read(self, run_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return logged events, optionally only those of one run."""
        if not self.log_path.exists():
            return []
        events = []
        with open(self.log_path) as f:
            for line in f:
                if not line.strip():
                    continue
                event = json.loads(line)
                if run_id is None or event.get("correlation_id") == run_id:
                    events.append(event)
        return events
