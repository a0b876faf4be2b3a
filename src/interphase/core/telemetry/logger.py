"""
Append-only JSONL telemetry for phase and gate decisions.

Events are written to $XDG_DATA_HOME/interphase/telemetry.jsonl unless
configured otherwise. Telemetry must never block a workflow, so write
failures are logged and swallowed.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import EventType, TelemetryEvent

logger = logging.getLogger(__name__)


def default_telemetry_path() -> Path:
    """Get the default telemetry file under the XDG data home."""
    xdg_data_home = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return Path(xdg_data_home) / "interphase" / "telemetry.jsonl"


class TelemetryLog:
    """
    Structured JSONL telemetry sink.

    Example:
        telemetry = TelemetryLog(Path("/tmp/telemetry.jsonl"))
        telemetry.gate_check("Clavain-a1b", "planned", "executing", "pass")
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else default_telemetry_path()

    def log_event(self, event_type: EventType, data: dict[str, Any] | None = None) -> None:
        """
        Append one event. Never raises on IO errors.
        """
        entry = TelemetryEvent(
            event=event_type,
            timestamp=datetime.now(timezone.utc),
            **(data or {}),
        )
        line = entry.model_dump_json() + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.debug("Failed to write telemetry to %s: %s", self.path, e)

    def phase_transition(self, item_id: str, phase: str, reason: str | None) -> None:
        self.log_event(
            EventType.PHASE_TRANSITION,
            {"bead": item_id, "phase": phase, "reason": reason or ""},
        )

    def phase_desync(
        self, item_id: str, bead_phase: str, artifact_phase: str, artifact: str | None
    ) -> None:
        self.log_event(
            EventType.PHASE_DESYNC,
            {
                "bead": item_id,
                "bead_phase": bead_phase,
                "artifact_phase": artifact_phase,
                "artifact": artifact or "",
            },
        )

    def gate_check(self, item_id: str, from_phase: str | None, to_phase: str, result: str) -> None:
        self.log_event(
            EventType.GATE_CHECK,
            {"bead": item_id, "from": from_phase or "", "to": to_phase, "result": result},
        )

    def phase_advance(
        self, item_id: str, phase: str, reason: str | None, artifact: str | None
    ) -> None:
        self.log_event(
            EventType.PHASE_ADVANCE,
            {"bead": item_id, "phase": phase, "reason": reason or "", "artifact": artifact or ""},
        )

    def gate_enforce(
        self,
        item_id: str,
        priority: int | None,
        tier: str,
        decision: str,
        reason: str = "",
    ) -> None:
        self.log_event(
            EventType.GATE_ENFORCE,
            {
                "bead": item_id,
                "priority": "?" if priority is None else str(priority),
                "tier": tier,
                "decision": decision,
                "reason": reason,
            },
        )

    def discovery_select(self, item_id: str, action: str, recommended: bool) -> None:
        self.log_event(
            EventType.DISCOVERY_SELECT,
            {"bead": item_id, "action": action, "recommended": recommended},
        )
