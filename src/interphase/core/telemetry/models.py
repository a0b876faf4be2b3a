"""
Telemetry event models.

Each event is one JSON line with ``event`` and ``timestamp`` followed by
event-specific fields, e.g.:

{"event": "gate_check", "timestamp": "2026-01-15T12:34:56Z", "bead": "Clavain-a1b",
 "from": "planned", "to": "executing", "result": "pass"}
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class EventType(str, Enum):
    """Types of telemetry events."""

    PHASE_TRANSITION = "phase_transition"
    PHASE_DESYNC = "phase_desync"
    GATE_CHECK = "gate_check"
    PHASE_ADVANCE = "phase_advance"
    GATE_ENFORCE = "gate_enforce"
    DISCOVERY_SELECT = "discovery_select"


class TelemetryEvent(BaseModel):
    """A single telemetry record. Event fields are stored as extras."""

    model_config = ConfigDict(use_enum_values=True, extra="allow")

    event: EventType = Field(..., description="Type of event")
    timestamp: datetime = Field(..., description="When the event occurred (UTC)")

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
