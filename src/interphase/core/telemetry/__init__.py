"""Telemetry events and the JSONL sink."""

from .logger import TelemetryLog, default_telemetry_path
from .models import EventType, TelemetryEvent

__all__ = ["EventType", "TelemetryEvent", "TelemetryLog", "default_telemetry_path"]
