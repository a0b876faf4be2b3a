"""
Phase persistence on the tracker.

The bead's ``phase`` state field is the primary record of where it is in
the lifecycle. Phase tracking is observability: writes never fail the
caller and reads collapse "unset" and "error" into None.

Two sessions setting the same bead's phase concurrently may both log a
transition; the tracker's field write is atomic, so the last one wins.
"""

import logging

from interphase.core.tasks.tracker import Tracker, TrackerError
from interphase.core.telemetry.logger import TelemetryLog

from .models import PhaseRead

logger = logging.getLogger(__name__)

PHASE_KEY = "phase"


class PhaseStore:
    """
    Read and write the phase of a bead through the tracker.

    Example:
        >>> store = PhaseStore(tracker, telemetry)
        >>> store.set_phase("Clavain-a1b", "planned", "plan written")
        >>> store.get_phase("Clavain-a1b")
        'planned'
    """

    def __init__(self, tracker: Tracker, telemetry: TelemetryLog):
        self.tracker = tracker
        self.telemetry = telemetry

    def set_phase(self, item_id: str, phase: str, reason: str | None = None) -> None:
        """
        Record a phase on a bead. Tracker failures are logged, not raised.
        """
        if not item_id or not phase:
            return

        try:
            self.tracker.set_state(item_id, PHASE_KEY, phase, reason=reason or None)
        except TrackerError as e:
            logger.debug("Failed to set phase %s on %s: %s", phase, item_id, e)

        self.telemetry.phase_transition(item_id, phase, reason)

    def read_phase(self, item_id: str) -> PhaseRead:
        """Read the phase, keeping "unset" and "error" distinct."""
        if not item_id:
            return PhaseRead()
        try:
            value = self.tracker.get_state(item_id, PHASE_KEY)
        except TrackerError as e:
            logger.debug("Failed to read phase of %s: %s", item_id, e)
            return PhaseRead(error=str(e) or type(e).__name__)
        return PhaseRead(phase=value.strip() if value and value.strip() else None)

    def get_phase(self, item_id: str) -> str | None:
        """Current phase, or None when unset or unreadable."""
        return self.read_phase(item_id).phase
