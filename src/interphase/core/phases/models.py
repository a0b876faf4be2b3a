"""
Phase models.

Lifecycle order:
    brainstorm -> brainstorm-reviewed -> strategized -> planned ->
    plan-reviewed -> executing -> shipping -> done
"""

from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    """Lifecycle phases of a bead, in order."""

    BRAINSTORM = "brainstorm"
    BRAINSTORM_REVIEWED = "brainstorm-reviewed"
    STRATEGIZED = "strategized"
    PLANNED = "planned"
    PLAN_REVIEWED = "plan-reviewed"
    EXECUTING = "executing"
    SHIPPING = "shipping"
    DONE = "done"

    @classmethod
    def parse(cls, value: str | None) -> "Phase | None":
        """Phase for a raw string, or None when unset or unrecognized."""
        if not value:
            return None
        try:
            return cls(value.strip())
        except ValueError:
            return None

    @property
    def ordinal(self) -> int:
        return list(Phase).index(self)


@dataclass(frozen=True)
class PhaseRead:
    """
    Result of reading a bead's phase.

    ``phase`` is None both when the phase is unset and when the read
    failed; ``error`` tells the two apart.
    """

    phase: str | None = None
    error: str | None = None

    @property
    def is_set(self) -> bool:
        return self.phase is not None

    @property
    def failed(self) -> bool:
        return self.error is not None
