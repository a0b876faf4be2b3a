"""
Data models for work discovery.

Defines the ranked ScoreRecord returned by a scan, the recommended
actions, and the scan result wrapper that carries the
unavailable/error sentinels.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    """Recommended next step for a bead.

    Phase-aware inference yields every value except CREATE_BEAD, which is
    reserved for orphaned artifacts.
    """

    BRAINSTORM = "brainstorm"
    STRATEGIZE = "strategize"
    PLAN = "plan"
    EXECUTE = "execute"
    CONTINUE = "continue"
    SHIP = "ship"
    CLOSED = "closed"
    CREATE_BEAD = "create_bead"

    @property
    def verb(self) -> str:
        """Human-readable verb used in the brief summary."""
        return {
            Action.CONTINUE: "Continue",
            Action.EXECUTE: "Execute plan for",
            Action.PLAN: "Plan",
            Action.STRATEGIZE: "Strategize",
            Action.BRAINSTORM: "Brainstorm",
            Action.SHIP: "Ship",
        }.get(self, "Review")


class ScanStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


class ScoreRecord(BaseModel):
    """A ranked candidate bead, or an orphaned artifact.

    Example:
        >>> record = ScoreRecord(id="Clavain-a1b", title="Gate engine",
        ...                      priority=1, status="open", action=Action.PLAN)
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    id: str | None = Field(..., description="Bead id; None for orphaned artifacts")
    title: str = Field(default="Untitled")
    priority: int = Field(default=4)
    status: str = Field(default="open")
    phase: str | None = Field(default=None, description="Recorded lifecycle phase")
    score: int = Field(default=0)
    action: Action = Field(..., description="Recommended next action")
    artifact_path: str | None = Field(
        default=None, description="Artifact backing the action (plan_path in JSON output)"
    )
    stale: bool = Field(default=False)
    claimed_by_other: bool = Field(default=False)
    parent_closed: bool = Field(default=False)

    @property
    def is_orphan(self) -> bool:
        return self.id is None


class ScanResult(BaseModel):
    """Outcome of a discovery scan.

    ``records`` is empty both for an empty backlog (status OK) and for
    the two failure sentinels, so callers must check ``status``.
    """

    status: ScanStatus = ScanStatus.OK
    records: list[ScoreRecord] = Field(default_factory=list)

    @classmethod
    def unavailable(cls) -> "ScanResult":
        return cls(status=ScanStatus.UNAVAILABLE)

    @classmethod
    def error(cls) -> "ScanResult":
        return cls(status=ScanStatus.ERROR)

    @property
    def ok(self) -> bool:
        return self.status is ScanStatus.OK

    @property
    def sentinel(self) -> str | None:
        """DISCOVERY_UNAVAILABLE / DISCOVERY_ERROR, or None when ok."""
        if self.status is ScanStatus.OK:
            return None
        return f"DISCOVERY_{self.status.value.upper()}"
