"""
Gate models.

Enforcement tiers, error classification, review staleness, and the
outcome types returned by the gate engine.
"""

from dataclasses import dataclass
from enum import Enum


class EnforcementTier(str, Enum):
    """
    How strictly a bead's transitions are enforced, derived from priority.

    HARD = P0/P1 (block), SOFT = P2/P3 (warn), NONE = P4+ (no gate)
    """

    HARD = "hard"
    SOFT = "soft"
    NONE = "none"

    @classmethod
    def for_priority(cls, priority: int) -> "EnforcementTier":
        if priority <= 1:
            return cls.HARD
        if priority <= 3:
            return cls.SOFT
        return cls.NONE


class ErrorClass(str, Enum):
    """Classification of a failure during gate evaluation."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"


class ReviewStaleness(str, Enum):
    """State of the review covering an artifact."""

    FRESH = "fresh"
    STALE = "stale"
    NONE = "none"
    UNKNOWN = "unknown"


class GateDecision(str, Enum):
    """Decisions recorded in gate_enforce telemetry."""

    BYPASS = "bypass"
    PASS = "pass"
    PASS_NO_GATE = "pass-no-gate"
    SKIP = "skip"
    SKIP_STRICT_OVERRIDE = "skip-strict-override"
    WARN = "warn"
    WARN_STALE = "warn-stale"
    BLOCK = "block"
    BLOCK_STRICT_TRANSIENT = "block-strict-transient"
    BLOCK_STRICT_PERMANENT = "block-strict-permanent"

    @classmethod
    def strict_block(cls, error_class: ErrorClass) -> "GateDecision":
        if error_class is ErrorClass.TRANSIENT:
            return cls.BLOCK_STRICT_TRANSIENT
        return cls.BLOCK_STRICT_PERMANENT


@dataclass(frozen=True)
class TierResolution:
    """Tier for a bead plus the reason resolution failed, if it did."""

    tier: EnforcementTier
    error_class: ErrorClass | None = None
    error_reason: str = ""
    priority: int | None = None

    @property
    def failed(self) -> bool:
        return self.error_class is not None


@dataclass(frozen=True)
class StalenessReport:
    status: ReviewStaleness
    error_class: ErrorClass | None = None
    error_reason: str = ""
    findings_path: str | None = None


@dataclass(frozen=True)
class DependencyCheck:
    ok: bool
    error_class: ErrorClass | None = None
    error_reason: str = ""
    attempts: int = 1


@dataclass(frozen=True)
class CheckResult:
    """Result of a plain (untiered) phase gate check."""

    passed: bool
    current_phase: str | None
    target_phase: str


@dataclass(frozen=True)
class GateOutcome:
    """
    Public result of enforcing a gate.

    ``message`` carries the warning or the block reason with override
    guidance; it is None for silent passes.
    """

    proceed: bool
    decision: GateDecision | None
    tier: EnforcementTier
    message: str | None = None

    @property
    def blocked(self) -> bool:
        return not self.proceed
