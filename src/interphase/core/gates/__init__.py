"""
Phase gates.

Tiered enforcement of lifecycle transitions, with strict-mode fail-closed
handling and review staleness checks.
"""

from .engine import GateEngine
from .models import (
    CheckResult,
    DependencyCheck,
    EnforcementTier,
    ErrorClass,
    GateDecision,
    GateOutcome,
    ReviewStaleness,
    StalenessReport,
    TierResolution,
)
from .review import ReviewStalenessChecker

__all__ = [
    "CheckResult",
    "DependencyCheck",
    "EnforcementTier",
    "ErrorClass",
    "GateDecision",
    "GateEngine",
    "GateOutcome",
    "ReviewStaleness",
    "ReviewStalenessChecker",
    "StalenessReport",
    "TierResolution",
]
