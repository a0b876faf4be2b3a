"""
Interphase - lifecycle phase tracking and gates for beads.

Records where a bead is in its brainstorm-to-done lifecycle, enforces
priority-tiered gates on phase transitions, and ranks open work.
"""

__version__ = "0.4.0"

# Re-export core types for convenience
from interphase.core.config.models import InterphaseConfig
from interphase.core.gates.models import EnforcementTier, GateOutcome
from interphase.core.phases.models import Phase

__all__ = ["EnforcementTier", "GateOutcome", "InterphaseConfig", "Phase", "__version__"]
