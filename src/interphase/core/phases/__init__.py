"""
Lifecycle phases.

Phase enum, the fixed transition graph, and the two places a phase is
recorded: the bead's tracker state and artifact headers.
"""

from .artifacts import ArtifactPhaseHeader, infer_item_id
from .graph import DEFAULT_TRANSITIONS, TransitionGraph
from .models import Phase, PhaseRead
from .store import PhaseStore

__all__ = [
    "DEFAULT_TRANSITIONS",
    "ArtifactPhaseHeader",
    "Phase",
    "PhaseRead",
    "PhaseStore",
    "TransitionGraph",
    "infer_item_id",
]
