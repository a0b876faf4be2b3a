"""
Work discovery.

Ranks open beads by priority, phase and recency, recommends the next
action for each, surfaces orphaned artifacts, and produces the cached
brief summary shown at session start.
"""

from .actions import ActionInference, ArtifactFinder, infer_action, reference_pattern
from .brief import NO_WORK, BriefScanner
from .models import Action, ScanResult, ScanStatus, ScoreRecord
from .orphans import OrphanArtifact, OrphanScanner
from .scanner import DiscoveryScanner, matches_lane
from .scoring import score_bead

__all__ = [
    "NO_WORK",
    "Action",
    "ActionInference",
    "ArtifactFinder",
    "BriefScanner",
    "DiscoveryScanner",
    "OrphanArtifact",
    "OrphanScanner",
    "ScanResult",
    "ScanStatus",
    "ScoreRecord",
    "infer_action",
    "matches_lane",
    "reference_pattern",
    "score_bead",
]
