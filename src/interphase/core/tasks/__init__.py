"""
Work item models and the tracker interface.

Provides the WorkItem model, the Tracker protocol with its beads CLI
implementation, and a typed view over claim state.
"""

from .beads import BeadsTracker
from .claims import Claim, ClaimManager, ClaimResult, ClaimView
from .models import ItemStatus, WorkItem
from .tracker import (
    Tracker,
    TrackerCommandError,
    TrackerDataError,
    TrackerError,
    TrackerNotAvailableError,
)

__all__ = [
    # Models
    "ItemStatus",
    "WorkItem",
    # Tracker
    "BeadsTracker",
    "Tracker",
    "TrackerCommandError",
    "TrackerDataError",
    "TrackerError",
    "TrackerNotAvailableError",
    # Claims
    "Claim",
    "ClaimManager",
    "ClaimResult",
    "ClaimView",
]
