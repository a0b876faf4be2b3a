"""
Tracker protocol.

The issue tracker owns every work item. Interphase talks to it through
this narrow interface so the beads CLI adapter can be swapped for an
in-memory fake in tests.
"""

from typing import Protocol, runtime_checkable

from .models import WorkItem


class TrackerError(Exception):
    """Base class for tracker failures."""


class TrackerNotAvailableError(TrackerError):
    """Raised when the tracker CLI or its backing store is missing."""


class TrackerCommandError(TrackerError):
    """Raised when a tracker call fails; it may succeed on retry."""


class TrackerDataError(TrackerError):
    """Raised when the tracker returns malformed data."""


@runtime_checkable
class Tracker(Protocol):
    """
    Operations interphase needs from the issue tracker.

    Every method may raise TrackerError. Callers in the core convert
    those exceptions into data at the call site.
    """

    def is_available(self) -> bool:
        """True when the tracker is installed and the project has a store."""
        ...

    def list_items(self, status: str) -> list[WorkItem]:
        """List items with the given status."""
        ...

    def show(self, item_id: str) -> WorkItem:
        """
        Fetch a single item.

        Raises:
            TrackerCommandError: If the lookup failed or the item does not exist
            TrackerDataError: If the record could not be parsed
        """
        ...

    def get_state(self, item_id: str, key: str) -> str | None:
        """Read a named state field; None when unset."""
        ...

    def set_state(self, item_id: str, key: str, value: str, reason: str | None = None) -> None:
        """Atomically set a named state field."""
        ...

    def append_note(self, item_id: str, text: str) -> None:
        """Append text to the item's notes."""
        ...

    def dependencies_of(self, item_id: str, direction: str, dep_type: str) -> list[WorkItem]:
        """List items related to item_id (direction 'up' or 'down')."""
        ...

    def reopen_unassigned(self, item_id: str) -> None:
        """Set status back to open and clear the assignee."""
        ...
