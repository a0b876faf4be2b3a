"""
Work item data models for interphase.

A work item ("bead") is owned by the external tracker. These models
describe the subset of its record the gate engine and discovery scanner
read; interphase never persists them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ItemStatus(str, Enum):
    """Work item status values as reported by beads."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class WorkItem(BaseModel):
    """
    A bead as seen by interphase.

    Example:
        >>> item = WorkItem(id="Clavain-a1b", title="Gate engine", priority=1)
        >>> item.priority_label
        'P1'
    """

    id: str = Field(..., min_length=1, description="Tracker-assigned identifier")
    title: str = Field(default="Untitled", description="Item title")
    status: str = Field(default=ItemStatus.OPEN.value, description="open, in_progress, closed, ...")
    priority: int = Field(default=4, description="0-4, lower is more urgent")
    type: str = Field(default="task", description="Issue type", alias="issue_type")
    labels: list[str] = Field(default_factory=list, description="Item labels")
    assignee: str | None = Field(default=None, description="Assigned user or session")
    parent: str | None = Field(default=None, description="Parent epic ID")
    updated_at: datetime | None = Field(default=None, description="When the item last changed")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> int:
        """Accept 2, "2" and "P2"; reject anything else."""
        if v is None:
            return 4
        if isinstance(v, bool):
            raise ValueError(f"priority must be an integer, got {v!r}")
        if isinstance(v, int):
            value = v
        elif isinstance(v, str) and v.strip().upper().lstrip("P").isdigit():
            value = int(v.strip().upper().lstrip("P"))
        else:
            raise ValueError(f"priority must be an integer, got {v!r}")
        if value < 0:
            raise ValueError(f"priority must be non-negative, got {value}")
        return value

    @field_validator("updated_at", mode="before")
    @classmethod
    def parse_updated_at(cls, v: Any) -> datetime | None:
        """Unparsable timestamps become None so ranking can fall back."""
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            parsed = v
        elif isinstance(v, str):
            try:
                parsed = datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        else:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @field_validator("labels", mode="before")
    @classmethod
    def validate_labels(cls, v: Any) -> list[str]:
        if v is None:
            return []
        return v

    @computed_field
    @property
    def priority_label(self) -> str:
        return f"P{self.priority}"

    @property
    def is_open(self) -> bool:
        return self.status in (ItemStatus.OPEN.value, ItemStatus.IN_PROGRESS.value)

    def has_label(self, label: str) -> bool:
        """Check if the item has a specific label."""
        return label in self.labels
