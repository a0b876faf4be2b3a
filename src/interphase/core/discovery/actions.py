"""
Recommended-action inference.

A recorded phase decides the next action. Beads with no phase fall back
to what the filesystem shows: an in-progress bead continues; otherwise
the most advanced artifact referencing the bead wins (plan > PRD >
brainstorm), and with no artifact at all the bead needs a brainstorm.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from interphase.core.phases.models import Phase
from interphase.core.repository import Repository
from interphase.core.tasks.models import ItemStatus

from .models import Action

PLANS_DIR = "docs/plans"
PRDS_DIR = "docs/prds"
BRAINSTORMS_DIR = "docs/brainstorms"

# Most advanced first
ARTIFACT_CATEGORIES: tuple[tuple[str, Action], ...] = (
    (PLANS_DIR, Action.EXECUTE),
    (PRDS_DIR, Action.PLAN),
    (BRAINSTORMS_DIR, Action.STRATEGIZE),
)

PHASE_ACTIONS: dict[Phase, Action] = {
    Phase.BRAINSTORM: Action.STRATEGIZE,
    Phase.BRAINSTORM_REVIEWED: Action.STRATEGIZE,
    Phase.STRATEGIZED: Action.PLAN,
    Phase.PLANNED: Action.EXECUTE,
    Phase.PLAN_REVIEWED: Action.EXECUTE,
    Phase.EXECUTING: Action.CONTINUE,
    Phase.SHIPPING: Action.SHIP,
    Phase.DONE: Action.CLOSED,
}


@dataclass(frozen=True)
class ActionInference:
    action: Action
    artifact_path: str | None = None


def reference_pattern(item_id: str) -> re.Pattern[str]:
    """
    Line pattern for a bead reference to exactly item_id.

    The id must not continue into a longer id: Foo-1 does not match
    "Bead: Foo-123" or "Bead: Foo-1-b", while trailing punctuation such
    as "Foo-1." or "(Foo-1)" still counts.
    """
    return re.compile(
        r"Bead.*?(?<![\w.-])" + re.escape(item_id) + r"(?![\w-]|\.\w)"
    )


class ArtifactFinder:
    """Locate markdown artifacts that reference a bead."""

    def __init__(self, repository: Repository):
        self.repository = repository

    def find_in(self, directory: str, item_id: str) -> str | None:
        """First artifact under directory referencing item_id, relative to the project."""
        pattern = reference_pattern(item_id)
        for path in self.repository.find_files(directory, "*.md"):
            content = self.repository.read_file(path)
            if content is None:
                continue
            if any(pattern.search(line) for line in content.splitlines()):
                return self.repository.relative(path)
        return None

    def find_all(self, item_id: str) -> dict[str, str]:
        """Map each category directory to its first matching artifact."""
        found = {}
        for directory, _ in ARTIFACT_CATEGORIES:
            path = self.find_in(directory, item_id)
            if path:
                found[directory] = path
        return found


def infer_from_artifacts(finder: ArtifactFinder, item_id: str, status: str) -> ActionInference:
    found = finder.find_all(item_id)
    if status == ItemStatus.IN_PROGRESS.value:
        return ActionInference(Action.CONTINUE, found.get(PLANS_DIR))
    for directory, action in ARTIFACT_CATEGORIES:
        if directory in found:
            return ActionInference(action, found[directory])
    return ActionInference(Action.BRAINSTORM)


def infer_action(
    finder: ArtifactFinder, item_id: str, status: str, phase: str | None
) -> ActionInference:
    """
    Recommended action for a bead.

    The artifact path is still resolved for phase-driven actions so the
    caller can point at the plan and measure its staleness.
    """
    parsed = Phase.parse(phase)
    if parsed is None:
        return infer_from_artifacts(finder, item_id, status)

    action = PHASE_ACTIONS[parsed]
    found = finder.find_all(item_id)
    artifact = next((found[d] for d, _ in ARTIFACT_CATEGORIES if d in found), None)
    return ActionInference(action, artifact)


def artifact_category(path: str | Path) -> str | None:
    """Category name (plan, prd, brainstorm) for an artifact path."""
    posix = "/" + Path(path).as_posix()
    for directory, name in ((PLANS_DIR, "plan"), (PRDS_DIR, "prd"), (BRAINSTORMS_DIR, "brainstorm")):
        if f"/{directory}/" in posix:
            return name
    return None
