"""
Orphaned artifact detection.

An artifact under docs/{brainstorms,prds,plans} is orphaned when it
references no bead at all, or references a bead the tracker no longer
knows. A bead that exists in any status, closed included, keeps its
artifacts linked.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import frontmatter

from interphase.core.repository import Repository
from interphase.core.tasks.tracker import Tracker, TrackerError

from .actions import BRAINSTORMS_DIR, PLANS_DIR, PRDS_DIR
from .models import Action, ScoreRecord

logger = logging.getLogger(__name__)

ORPHAN_PRIORITY = 3
ORPHAN_STATUS = "orphan"

_CATEGORIES = (
    (BRAINSTORMS_DIR, "brainstorm"),
    (PRDS_DIR, "prd"),
    (PLANS_DIR, "plan"),
)
_BEAD_ID = re.compile(r"[Bb]ead[*:\s]*([A-Za-z]+-[A-Za-z0-9]+)")


@dataclass(frozen=True)
class OrphanArtifact:
    path: str
    type: str
    title: str
    bead_id: str | None = None

    def to_record(self) -> ScoreRecord:
        return ScoreRecord(
            id=None,
            title=self.title,
            priority=ORPHAN_PRIORITY,
            status=ORPHAN_STATUS,
            action=Action.CREATE_BEAD,
            artifact_path=self.path,
            score=0,
        )


def artifact_title(path: Path, content: str) -> str:
    """Title from frontmatter, else the first top-level heading, else the file stem."""
    try:
        post = frontmatter.loads(content)
    except Exception as e:
        # Malformed frontmatter: use the raw body
        logger.debug("Unparsable frontmatter in %s: %s", path, e)
        post = None

    if post is not None:
        title = post.metadata.get("title")
        if isinstance(title, str) and title.strip():
            return title.strip()
        content = post.content

    for line in content.splitlines():
        if line.startswith("# "):
            heading = line[2:].strip()
            if heading:
                return heading
    return path.stem


class OrphanScanner:
    """
    Find artifacts with no live bead.

    Example:
        >>> scanner = OrphanScanner(Repository(project_dir), tracker)
        >>> [o.path for o in scanner.scan()]
        ['docs/brainstorms/loose-idea.md']
    """

    def __init__(self, repository: Repository, tracker: Tracker):
        self.repository = repository
        self.tracker = tracker

    def _bead_exists(self, item_id: str) -> bool:
        try:
            self.tracker.show(item_id)
        except TrackerError:
            return False
        return True

    def scan(self) -> list[OrphanArtifact]:
        orphans = []
        for directory, kind in _CATEGORIES:
            for path in self.repository.find_files(directory, "*.md"):
                content = self.repository.read_file(path)
                if content is None:
                    continue

                match = _BEAD_ID.search(content)
                bead_id = match.group(1) if match else None
                if bead_id and self._bead_exists(bead_id):
                    continue

                orphans.append(
                    OrphanArtifact(
                        path=self.repository.relative(path),
                        type=kind,
                        title=artifact_title(path, content),
                        bead_id=bead_id,
                    )
                )
        return orphans
