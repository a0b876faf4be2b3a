"""
Phase headers in markdown artifacts.

Brainstorms and plans carry a human-readable marker line, the secondary
record of a bead's phase:

    **Phase:** planned (as of 2026-01-15T12:34:56Z)

PRDs are shared across beads and never get a single-bead marker.
"""

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from interphase.core.repository import Repository

logger = logging.getLogger(__name__)

MARKER_PREFIX = "**Phase:**"
ANCHOR_PREFIX = "**Bead:**"
DEFAULT_PHASE_DIRS = ("docs/brainstorms", "docs/plans")

_AS_OF_SUFFIX = re.compile(r"\s*\(as of .*\)\s*$")
_BEAD_REFERENCE = re.compile(r"\*{0,2}Bead\*{0,2}:\*{0,2}\s*([A-Za-z]+-[A-Za-z0-9]+)")


def _format_marker(phase: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    return f"{MARKER_PREFIX} {phase} (as of {stamp})"


class ArtifactPhaseHeader:
    """
    Upsert and read **Phase:** markers in allow-listed artifact directories.

    Example:
        >>> headers = ArtifactPhaseHeader(Repository(project_dir))
        >>> headers.write_header("docs/plans/gates.md", "planned")
        >>> headers.read_header("docs/plans/gates.md")
        'planned'
    """

    def __init__(self, repository: Repository, phase_dirs: Sequence[str] = DEFAULT_PHASE_DIRS):
        self.repository = repository
        self.phase_dirs = tuple(d.strip("/") for d in phase_dirs)

    def is_allowed(self, path: str | Path) -> bool:
        """True when the artifact lives under one of the phase directories."""
        rel = "/" + Path(self.repository.relative(path)).as_posix()
        return any(f"/{d}/" in rel for d in self.phase_dirs)

    def write_header(self, path: str | Path, phase: str, now: datetime | None = None) -> None:
        """
        Write or replace the marker line.

        Resolution order: replace an existing marker; else insert after the
        **Bead:** line; else insert after the first top-level heading. A
        missing file, empty phase, or path outside the allow-list is a no-op.
        """
        if not path or not phase or not self.is_allowed(path):
            return

        content = self.repository.read_file(path)
        if content is None:
            return

        updated = self._upsert(content, _format_marker(phase, now))
        if updated is None or updated == content:
            return

        try:
            self.repository.write_file(path, updated)
        except OSError as e:
            logger.debug("Failed to write phase header to %s: %s", path, e)

    @staticmethod
    def _upsert(content: str, marker: str) -> str | None:
        lines = content.splitlines()
        trailing_newline = content.endswith("\n")

        marker_indexes = [i for i, line in enumerate(lines) if line.startswith(MARKER_PREFIX)]
        if marker_indexes:
            first = marker_indexes[0]
            lines[first] = marker
            for extra in reversed(marker_indexes[1:]):
                del lines[extra]
        else:
            anchor = next((i for i, line in enumerate(lines) if line.startswith(ANCHOR_PREFIX)), None)
            if anchor is None:
                anchor = next((i for i, line in enumerate(lines) if line.startswith("# ")), None)
            if anchor is None:
                return None
            lines.insert(anchor + 1, marker)

        result = "\n".join(lines)
        return result + "\n" if trailing_newline else result

    def read_header(self, path: str | Path | None) -> str | None:
        """Phase from the first marker line, without its timestamp."""
        if not path:
            return None
        content = self.repository.read_file(path)
        if content is None:
            return None

        for line in content.splitlines():
            if line.startswith(MARKER_PREFIX):
                value = _AS_OF_SUFFIX.sub("", line[len(MARKER_PREFIX):]).strip()
                return value or None
        return None


def infer_item_id(
    explicit: str | None,
    artifact_path: str | Path | None,
    repository: Repository | None = None,
) -> str | None:
    """
    Work out which bead the current run is about.

    An explicit id wins. Otherwise the first **Bead:** reference in the
    artifact is used; multiple references log a warning.
    """
    if explicit:
        return explicit
    if not artifact_path:
        return None

    if repository is not None:
        content = repository.read_file(artifact_path)
    else:
        try:
            content = Path(artifact_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            content = None
    if not content:
        return None

    matches = _BEAD_REFERENCE.findall(content)
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "Multiple bead IDs in %s, using first (%s). Set INTERPHASE_BEAD_ID for explicit control.",
            artifact_path,
            matches[0],
        )
    return matches[0]
