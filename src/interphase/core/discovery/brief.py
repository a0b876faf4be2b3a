"""
Brief work summary for session start.

One line such as:

    5 open beads (2 in-progress). Top: Execute plan for Clavain-a1b — Gate engine (P1)

The summary is cached per project for a short TTL. An empty backlog is
cached as an explicit no-work sentinel so repeated calls do not requery
the tracker; a missing cache file means "not yet cached".
"""

import logging
import tempfile
import time
from pathlib import Path

from interphase.core.repository import atomic_write_text
from interphase.core.tasks.models import ItemStatus
from interphase.core.tasks.tracker import TrackerError

from .scanner import DiscoveryScanner

logger = logging.getLogger(__name__)

NO_WORK = "<no-work>"


def cache_key(project_dir: Path) -> str:
    return str(project_dir.resolve()).replace("/", "_")


class BriefScanner:
    """
    Cached one-line summary of open work.

    Example:
        >>> brief = BriefScanner(scanner, project_dir, ttl_seconds=60)
        >>> brief.summary()
        '3 open beads. Top: Plan Clavain-a1b — Gate engine (P1)'
    """

    def __init__(
        self,
        scanner: DiscoveryScanner,
        project_dir: Path,
        cache_dir: Path | None = None,
        ttl_seconds: int = 60,
    ):
        self.scanner = scanner
        self.project_dir = project_dir
        self.cache_dir = cache_dir or Path(tempfile.gettempdir())
        self.ttl_seconds = ttl_seconds

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / f"interphase-discovery-brief-{cache_key(self.project_dir)}.cache"

    def _read_cache(self, now: float) -> str | None:
        try:
            age = now - self.cache_path.stat().st_mtime
            if not 0 <= age < self.ttl_seconds:
                return None
            return self.cache_path.read_text(encoding="utf-8").strip()
        except OSError:
            return None

    def _write_cache(self, content: str) -> None:
        try:
            atomic_write_text(self.cache_path, content + "\n")
        except OSError as e:
            logger.debug("Failed to write brief cache %s: %s", self.cache_path, e)

    def summary(self, now: float | None = None) -> str | None:
        """
        The summary line, or None when there is nothing to report or the
        tracker is unavailable.
        """
        now = time.time() if now is None else now

        cached = self._read_cache(now)
        if cached == NO_WORK:
            return None
        if cached:
            return cached

        tracker = self.scanner.tracker
        if not tracker.is_available():
            return None

        try:
            open_items = tracker.list_items(ItemStatus.OPEN.value)
        except TrackerError as e:
            logger.debug("Brief scan query failed: %s", e)
            return None
        try:
            in_progress = tracker.list_items(ItemStatus.IN_PROGRESS.value)
        except TrackerError:
            in_progress = []

        total = len(open_items) + len(in_progress)
        if total == 0:
            self._write_cache(NO_WORK)
            return None

        top = min(open_items + in_progress, key=lambda item: item.priority)
        phase = self.scanner.store.get_phase(top.id)
        verb = self.scanner.infer_action(top, phase).action.verb

        counts = f"{total} open beads"
        if in_progress:
            counts += f" ({len(in_progress)} in-progress)"
        summary = f"{counts}. Top: {verb} {top.id} — {top.title} ({top.priority_label})"

        self._write_cache(summary)
        return summary
