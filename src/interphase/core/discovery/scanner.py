"""
Work discovery scanner.

Ranks open and in-progress beads by what to work on next. Each candidate
gets a phase (best-effort), a recommended action, a staleness flag and a
score; orphaned artifacts are appended after the ranked beads.

Scanning has one deliberate side effect: claims older than the claim
window are released so abandoned beads become available again. Another
scanner may race the release; the last write wins.
"""

import logging
from datetime import datetime, timedelta, timezone

from interphase.core.config.models import DiscoveryConfig
from interphase.core.phases.store import PhaseStore
from interphase.core.repository import Repository
from interphase.core.tasks.claims import ClaimView
from interphase.core.tasks.models import ItemStatus, WorkItem
from interphase.core.tasks.tracker import Tracker, TrackerError, TrackerNotAvailableError
from interphase.core.telemetry.logger import TelemetryLog

from .actions import ActionInference, ArtifactFinder, infer_action
from .models import ScanResult, ScoreRecord
from .orphans import OrphanScanner
from .scoring import score_bead

logger = logging.getLogger(__name__)

EPIC_TYPE = "epic"
PARENT_CHILD = "parent-child"


def matches_lane(item: WorkItem, lane: str) -> bool:
    """A bead is in a lane when it carries the lane label or lane:<name>."""
    return item.has_label(lane) or item.has_label(f"lane:{lane}")


class DiscoveryScanner:
    """
    Rank beads for the "what next?" question.

    Example:
        >>> scanner = DiscoveryScanner(tracker, store, repository, telemetry, session_id="abc")
        >>> result = scanner.scan()
        >>> result.records[0].action
        <Action.EXECUTE: 'execute'>
    """

    def __init__(
        self,
        tracker: Tracker,
        store: PhaseStore,
        repository: Repository,
        telemetry: TelemetryLog,
        config: DiscoveryConfig | None = None,
        session_id: str | None = None,
    ):
        self.tracker = tracker
        self.store = store
        self.repository = repository
        self.telemetry = telemetry
        self.config = config or DiscoveryConfig()
        self.session_id = session_id
        self.finder = ArtifactFinder(repository)
        self.claims = ClaimView(tracker)
        self.orphans = OrphanScanner(repository, tracker)

    def infer_action(self, item: WorkItem, phase: str | None = None) -> ActionInference:
        return infer_action(self.finder, item.id, item.status, phase)

    def fetch_candidates(self) -> list[WorkItem] | None:
        """
        Open plus in-progress beads.

        Returns None when the primary (open) query fails; the in-progress
        query degrades to empty.

        Raises:
            TrackerNotAvailableError: If the tracker disappears mid-scan
        """
        try:
            items = list(self.tracker.list_items(ItemStatus.OPEN.value))
        except TrackerNotAvailableError:
            raise
        except TrackerError as e:
            logger.warning("Discovery query for open beads failed: %s", e)
            return None

        try:
            in_progress = self.tracker.list_items(ItemStatus.IN_PROGRESS.value)
        except TrackerError as e:
            logger.debug("In-progress query failed, continuing without it: %s", e)
            in_progress = []

        seen = {item.id for item in items}
        items.extend(item for item in in_progress if item.id not in seen)
        return items

    def closed_epic_children(self) -> tuple[set[str], set[str]]:
        """
        Batch pre-scan of closed epics.

        Returns:
            (closed epic ids, ids of their children)
        """
        try:
            closed = self.tracker.list_items(ItemStatus.CLOSED.value)
        except TrackerError as e:
            logger.debug("Closed-epic pre-scan failed: %s", e)
            return set(), set()

        epic_ids = {item.id for item in closed if item.type == EPIC_TYPE}
        children: set[str] = set()
        for epic_id in sorted(epic_ids):
            try:
                deps = self.tracker.dependencies_of(epic_id, "down", PARENT_CHILD)
            except TrackerError as e:
                logger.debug("Could not list children of %s: %s", epic_id, e)
                continue
            children.update(dep.id for dep in deps)
        return epic_ids, children

    def is_stale(self, item: WorkItem, artifact_path: str | None, now: datetime) -> bool:
        """
        Untouched for longer than the staleness threshold.

        Uses the backing artifact's mtime when there is one, else the bead's
        updated_at. Anything indeterminate is not stale.
        """
        threshold = now - timedelta(days=self.config.stale_after_days)
        try:
            if artifact_path and self.repository.exists(artifact_path):
                mtime = self.repository.mtime(artifact_path)
                if mtime is None:
                    return False
                return datetime.fromtimestamp(mtime, tz=timezone.utc) < threshold
            if item.updated_at is not None:
                return item.updated_at < threshold
        except (OSError, OverflowError, ValueError, TypeError) as e:
            logger.debug("Staleness check failed for %s: %s", item.id, e)
        return False

    def claimed_by_other(self, item_id: str, now: datetime) -> bool:
        """
        True when another session holds a fresh claim. Abandoned claims
        are released here.
        """
        claim = self.claims.read(item_id)
        if not claim.is_held:
            return False

        epoch = now.timestamp()
        window = self.config.claim_window_minutes * 60
        if claim.is_fresh(epoch, window):
            return claim.claimed_by != self.session_id

        logger.info("Releasing abandoned claim on %s held by %s", item_id, claim.claimed_by)
        try:
            self.claims.clear(item_id)
        except TrackerError as e:
            logger.debug("Failed to release abandoned claim on %s: %s", item_id, e)
        return False

    def score_item(
        self,
        item: WorkItem,
        now: datetime,
        closed_epics: set[str],
        closed_children: set[str],
    ) -> ScoreRecord:
        phase = self.store.get_phase(item.id)
        inference = self.infer_action(item, phase)
        stale = self.is_stale(item, inference.artifact_path, now)
        parent_closed = item.id in closed_children or (
            item.parent is not None and item.parent in closed_epics
        )
        claimed = self.claimed_by_other(item.id, now)

        return ScoreRecord(
            id=item.id,
            title=item.title,
            priority=item.priority,
            status=item.status,
            phase=phase,
            action=inference.action,
            artifact_path=inference.artifact_path,
            stale=stale,
            parent_closed=parent_closed,
            claimed_by_other=claimed,
            score=score_bead(
                item.priority,
                phase,
                item.updated_at,
                stale=stale,
                parent_closed=parent_closed,
                claimed_by_other=claimed,
                now=now,
            ),
        )

    def scan(self, lane_filter: str | None = None, now: datetime | None = None) -> ScanResult:
        """
        Rank candidate beads.

        Args:
            lane_filter: Only rank beads in this lane (defaults to config)
            now: Reference time (for tests)

        Returns:
            ScanResult; UNAVAILABLE without a tracker, ERROR when the
            primary query fails, otherwise ranked records (possibly empty)
        """
        now = now or datetime.now(timezone.utc)
        lane = lane_filter if lane_filter is not None else self.config.lane_filter

        if not self.tracker.is_available():
            return ScanResult.unavailable()

        try:
            items = self.fetch_candidates()
        except TrackerNotAvailableError:
            return ScanResult.unavailable()
        if items is None:
            return ScanResult.error()

        if lane:
            items = [item for item in items if matches_lane(item, lane)]

        closed_epics, closed_children = self.closed_epic_children() if items else (set(), set())
        records = [self.score_item(item, now, closed_epics, closed_children) for item in items]
        records.sort(key=lambda r: (-r.score, r.id or ""))

        orphans = sorted(self.orphans.scan(), key=lambda o: o.path)
        records.extend(orphan.to_record() for orphan in orphans)

        return ScanResult(records=records)

    def log_selection(self, item_id: str, action: str, recommended: bool) -> None:
        """Record which discovery option was chosen."""
        self.telemetry.discovery_select(item_id, action, recommended)
