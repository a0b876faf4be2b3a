"""
Lifecycle service: the composition root.

Builds the tracker, phase store, artifact headers, gate engine, discovery
scanners and claim manager from one loaded configuration, and resolves
the sideband channel exactly once. The CLI and any other surface call
this service instead of wiring core packages themselves.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from interphase.core.config import InterphaseConfig, load_config
from interphase.core.discovery import BriefScanner, DiscoveryScanner, ScanResult
from interphase.core.gates import (
    GateEngine,
    GateOutcome,
    ReviewStalenessChecker,
    StalenessReport,
    TierResolution,
)
from interphase.core.phases import ArtifactPhaseHeader, PhaseStore, TransitionGraph, infer_item_id
from interphase.core.repository import Repository
from interphase.core.sideband import SidebandPublisher, resolve_sideband_channel
from interphase.core.tasks import BeadsTracker, ClaimManager, ClaimResult, Tracker
from interphase.core.telemetry import TelemetryLog
from interphase.utils.project import get_project_root


class LifecycleService:
    """
    Phase, gate, discovery and claim operations for one project.

    Example:
        >>> service = LifecycleService.from_project_dir(Path.cwd())
        >>> outcome = service.enforce_gate("Clavain-a1b", "executing", "docs/plans/gates.md")
        >>> if outcome.proceed:
        ...     service.advance_phase("Clavain-a1b", "executing", "plan approved")
    """

    def __init__(
        self,
        project_dir: Path,
        config: InterphaseConfig,
        tracker: Tracker,
        telemetry: TelemetryLog | None = None,
    ) -> None:
        self.project_dir = project_dir
        self.config = config
        self.tracker = tracker
        self.telemetry = telemetry or TelemetryLog(config.telemetry.path)
        self.repository = Repository(project_dir)

        cache_dir = config.discovery.cache_dir or Path(tempfile.gettempdir())

        self.store = PhaseStore(tracker, self.telemetry)
        self.headers = ArtifactPhaseHeader(self.repository, config.gates.artifact_phase_dirs)
        self.publisher = SidebandPublisher(
            resolve_sideband_channel(config.sideband),
            config.session_id,
            state_dir=config.sideband.state_dir,
        )
        self.gates = GateEngine(
            tracker,
            self.store,
            self.headers,
            self.telemetry,
            ReviewStalenessChecker(self.repository, config.gates.review_dir),
            self.publisher,
            config=config.gates,
            graph=TransitionGraph(),
        )
        self.scanner = DiscoveryScanner(
            tracker,
            self.store,
            self.repository,
            self.telemetry,
            config=config.discovery,
            session_id=config.session_id,
        )
        self.brief = BriefScanner(
            self.scanner,
            project_dir,
            cache_dir=cache_dir,
            ttl_seconds=config.discovery.brief_cache_ttl_seconds,
        )
        self.claims = ClaimManager(
            tracker,
            cache_dir,
            window_seconds=config.discovery.claim_window_minutes * 60,
        )

    @classmethod
    def from_project_dir(cls, project_dir: Path | None = None) -> LifecycleService:
        """
        Create the service for a project, using the beads tracker.

        Args:
            project_dir: Project root directory (auto-detected if None)
        """
        if project_dir is None:
            project_dir = get_project_root()

        config = load_config(project_dir)
        return cls(project_dir, config, BeadsTracker(project_dir))

    # ------------------------------------------------------------------
    # Bead resolution
    # ------------------------------------------------------------------

    def resolve_item_id(self, explicit: str | None, artifact_path: str | None = None) -> str | None:
        """Explicit id, then the configured bead, then the artifact's **Bead:** line."""
        return infer_item_id(explicit or self.config.item_id, artifact_path, self.repository)

    # ------------------------------------------------------------------
    # Phases and gates
    # ------------------------------------------------------------------

    def get_phase(self, item_id: str, artifact_path: str | None = None) -> str | None:
        return self.gates.get_phase_with_fallback(item_id, artifact_path)

    def set_phase(self, item_id: str, phase: str, reason: str | None = None) -> None:
        self.store.set_phase(item_id, phase, reason)

    def check_gate(self, item_id: str, target: str, artifact_path: str | None = None) -> bool:
        return self.gates.check_transition(item_id, target, artifact_path).passed

    def enforce_gate(
        self,
        item_id: str | None,
        target: str,
        artifact_path: str | None = None,
        skip_reason: str | None = None,
    ) -> GateOutcome:
        return self.gates.enforce_gate(item_id, target, artifact_path, skip_reason)

    def advance_phase(
        self,
        item_id: str,
        target: str,
        reason: str | None = None,
        artifact_path: str | None = None,
    ) -> None:
        self.gates.advance_phase(item_id, target, reason, artifact_path)

    def resolve_tier(self, item_id: str) -> TierResolution:
        return self.gates.resolve_tier(item_id)

    def check_staleness(self, item_id: str | None, artifact_path: str) -> StalenessReport:
        return self.gates.check_staleness(item_id, artifact_path)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def scan(self, lane_filter: str | None = None) -> ScanResult:
        return self.scanner.scan(lane_filter)

    def brief_summary(self) -> str | None:
        return self.brief.summary()

    def log_selection(self, item_id: str, action: str, recommended: bool) -> None:
        self.scanner.log_selection(item_id, action, recommended)

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def claim(self, item_id: str, session_id: str | None = None) -> ClaimResult:
        return self.claims.claim(item_id, self._session(session_id))

    def heartbeat(self, item_id: str, session_id: str | None = None) -> bool:
        return self.claims.heartbeat(item_id, self._session(session_id))

    def release(self, item_id: str, session_id: str | None = None) -> bool:
        return self.claims.release(item_id, self._session(session_id))

    def _session(self, session_id: str | None) -> str:
        session = session_id or self.config.session_id
        if not session:
            raise ValueError("No session id: pass one or set CLAUDE_SESSION_ID")
        return session
