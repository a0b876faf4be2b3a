"""
Phase gate engine.

Decides whether a bead may move to a target phase. Enforcement is tiered
by priority:

- hard (P0/P1): invalid transitions block unless overridden with an
  audited skip reason; a stale review downgrades the block to a warning
- soft (P2/P3): invalid transitions warn and proceed
- none (P4+): no gate

Legacy mode is fail-open: any error while evaluating the gate degrades to
"proceed" and is recorded only in telemetry. Strict mode makes hard-tier
evaluation errors fail closed, again overridable with a skip reason.

Checking (enforce_gate) and acting (advance_phase) are separate calls;
callers gate first and then advance.
"""

import logging
from datetime import datetime, timezone

from interphase.core.config.models import GatesConfig
from interphase.core.phases.artifacts import ArtifactPhaseHeader
from interphase.core.phases.graph import TransitionGraph
from interphase.core.phases.store import PhaseStore
from interphase.core.sideband.publisher import SidebandPublisher
from interphase.core.tasks.tracker import Tracker, TrackerDataError, TrackerError
from interphase.core.telemetry.logger import TelemetryLog

from .models import (
    CheckResult,
    DependencyCheck,
    EnforcementTier,
    ErrorClass,
    GateDecision,
    GateOutcome,
    ReviewStaleness,
    StalenessReport,
    TierResolution,
)
from .review import ReviewStalenessChecker

logger = logging.getLogger(__name__)

OVERRIDE_HINT = 'Set INTERPHASE_SKIP_GATE="reason" to override'


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GateEngine:
    """
    Tiered phase-gate enforcement for beads.

    Example:
        >>> engine = GateEngine(tracker, store, headers, telemetry, checker, publisher)
        >>> outcome = engine.enforce_gate("Clavain-a1b", "executing", "docs/plans/gates.md")
        >>> if outcome.proceed:
        ...     engine.advance_phase("Clavain-a1b", "executing", "plan approved")
    """

    def __init__(
        self,
        tracker: Tracker,
        store: PhaseStore,
        headers: ArtifactPhaseHeader,
        telemetry: TelemetryLog,
        review_checker: ReviewStalenessChecker,
        publisher: SidebandPublisher,
        config: GatesConfig | None = None,
        graph: TransitionGraph | None = None,
    ):
        self.tracker = tracker
        self.store = store
        self.headers = headers
        self.telemetry = telemetry
        self.review_checker = review_checker
        self.publisher = publisher
        self.config = config or GatesConfig()
        self.graph = graph or TransitionGraph()

    # ------------------------------------------------------------------
    # Phase resolution and plain gate check
    # ------------------------------------------------------------------

    def get_phase_with_fallback(self, item_id: str | None, artifact_path: str | None = None) -> str | None:
        """
        Current phase: tracker state first, then the artifact header.

        When both are set and disagree, a phase_desync event is logged and
        the tracker value wins.
        """
        bead_phase = self.store.get_phase(item_id) if item_id else None
        artifact_phase = self.headers.read_header(artifact_path) if artifact_path else None

        if bead_phase:
            if artifact_phase and artifact_phase != bead_phase:
                logger.warning(
                    "Phase desync for %s: beads=%s, artifact=%s",
                    item_id,
                    bead_phase,
                    artifact_phase,
                )
                self.telemetry.phase_desync(item_id or "", bead_phase, artifact_phase, artifact_path)
            return bead_phase

        return artifact_phase or None

    def check_transition(
        self, item_id: str | None, target: str | None, artifact_path: str | None = None
    ) -> CheckResult:
        """
        Test the transition from the current phase to target.

        Missing inputs pass without a check.
        """
        if not item_id or not target:
            return CheckResult(passed=True, current_phase=None, target_phase=target or "")

        current = self.get_phase_with_fallback(item_id, artifact_path)
        passed = self.graph.is_valid_transition(current, target)
        if not passed:
            logger.warning("Phase gate blocked %s -> %s for %s", current or "(none)", target, item_id)
        self.telemetry.gate_check(item_id, current, target, "pass" if passed else "blocked")
        return CheckResult(passed=passed, current_phase=current, target_phase=target)

    # ------------------------------------------------------------------
    # Tier, dependency and review inputs
    # ------------------------------------------------------------------

    def resolve_tier(self, item_id: str | None) -> TierResolution:
        """Enforcement tier from the bead's priority, with classified errors."""
        if not item_id:
            return TierResolution(EnforcementTier.NONE, None, "missing_id")

        try:
            item = self.tracker.show(item_id)
        except TrackerDataError as e:
            logger.debug("Malformed priority for %s: %s", item_id, e)
            return TierResolution(EnforcementTier.NONE, ErrorClass.PERMANENT, "priority_malformed")
        except TrackerError as e:
            logger.debug("Tracker unreachable resolving tier for %s: %s", item_id, e)
            return TierResolution(EnforcementTier.NONE, ErrorClass.TRANSIENT, "tracker_unreachable")

        return TierResolution(EnforcementTier.for_priority(item.priority), priority=item.priority)

    def get_enforcement_tier(self, item_id: str | None) -> EnforcementTier:
        """Tier only; resolution errors read as NONE."""
        return self.resolve_tier(item_id).tier

    def check_dependency(self) -> DependencyCheck:
        """
        The sideband writer must be usable when a session expects status
        updates. Without a session there is nothing to require.
        """
        if not self.publisher.session_id:
            return DependencyCheck(ok=True)

        channel = self.publisher.channel
        if channel is not None and channel.is_available():
            return DependencyCheck(ok=True)

        return DependencyCheck(
            ok=False,
            error_class=ErrorClass.TRANSIENT,
            error_reason="dependency_unavailable",
        )

    def check_dependency_with_retry(self) -> DependencyCheck:
        """Retry transient dependency failures; permanent ones abort at once."""
        attempts = self.config.dependency_retry_attempts
        result = DependencyCheck(ok=False, error_class=ErrorClass.TRANSIENT,
                                 error_reason="dependency_check_failed")
        for attempt in range(1, attempts + 1):
            result = self.check_dependency()
            if result.ok or result.error_class is not ErrorClass.TRANSIENT:
                break
        return DependencyCheck(
            ok=result.ok,
            error_class=result.error_class,
            error_reason=result.error_reason,
            attempts=attempt,
        )

    def check_staleness(self, item_id: str | None, artifact_path: str | None) -> StalenessReport:
        return self.review_checker.check(item_id, artifact_path)

    # ------------------------------------------------------------------
    # Enforcement
    # ------------------------------------------------------------------

    def _append_audit(self, item_id: str, entry: str) -> None:
        try:
            self.tracker.append_note(item_id, entry)
        except TrackerError as e:
            logger.warning("Failed to write skip-gate audit entry for %s: %s", item_id, e)

    def _strict_fail_or_skip(
        self,
        item_id: str,
        target: str,
        tier: EnforcementTier,
        error_class: ErrorClass,
        error_reason: str,
        skip_reason: str | None,
        priority: int | None = None,
    ) -> GateOutcome:
        """
        The one place strict mode changes the verdict: skip with an audit
        note when overridden, otherwise block with the error class and reason.
        """
        if skip_reason:
            self._append_audit(
                item_id,
                f"[{_utc_stamp()}] Strict gate skipped: {target} "
                f"(class={error_class.value}, reason: {error_reason}, override: {skip_reason})",
            )
            self.telemetry.gate_enforce(
                item_id,
                priority,
                tier.value,
                GateDecision.SKIP_STRICT_OVERRIDE.value,
                f"class={error_class.value} reason={error_reason} override={skip_reason}",
            )
            return GateOutcome(
                proceed=True,
                decision=GateDecision.SKIP_STRICT_OVERRIDE,
                tier=tier,
                message=f"strict gate for {target} skipped on {item_id}: {skip_reason}",
            )

        message = (
            f"strict gate blocked {target} for {item_id} "
            f"(tier={tier.value}, class={error_class.value}, reason={error_reason}). "
            f"{OVERRIDE_HINT} strict block."
        )
        logger.error(message)
        decision = GateDecision.strict_block(error_class)
        self.telemetry.gate_enforce(item_id, priority, tier.value, decision.value, error_reason)
        return GateOutcome(proceed=False, decision=decision, tier=tier, message=message)

    def enforce_gate(
        self,
        item_id: str | None,
        target: str | None,
        artifact_path: str | None = None,
        skip_reason: str | None = None,
    ) -> GateOutcome:
        """
        Decide whether a bead may proceed to target.

        Args:
            item_id: Bead identifier
            target: Target phase
            artifact_path: Artifact backing the transition (enables review checks)
            skip_reason: Audited override; defaults to the configured skip reason

        Returns:
            GateOutcome; only hard-tier and strict-mode paths can block
        """
        skip_reason = skip_reason if skip_reason is not None else self.config.skip_reason

        if self.config.disable_gates:
            message = "gate enforcement DISABLED by INTERPHASE_DISABLE_GATES"
            logger.warning(message)
            self.telemetry.gate_enforce(
                item_id or "", None, EnforcementTier.NONE.value,
                GateDecision.BYPASS.value, "INTERPHASE_DISABLE_GATES",
            )
            return GateOutcome(True, GateDecision.BYPASS, EnforcementTier.NONE, message)

        if not item_id or not target:
            return GateOutcome(True, None, EnforcementTier.NONE)

        resolution = self.resolve_tier(item_id)
        tier = resolution.tier
        priority = resolution.priority
        strict = self.config.strict_mode and (tier is EnforcementTier.HARD or resolution.failed)

        if resolution.failed:
            if strict:
                return self._strict_fail_or_skip(
                    item_id, target, EnforcementTier.HARD,
                    resolution.error_class, resolution.error_reason, skip_reason, priority,
                )
            tier = EnforcementTier.NONE

        if tier is EnforcementTier.NONE:
            self.telemetry.gate_enforce(item_id, priority, tier.value, GateDecision.PASS_NO_GATE.value)
            return GateOutcome(True, GateDecision.PASS_NO_GATE, tier)

        if strict:
            dependency = self.check_dependency_with_retry()
            if not dependency.ok:
                return self._strict_fail_or_skip(
                    item_id, target, tier,
                    dependency.error_class or ErrorClass.TRANSIENT,
                    dependency.error_reason or "dependency_check_failed",
                    skip_reason, priority,
                )

        check = self.check_transition(item_id, target, artifact_path)
        if check.passed:
            self.telemetry.gate_enforce(item_id, priority, tier.value, GateDecision.PASS.value)
            return GateOutcome(True, GateDecision.PASS, tier)

        staleness = StalenessReport(ReviewStaleness.UNKNOWN)
        if artifact_path:
            staleness = self.check_staleness(item_id, artifact_path)
        if (
            strict
            and staleness.status is ReviewStaleness.UNKNOWN
            and staleness.error_class is not None
        ):
            return self._strict_fail_or_skip(
                item_id, target, tier,
                staleness.error_class, staleness.error_reason, skip_reason, priority,
            )

        stale = staleness.status is ReviewStaleness.STALE

        if tier is EnforcementTier.HARD:
            if skip_reason:
                self._append_audit(
                    item_id,
                    f"[{_utc_stamp()}] Gate skipped: {target} (tier=hard, reason: {skip_reason})",
                )
                self.telemetry.gate_enforce(
                    item_id, priority, tier.value, GateDecision.SKIP.value, skip_reason
                )
                return GateOutcome(
                    True, GateDecision.SKIP, tier,
                    f"gate for {target} skipped on {item_id}: {skip_reason}",
                )

            if stale:
                message = f"review is stale for {item_id}; refresh the review before {target}"
                logger.warning(message)
                self.telemetry.gate_enforce(item_id, priority, tier.value, GateDecision.WARN_STALE.value)
                return GateOutcome(True, GateDecision.WARN_STALE, tier, message)

            message = (
                f"phase gate blocked {check.current_phase or '(none)'} -> {target} "
                f"for {item_id} (tier=hard). {OVERRIDE_HINT}, or run a review first."
            )
            logger.error(message)
            self.telemetry.gate_enforce(item_id, priority, tier.value, GateDecision.BLOCK.value)
            return GateOutcome(False, GateDecision.BLOCK, tier, message)

        message = f"phase gate would block {target} for {item_id} (tier=soft, proceeding)"
        if stale:
            message += "; review is stale, consider refreshing it"
        logger.warning(message)
        self.telemetry.gate_enforce(item_id, priority, tier.value, GateDecision.WARN.value)
        return GateOutcome(True, GateDecision.WARN, tier, message)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def advance_phase(
        self,
        item_id: str | None,
        target: str | None,
        reason: str | None = None,
        artifact_path: str | None = None,
    ) -> None:
        """
        Record a new phase on the bead and its artifact, then publish it.

        Does not run the gate; call enforce_gate first when gating matters.
        """
        if not item_id or not target:
            return

        self.store.set_phase(item_id, target, reason)
        if artifact_path:
            self.headers.write_header(artifact_path, target)
        self.telemetry.phase_advance(item_id, target, reason, artifact_path)
        self.publisher.publish(item_id, target, reason)
