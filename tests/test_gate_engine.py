"""
Tests for the tiered phase gate engine.

Covers tier resolution, legacy fail-open behavior, hard-tier blocking and
audited skips, stale-review downgrades, strict-mode fail-closed paths,
and phase advancement.
"""

import logging
from unittest.mock import patch

import pytest

from interphase.core.gates import (
    EnforcementTier,
    ErrorClass,
    GateDecision,
)
from interphase.core.repository import Commit, Repository
from interphase.core.sideband import SidebandPublisher
from interphase.core.tasks.tracker import (
    TrackerCommandError,
    TrackerDataError,
    TrackerNotAvailableError,
)
from interphase.utils.git import GitCommandError

BEAD = "Clavain-a1b"
PLAN = "docs/plans/gates.md"


@pytest.fixture
def bead_at_brainstorm(tracker):
    """A bead whose recorded phase makes brainstorm -> executing invalid."""

    def _make(priority: int):
        tracker.add(BEAD, title="Gate engine", priority=priority)
        tracker.state[(BEAD, "phase")] = "brainstorm"

    return _make


@pytest.fixture
def plan_doc(write_doc):
    return write_doc(PLAN, f"# Gates\n**Bead:** {BEAD}\n")


@pytest.fixture
def fresh_review(write_review, plan_doc):
    write_review("gates", bead_id=BEAD, input=PLAN, reviewed="2026-01-15T12:00:00Z")
    with patch.object(Repository, "commits_since", return_value=[]):
        yield


@pytest.fixture
def stale_review(write_review, plan_doc):
    write_review("gates", bead_id=BEAD, input=PLAN, reviewed="2026-01-15T12:00:00Z")
    commit = Commit(hash="abc123", message="edit plan", timestamp="2026-01-20T08:00:00+00:00")
    with patch.object(Repository, "commits_since", return_value=[commit]):
        yield


# ==============================================================================
# Tier resolution
# ==============================================================================


class TestResolveTier:
    @pytest.mark.parametrize(
        "priority,tier",
        [
            (0, EnforcementTier.HARD),
            (1, EnforcementTier.HARD),
            (2, EnforcementTier.SOFT),
            (3, EnforcementTier.SOFT),
            (4, EnforcementTier.NONE),
        ],
    )
    def test_priority_mapping(self, make_engine, tracker, priority, tier):
        tracker.add(BEAD, priority=priority)
        resolution = make_engine().resolve_tier(BEAD)
        assert resolution.tier is tier
        assert resolution.error_class is None
        assert resolution.priority == priority

    def test_missing_id(self, make_engine):
        resolution = make_engine().resolve_tier(None)
        assert resolution.tier is EnforcementTier.NONE
        assert resolution.error_class is None
        assert resolution.error_reason == "missing_id"

    def test_tracker_unreachable_is_transient(self, make_engine, tracker):
        tracker.fail["show"] = TrackerCommandError("timeout")
        resolution = make_engine().resolve_tier(BEAD)
        assert resolution.tier is EnforcementTier.NONE
        assert resolution.error_class is ErrorClass.TRANSIENT
        assert resolution.error_reason == "tracker_unreachable"

    def test_tracker_not_installed_is_transient(self, make_engine, tracker):
        tracker.fail["show"] = TrackerNotAvailableError("no bd")
        assert make_engine().resolve_tier(BEAD).error_class is ErrorClass.TRANSIENT

    def test_malformed_priority_is_permanent(self, make_engine, tracker):
        tracker.fail["show"] = TrackerDataError("priority 'high'")
        resolution = make_engine().resolve_tier(BEAD)
        assert resolution.error_class is ErrorClass.PERMANENT
        assert resolution.error_reason == "priority_malformed"


# ==============================================================================
# Phase resolution and plain checks
# ==============================================================================


class TestPhaseWithFallback:
    def test_tracker_phase_wins(self, make_engine, tracker):
        tracker.state[(BEAD, "phase")] = "planned"
        assert make_engine().get_phase_with_fallback(BEAD) == "planned"

    def test_falls_back_to_artifact(self, make_engine, write_doc):
        path = write_doc(PLAN, "# Plan\n**Phase:** strategized (as of 2026-01-01T00:00:00Z)\n")
        assert make_engine().get_phase_with_fallback(BEAD, path) == "strategized"

    def test_desync_prefers_tracker_and_logs(self, make_engine, tracker, write_doc, read_events):
        tracker.state[(BEAD, "phase")] = "planned"
        path = write_doc(PLAN, "# Plan\n**Phase:** executing\n")

        assert make_engine().get_phase_with_fallback(BEAD, path) == "planned"

        events = read_events("phase_desync")
        assert len(events) == 1
        assert events[0]["bead_phase"] == "planned"
        assert events[0]["artifact_phase"] == "executing"
        assert events[0]["artifact"] == PLAN

    def test_agreement_does_not_log_desync(self, make_engine, tracker, write_doc, read_events):
        tracker.state[(BEAD, "phase")] = "planned"
        path = write_doc(PLAN, "# Plan\n**Phase:** planned\n")
        make_engine().get_phase_with_fallback(BEAD, path)
        assert read_events("phase_desync") == []


class TestCheckTransition:
    def test_valid_transition_logs_pass(self, make_engine, tracker, read_events):
        tracker.state[(BEAD, "phase")] = "planned"
        result = make_engine().check_transition(BEAD, "executing")

        assert result.passed
        assert result.current_phase == "planned"
        events = read_events("gate_check")
        assert events == [
            {
                "event": "gate_check",
                "timestamp": events[0]["timestamp"],
                "bead": BEAD,
                "from": "planned",
                "to": "executing",
                "result": "pass",
            }
        ]

    def test_invalid_transition_logs_blocked(self, make_engine, tracker, read_events):
        tracker.state[(BEAD, "phase")] = "brainstorm"
        assert not make_engine().check_transition(BEAD, "done").passed
        assert read_events("gate_check")[0]["result"] == "blocked"

    def test_missing_inputs_pass(self, make_engine):
        engine = make_engine()
        assert engine.check_transition(None, "done").passed
        assert engine.check_transition(BEAD, None).passed


# ==============================================================================
# Enforcement: legacy mode
# ==============================================================================


class TestEnforceLegacy:
    def test_hard_tier_invalid_blocks(self, make_engine, bead_at_brainstorm, fresh_review, read_events):
        bead_at_brainstorm(0)

        outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)

        assert outcome.proceed is False
        assert outcome.decision is GateDecision.BLOCK
        assert outcome.tier is EnforcementTier.HARD
        assert "INTERPHASE_SKIP_GATE" in outcome.message
        enforce = read_events("gate_enforce")
        assert enforce[-1]["decision"] == "block"
        assert enforce[-1]["tier"] == "hard"
        assert enforce[-1]["priority"] == "0"

    def test_hard_tier_without_artifact_blocks(self, make_engine, bead_at_brainstorm):
        bead_at_brainstorm(1)
        assert make_engine().enforce_gate(BEAD, "executing").blocked

    def test_skip_reason_proceeds_with_audit_note(
        self, make_engine, tracker, bead_at_brainstorm, fresh_review, read_events
    ):
        bead_at_brainstorm(0)

        outcome = make_engine().enforce_gate(BEAD, "executing", PLAN, skip_reason="hotfix for prod")

        assert outcome.proceed is True
        assert outcome.decision is GateDecision.SKIP
        notes = tracker.notes[BEAD]
        assert len(notes) == 1
        assert "Gate skipped: executing (tier=hard, reason: hotfix for prod)" in notes[0]
        assert read_events("gate_enforce")[-1]["decision"] == "skip"

    def test_configured_skip_reason(self, make_engine, tracker, bead_at_brainstorm):
        bead_at_brainstorm(0)
        outcome = make_engine(skip_reason="from env").enforce_gate(BEAD, "executing")
        assert outcome.decision is GateDecision.SKIP
        assert "from env" in tracker.notes[BEAD][0]

    def test_failed_audit_note_still_proceeds(self, make_engine, tracker, bead_at_brainstorm, caplog):
        bead_at_brainstorm(0)
        tracker.fail["append_note"] = TrackerCommandError("bd down")

        with caplog.at_level(logging.WARNING):
            outcome = make_engine().enforce_gate(BEAD, "executing", skip_reason="hotfix")

        assert outcome.proceed
        assert "audit entry" in caplog.text

    def test_stale_review_downgrades_block_to_warning(
        self, make_engine, bead_at_brainstorm, stale_review, read_events
    ):
        bead_at_brainstorm(0)

        outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)

        assert outcome.proceed is True
        assert outcome.decision is GateDecision.WARN_STALE
        assert "stale" in outcome.message
        assert read_events("gate_enforce")[-1]["decision"] == "warn-stale"

    def test_soft_tier_warns_and_proceeds(self, make_engine, bead_at_brainstorm, fresh_review, read_events):
        bead_at_brainstorm(2)

        outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)

        assert outcome.proceed is True
        assert outcome.decision is GateDecision.WARN
        assert outcome.tier is EnforcementTier.SOFT
        assert "tier=soft" in outcome.message
        assert read_events("gate_enforce")[-1]["decision"] == "warn"

    def test_soft_tier_stale_is_annotated(self, make_engine, bead_at_brainstorm, stale_review):
        bead_at_brainstorm(3)
        outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)
        assert outcome.decision is GateDecision.WARN
        assert "stale" in outcome.message

    def test_no_tier_passes_silently(self, make_engine, bead_at_brainstorm, fresh_review, read_events, caplog):
        bead_at_brainstorm(4)

        with caplog.at_level(logging.DEBUG):
            outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)

        assert outcome.proceed is True
        assert outcome.decision is GateDecision.PASS_NO_GATE
        assert outcome.message is None
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert read_events("gate_enforce")[-1]["decision"] == "pass-no-gate"

    def test_valid_transition_passes_regardless_of_tier(self, make_engine, tracker, read_events):
        tracker.add(BEAD, priority=0)
        tracker.state[(BEAD, "phase")] = "planned"

        outcome = make_engine().enforce_gate(BEAD, "executing")

        assert outcome.proceed
        assert outcome.decision is GateDecision.PASS
        assert read_events("gate_enforce")[-1]["decision"] == "pass"

    def test_tier_error_fails_open(self, make_engine, tracker, read_events):
        tracker.fail["show"] = TrackerCommandError("timeout")

        outcome = make_engine().enforce_gate(BEAD, "done")

        assert outcome.proceed
        assert outcome.decision is GateDecision.PASS_NO_GATE
        assert read_events("gate_enforce")[-1]["priority"] == "?"

    def test_unknown_staleness_does_not_block_strictly_in_legacy(
        self, make_engine, bead_at_brainstorm, write_review, plan_doc
    ):
        bead_at_brainstorm(0)
        write_review("gates", bead_id=BEAD, input=PLAN)

        outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)

        assert outcome.decision is GateDecision.BLOCK

    def test_unparsable_review_timestamp_is_not_stale(
        self, make_engine, bead_at_brainstorm, write_review, plan_doc
    ):
        bead_at_brainstorm(0)
        write_review("gates", bead_id=BEAD, input=PLAN, reviewed="not-a-timestamp")
        commit = Commit(hash="abc123", message="edit plan", timestamp="2026-01-20T08:00:00+00:00")

        with patch.object(Repository, "commits_since", return_value=[commit]):
            outcome = make_engine().enforce_gate(BEAD, "executing", PLAN)

        assert outcome.blocked
        assert outcome.decision is GateDecision.BLOCK

    def test_kill_switch_bypasses(self, make_engine, bead_at_brainstorm, read_events):
        bead_at_brainstorm(0)

        outcome = make_engine(disable_gates=True).enforce_gate(BEAD, "executing")

        assert outcome.proceed
        assert outcome.decision is GateDecision.BYPASS
        assert read_events("gate_enforce")[-1]["decision"] == "bypass"
        assert read_events("gate_check") == []

    def test_missing_inputs_proceed(self, make_engine, read_events):
        engine = make_engine()
        assert engine.enforce_gate(None, "executing").proceed
        assert engine.enforce_gate(BEAD, None).proceed
        assert read_events() == []


# ==============================================================================
# Enforcement: strict mode
# ==============================================================================


class TestEnforceStrict:
    def test_tracker_unreachable_blocks_transient(self, make_engine, tracker, read_events):
        tracker.fail["show"] = TrackerCommandError("timeout")

        outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "executing")

        assert outcome.blocked
        assert outcome.decision is GateDecision.BLOCK_STRICT_TRANSIENT
        assert "class=transient" in outcome.message
        assert "reason=tracker_unreachable" in outcome.message
        assert "INTERPHASE_SKIP_GATE" in outcome.message
        assert read_events("gate_enforce")[-1]["decision"] == "block-strict-transient"

    def test_malformed_priority_blocks_permanent(self, make_engine, tracker):
        tracker.fail["show"] = TrackerDataError("priority 'high'")

        outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "executing")

        assert outcome.decision is GateDecision.BLOCK_STRICT_PERMANENT
        assert "priority_malformed" in outcome.message

    def test_override_skips_with_audit(self, make_engine, tracker, read_events):
        tracker.fail["show"] = TrackerCommandError("timeout")

        outcome = make_engine(strict_mode=True).enforce_gate(
            BEAD, "executing", skip_reason="bd flaky, shipping anyway"
        )

        assert outcome.proceed
        assert outcome.decision is GateDecision.SKIP_STRICT_OVERRIDE
        note = tracker.notes[BEAD][0]
        assert "Strict gate skipped: executing" in note
        assert "class=transient" in note
        assert "reason: tracker_unreachable" in note
        assert "override: bd flaky, shipping anyway" in note
        assert read_events("gate_enforce")[-1]["decision"] == "skip-strict-override"

    def test_dependency_unavailable_retries_then_blocks(
        self, make_engine, tracker, make_channel, tmp_path
    ):
        tracker.add(BEAD, priority=1)
        channel = make_channel(available=False)
        publisher = SidebandPublisher(channel, session_id="sess-1", state_dir=tmp_path)

        outcome = make_engine(publisher, strict_mode=True).enforce_gate(BEAD, "brainstorm")

        assert outcome.decision is GateDecision.BLOCK_STRICT_TRANSIENT
        assert "dependency_unavailable" in outcome.message
        assert channel.availability_checks == 3

    def test_missing_channel_with_session_blocks(self, make_engine, tracker, tmp_path):
        tracker.add(BEAD, priority=0)
        publisher = SidebandPublisher(None, session_id="sess-1", state_dir=tmp_path)

        outcome = make_engine(publisher, strict_mode=True).enforce_gate(BEAD, "brainstorm")

        assert outcome.decision is GateDecision.BLOCK_STRICT_TRANSIENT

    def test_dependency_retry_count_is_configurable(self, make_engine, make_channel, tmp_path):
        channel = make_channel(available=False)
        publisher = SidebandPublisher(channel, session_id="sess-1", state_dir=tmp_path)

        check = make_engine(publisher, dependency_retry_attempts=5).check_dependency_with_retry()

        assert not check.ok
        assert check.attempts == 5
        assert channel.availability_checks == 5

    def test_dependency_not_required_without_session(self, make_engine, tracker):
        tracker.add(BEAD, priority=0)
        outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "brainstorm")
        assert outcome.decision is GateDecision.PASS

    def test_available_dependency_passes_after_one_check(self, make_engine, tracker, channel, tmp_path):
        tracker.add(BEAD, priority=0)
        publisher = SidebandPublisher(channel, session_id="sess-1", state_dir=tmp_path)

        outcome = make_engine(publisher, strict_mode=True).enforce_gate(BEAD, "brainstorm")

        assert outcome.decision is GateDecision.PASS
        assert channel.availability_checks == 1

    def test_soft_tier_is_not_strict(self, make_engine, bead_at_brainstorm, make_channel, tmp_path):
        bead_at_brainstorm(2)
        channel = make_channel(available=False)
        publisher = SidebandPublisher(channel, session_id="sess-1", state_dir=tmp_path)

        outcome = make_engine(publisher, strict_mode=True).enforce_gate(BEAD, "executing")

        assert outcome.decision is GateDecision.WARN
        assert channel.availability_checks == 0

    def test_missing_review_timestamp_blocks_permanent(
        self, make_engine, bead_at_brainstorm, write_review, plan_doc
    ):
        bead_at_brainstorm(0)
        write_review("gates", bead_id=BEAD, input=PLAN)

        outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "executing", PLAN)

        assert outcome.decision is GateDecision.BLOCK_STRICT_PERMANENT
        assert "review_timestamp_missing" in outcome.message

    def test_unparsable_review_timestamp_blocks_permanent(
        self, make_engine, bead_at_brainstorm, write_review, plan_doc
    ):
        bead_at_brainstorm(0)
        write_review("gates", bead_id=BEAD, input=PLAN, reviewed="not-a-timestamp")
        commit = Commit(hash="abc123", message="edit plan", timestamp="2026-01-20T08:00:00+00:00")

        with patch.object(Repository, "commits_since", return_value=[commit]):
            outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "executing", PLAN)

        assert outcome.blocked
        assert outcome.decision is GateDecision.BLOCK_STRICT_PERMANENT
        assert "review_metadata_malformed" in outcome.message

    def test_git_failure_blocks_transient(self, make_engine, bead_at_brainstorm, write_review, plan_doc):
        bead_at_brainstorm(0)
        write_review("gates", bead_id=BEAD, input=PLAN, reviewed="2026-01-15T12:00:00Z")

        with patch.object(Repository, "commits_since", side_effect=GitCommandError("not a repo")):
            outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "executing", PLAN)

        assert outcome.decision is GateDecision.BLOCK_STRICT_TRANSIENT
        assert "git_log_failed" in outcome.message

    def test_strict_with_fresh_review_blocks_like_legacy(
        self, make_engine, bead_at_brainstorm, fresh_review
    ):
        bead_at_brainstorm(0)
        outcome = make_engine(strict_mode=True).enforce_gate(BEAD, "executing", PLAN)
        assert outcome.decision is GateDecision.BLOCK


# ==============================================================================
# Advancement
# ==============================================================================


class TestAdvancePhase:
    def test_advance_writes_everywhere(
        self, make_engine, tracker, make_channel, write_doc, project_dir, read_events, tmp_path
    ):
        path = write_doc(PLAN, f"# Gates\n**Bead:** {BEAD}\n")
        channel = make_channel()
        publisher = SidebandPublisher(channel, session_id="sess-1", state_dir=tmp_path / "state")

        make_engine(publisher).advance_phase(BEAD, "executing", "plan approved", path)

        assert tracker.state[(BEAD, "phase")] == "executing"
        assert "**Phase:** executing" in (project_dir / path).read_text()
        advance = read_events("phase_advance")
        assert advance[0]["bead"] == BEAD
        assert advance[0]["artifact"] == PLAN
        assert channel.writes[0]["payload"]["phase"] == "executing"
        assert (tmp_path / "state" / "interphase-bead-sess-1.json").exists()

    def test_advance_does_not_enforce(self, make_engine, tracker, bead_at_brainstorm, read_events):
        bead_at_brainstorm(0)

        make_engine().advance_phase(BEAD, "done", "forced")

        assert tracker.state[(BEAD, "phase")] == "done"
        assert read_events("gate_enforce") == []

    def test_advance_without_artifact_skips_header(self, make_engine, tracker, read_events):
        make_engine().advance_phase(BEAD, "planned")
        assert tracker.state[(BEAD, "phase")] == "planned"
        assert read_events("phase_advance")[0]["artifact"] == ""

    def test_missing_inputs_are_noops(self, make_engine, tracker, read_events):
        make_engine().advance_phase(None, "planned")
        assert tracker.state == {}
        assert read_events() == []
