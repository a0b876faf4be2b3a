"""
Scoring for discovered beads.

Score formula: priority_score + phase_score + recency_score - stale_penalty,
then the parent-closed and claimed-by-other penalties.

- priority_score: 60 for P0 down to 12 for P4 (step 12); P5+ floors at 0
- phase_score: 4 per lifecycle step, brainstorm=4 ... shipping=28, done=30;
  an unset phase scores 0
- recency_score: 20 if updated <24h ago, 15 if <48h, 10 if <7d, else 5;
  a missing timestamp scores 5
- stale_penalty: 10

A one-tier priority gap (12) is smaller than the phase range (30), so a
late-phase bead can outrank a bead one tier more urgent. Equal phase and
recency always rank by priority.
"""

from datetime import datetime, timezone

from interphase.core.phases.models import Phase

PRIORITY_STEP = 12
PRIORITY_MAX = 60
STALE_PENALTY = 10
PARENT_CLOSED_PENALTY = 30
CLAIMED_PENALTY = 50

PHASE_SCORES: dict[Phase, int] = {
    Phase.BRAINSTORM: 4,
    Phase.BRAINSTORM_REVIEWED: 8,
    Phase.STRATEGIZED: 12,
    Phase.PLANNED: 16,
    Phase.PLAN_REVIEWED: 20,
    Phase.EXECUTING: 24,
    Phase.SHIPPING: 28,
    Phase.DONE: 30,
}


def priority_score(priority: int) -> int:
    return max(0, PRIORITY_MAX - PRIORITY_STEP * min(priority, 5))


def phase_score(phase: str | None) -> int:
    parsed = Phase.parse(phase)
    return PHASE_SCORES[parsed] if parsed is not None else 0


def recency_score(updated_at: datetime | None, now: datetime | None = None) -> int:
    if updated_at is None:
        return 5
    now = now or datetime.now(timezone.utc)
    age_hours = (now - updated_at).total_seconds() / 3600
    if age_hours < 24:
        return 20
    if age_hours < 48:
        return 15
    if age_hours < 24 * 7:
        return 10
    return 5


def score_bead(
    priority: int,
    phase: str | None,
    updated_at: datetime | None,
    stale: bool = False,
    parent_closed: bool = False,
    claimed_by_other: bool = False,
    now: datetime | None = None,
) -> int:
    """Total score for a bead; higher ranks first."""
    score = priority_score(priority) + phase_score(phase) + recency_score(updated_at, now)
    if stale:
        score -= STALE_PENALTY
    if parent_closed:
        score -= PARENT_CLOSED_PENALTY
    if claimed_by_other:
        score -= CLAIMED_PENALTY
    return score
