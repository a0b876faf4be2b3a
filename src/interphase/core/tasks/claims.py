"""
Bead claims.

A claim is two pieces of tracker state, ``claimed_by`` (session id) and
``claimed_at`` (epoch seconds). A claim younger than the freshness window
is active; an older one is abandoned and may be released by anyone.
Released claims carry the sentinels ``claimed_by=released`` and
``claimed_at=0`` because bd rejects empty state values.

Concurrent sessions may race on these fields. Writes are single-field and
atomic in the tracker, so the last writer wins.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .tracker import Tracker, TrackerError

logger = logging.getLogger(__name__)

RELEASED = "released"
HEARTBEAT_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class Claim:
    """Typed view of a bead's claim state."""

    claimed_by: str | None = None
    claimed_at: int | None = None

    @property
    def is_held(self) -> bool:
        return bool(self.claimed_by) and self.claimed_by != RELEASED

    def age(self, now: float) -> float | None:
        if not self.claimed_at:
            return None
        return now - self.claimed_at

    def is_fresh(self, now: float, window_seconds: float) -> bool:
        """Held, timestamped, and younger than the window."""
        age = self.age(now)
        return self.is_held and age is not None and age < window_seconds


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a claim attempt."""

    claimed: bool
    holder: str | None = None
    age_seconds: int | None = None

    @property
    def message(self) -> str:
        if self.claimed:
            return "claimed"
        holder = (self.holder or "?")[:8]
        return (
            f"actively claimed by session {holder}... ({self.age_seconds}s ago); "
            "claim skipped to avoid collision"
        )


class ClaimView:
    """
    Adapter over the tracker's generic key/value state for claim fields.
    """

    def __init__(self, tracker: Tracker):
        self.tracker = tracker

    def read(self, item_id: str) -> Claim:
        """Read a claim. Tracker failures read as "no claim"."""
        try:
            claimed_by = self.tracker.get_state(item_id, "claimed_by")
            raw_at = self.tracker.get_state(item_id, "claimed_at")
        except TrackerError as e:
            logger.debug("Could not read claim for %s: %s", item_id, e)
            return Claim()

        claimed_at: int | None = None
        if raw_at:
            try:
                claimed_at = int(raw_at)
            except ValueError:
                claimed_at = None
        return Claim(claimed_by=claimed_by, claimed_at=claimed_at)

    def write(self, item_id: str, session_id: str, at: int) -> None:
        self.tracker.set_state(item_id, "claimed_by", session_id)
        self.tracker.set_state(item_id, "claimed_at", str(at))

    def touch(self, item_id: str, at: int) -> None:
        self.tracker.set_state(item_id, "claimed_at", str(at))

    def clear(self, item_id: str) -> None:
        self.tracker.set_state(item_id, "claimed_by", RELEASED)
        self.tracker.set_state(item_id, "claimed_at", "0")


class ClaimManager:
    """
    Claim, heartbeat and release beads for an agent session.

    Example:
        >>> manager = ClaimManager(tracker, cache_dir, window_seconds=7200)
        >>> manager.claim("Clavain-a1b", "session-123").claimed
        True
    """

    def __init__(self, tracker: Tracker, cache_dir: Path, window_seconds: float):
        self.view = ClaimView(tracker)
        self.tracker = tracker
        self.cache_dir = cache_dir
        self.window_seconds = window_seconds

    def _heartbeat_marker(self, item_id: str, session_id: str) -> Path:
        return self.cache_dir / f"interphase-heartbeat-{item_id}-{session_id}"

    def claim(self, item_id: str, session_id: str, now: float | None = None) -> ClaimResult:
        """
        Claim a bead unless another session holds a fresh claim on it.
        """
        now = time.time() if now is None else now
        existing = self.view.read(item_id)
        if (
            existing.is_held
            and existing.claimed_by != session_id
            and existing.is_fresh(now, self.window_seconds)
        ):
            age = existing.age(now)
            return ClaimResult(
                claimed=False,
                holder=existing.claimed_by,
                age_seconds=int(age) if age is not None else None,
            )

        try:
            self.view.write(item_id, session_id, int(now))
        except TrackerError as e:
            logger.warning("Failed to write claim for %s: %s", item_id, e)
            return ClaimResult(claimed=False)
        return ClaimResult(claimed=True, holder=session_id, age_seconds=0)

    def heartbeat(self, item_id: str, session_id: str, now: float | None = None) -> bool:
        """
        Refresh claimed_at, at most once per HEARTBEAT_INTERVAL_SECONDS.

        Returns:
            True if the claim timestamp was written
        """
        now = time.time() if now is None else now
        marker = self._heartbeat_marker(item_id, session_id)
        try:
            if marker.exists() and now - marker.stat().st_mtime < HEARTBEAT_INTERVAL_SECONDS:
                return False
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            marker.touch()
        except OSError as e:
            logger.debug("Heartbeat marker unavailable: %s", e)

        try:
            self.view.touch(item_id, int(now))
        except TrackerError as e:
            logger.debug("Heartbeat failed for %s: %s", item_id, e)
            return False
        return True

    def release(self, item_id: str, session_id: str) -> bool:
        """
        Release a claim that is unclaimed, already released, or ours.

        Returns:
            True if the bead was released
        """
        existing = self.view.read(item_id)
        released = False
        if not existing.is_held or existing.claimed_by == session_id:
            try:
                self.tracker.reopen_unassigned(item_id)
                self.view.clear(item_id)
                released = True
            except TrackerError as e:
                logger.warning("Failed to release %s: %s", item_id, e)

        self._heartbeat_marker(item_id, session_id).unlink(missing_ok=True)
        return released
