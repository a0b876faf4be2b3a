"""
Pytest configuration and shared fixtures.

Provides an in-memory tracker, temporary project directories with a
docs/ tree, and a telemetry sink that tests can read back.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from interphase.core.config import clear_cache
from interphase.core.config.models import GatesConfig
from interphase.core.gates import GateEngine, ReviewStalenessChecker
from interphase.core.phases import ArtifactPhaseHeader, PhaseStore
from interphase.core.repository import Repository
from interphase.core.sideband import SidebandPublisher
from interphase.core.tasks.models import WorkItem
from interphase.core.tasks.tracker import TrackerCommandError
from interphase.core.telemetry import TelemetryLog

# ==============================================================================
# Fake Tracker
# ==============================================================================


class FakeTracker:
    """
    In-memory Tracker for tests.

    Items live in ``items``; named state in ``state[(id, key)]``. Set
    ``fail`` to {method_name: exception} to make a call raise.
    """

    def __init__(self, items: list[WorkItem] | None = None, available: bool = True):
        self.items: dict[str, WorkItem] = {item.id: item for item in items or []}
        self.state: dict[tuple[str, str], str] = {}
        self.notes: dict[str, list[str]] = {}
        self.children: dict[str, list[str]] = {}
        self.available = available
        self.fail: dict[str, Exception] = {}
        self.calls: list[tuple[Any, ...]] = []

    def add(self, item_id: str, **fields: Any) -> WorkItem:
        item = WorkItem(id=item_id, **fields)
        self.items[item_id] = item
        return item

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise self.fail[method]

    def is_available(self) -> bool:
        return self.available

    def list_items(self, status: str) -> list[WorkItem]:
        self.calls.append(("list_items", status))
        self._maybe_fail("list_items")
        self._maybe_fail(f"list_items:{status}")
        return [item for item in self.items.values() if item.status == status]

    def show(self, item_id: str) -> WorkItem:
        self.calls.append(("show", item_id))
        self._maybe_fail("show")
        if item_id not in self.items:
            raise TrackerCommandError(f"bead {item_id} not found")
        return self.items[item_id]

    def get_state(self, item_id: str, key: str) -> str | None:
        self._maybe_fail("get_state")
        return self.state.get((item_id, key))

    def set_state(self, item_id: str, key: str, value: str, reason: str | None = None) -> None:
        self.calls.append(("set_state", item_id, key, value, reason))
        self._maybe_fail("set_state")
        self.state[(item_id, key)] = value

    def append_note(self, item_id: str, text: str) -> None:
        self._maybe_fail("append_note")
        self.notes.setdefault(item_id, []).append(text)

    def dependencies_of(self, item_id: str, direction: str, dep_type: str) -> list[WorkItem]:
        self.calls.append(("dependencies_of", item_id, direction, dep_type))
        self._maybe_fail("dependencies_of")
        return [self.items[child] for child in self.children.get(item_id, []) if child in self.items]

    def reopen_unassigned(self, item_id: str) -> None:
        self._maybe_fail("reopen_unassigned")
        item = self.items[item_id]
        self.items[item_id] = item.model_copy(update={"status": "open", "assignee": None})


class FakeChannel:
    """Sideband channel that records writes in memory."""

    def __init__(self, available: bool = True):
        self.available = available
        self.writes: list[dict[str, Any]] = []
        self.availability_checks = 0

    def is_available(self) -> bool:
        self.availability_checks += 1
        return self.available

    def path(self, producer: str, channel: str, session_id: str) -> Path:
        return Path(producer) / channel / f"{session_id}.json"

    def write(self, path, producer, kind, session_id, payload) -> None:
        self.writes.append(
            {"path": path, "producer": producer, "kind": kind,
             "session_id": session_id, "payload": payload}
        )

    def prune(self, producer: str, channel: str) -> None:
        pass


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and config out of every test."""
    for var in (
        "INTERPHASE_STRICT",
        "INTERPHASE_SKIP_GATE",
        "INTERPHASE_DISABLE_GATES",
        "INTERPHASE_LANE",
        "INTERPHASE_BEAD_ID",
        "CLAUDE_SESSION_ID",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def project_dir(tmp_path):
    """
    Provide a temporary project directory with common structure.

    Creates:
    - .beads/
    - docs/brainstorms, docs/prds, docs/plans
    - docs/research/flux-drive (review records)
    """
    project = tmp_path / "project"
    project.mkdir()
    (project / ".beads").mkdir()
    for sub in ("brainstorms", "prds", "plans", "research/flux-drive"):
        (project / "docs" / sub).mkdir(parents=True)
    return project


@pytest.fixture
def repository(project_dir):
    return Repository(project_dir)


@pytest.fixture
def write_doc(project_dir):
    """Write a markdown file under the project and return its relative path."""

    def _write(rel_path: str, content: str) -> str:
        path = project_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return rel_path

    return _write


@pytest.fixture
def write_review(project_dir):
    """Write a findings.json review record."""

    def _write(name: str, **data: Any) -> Path:
        review_dir = project_dir / "docs" / "research" / "flux-drive" / name
        review_dir.mkdir(parents=True, exist_ok=True)
        path = review_dir / "findings.json"
        path.write_text(json.dumps(data))
        return path

    return _write


# ==============================================================================
# Core Fixtures
# ==============================================================================


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def telemetry_path(tmp_path):
    return tmp_path / "telemetry.jsonl"


@pytest.fixture
def telemetry(telemetry_path):
    return TelemetryLog(telemetry_path)


@pytest.fixture
def read_events(telemetry_path):
    """Read telemetry events, optionally filtered by event type."""

    def _read(event: str | None = None) -> list[dict[str, Any]]:
        if not telemetry_path.exists():
            return []
        events = [json.loads(line) for line in telemetry_path.read_text().splitlines() if line]
        if event is None:
            return events
        return [e for e in events if e["event"] == event]

    return _read


@pytest.fixture
def store(tracker, telemetry):
    return PhaseStore(tracker, telemetry)


@pytest.fixture
def headers(repository):
    return ArtifactPhaseHeader(repository)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def make_channel():
    """The FakeChannel class, for tests that need more than one."""
    return FakeChannel


@pytest.fixture
def publisher(channel, tmp_path):
    return SidebandPublisher(channel, session_id=None, state_dir=tmp_path / "state")


@pytest.fixture
def make_engine(tracker, store, headers, telemetry, repository, publisher):
    """Build a GateEngine with optional gate settings."""

    def _make(publisher_override: SidebandPublisher | None = None, **gate_settings: Any) -> GateEngine:
        return GateEngine(
            tracker,
            store,
            headers,
            telemetry,
            ReviewStalenessChecker(repository),
            publisher_override or publisher,
            config=GatesConfig(**gate_settings),
        )

    return _make


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

