"""
Beads tracker implementation.

Wraps the beads CLI (`bd`) so the gate engine and discovery scanner can
read and write bead state when a project uses beads (.beads/ present).
"""

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import WorkItem
from .tracker import TrackerCommandError, TrackerDataError, TrackerNotAvailableError

logger = logging.getLogger(__name__)


class BeadsTracker:
    """
    Tracker that shells out to the beads CLI (`bd`).

    Example:
        >>> tracker = BeadsTracker(project_dir)
        >>> tracker.get_state("Clavain-a1b", "phase")
        'planned'
    """

    def __init__(self, project_dir: Path | None = None):
        """
        Args:
            project_dir: Project directory (defaults to current directory)
        """
        self.project_dir = project_dir or Path.cwd()

    def _is_bd_available(self) -> bool:
        """Check if bd CLI is available in PATH."""
        return shutil.which("bd") is not None

    def is_available(self) -> bool:
        """bd must be installed and the project must have a .beads directory."""
        return self._is_bd_available() and (self.project_dir / ".beads").is_dir()

    def _run_bd(self, args: list[str]) -> str:
        """
        Run a bd CLI command and return its stdout.

        Raises:
            TrackerNotAvailableError: If bd is not installed
            TrackerCommandError: If the command exits non-zero
        """
        if not self._is_bd_available():
            raise TrackerNotAvailableError("beads CLI (bd) is not installed")

        cmd = ["bd"] + args
        try:
            result = subprocess.run(
                cmd,
                cwd=self.project_dir,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.strip() if e.stderr else str(e)
            raise TrackerCommandError(f"bd command failed: {' '.join(cmd)}\nError: {error_msg}")
        except OSError as e:
            raise TrackerCommandError(f"bd command could not run: {e}")
        return result.stdout

    def _run_bd_json(self, args: list[str]) -> list[dict[str, Any]]:
        """Run a bd command with JSON output, normalized to a list of records."""
        output = self._run_bd(args)
        if not output.strip():
            return []
        try:
            parsed = json.loads(output)
        except json.JSONDecodeError as e:
            raise TrackerDataError(
                f"Failed to parse bd output as JSON: {e}\n"
                f"Command: bd {' '.join(args)}\n"
                f"Output: {output[:200]}"
            )
        if isinstance(parsed, dict):
            return [parsed]
        if isinstance(parsed, list):
            return [record for record in parsed if isinstance(record, dict)]
        raise TrackerDataError(f"Unexpected bd output type: {type(parsed).__name__}")

    def _transform_bead(self, raw: dict[str, Any]) -> WorkItem:
        """
        Transform raw beads JSON into a WorkItem.

        Raises:
            TrackerDataError: If required fields are missing or malformed
        """
        try:
            return WorkItem.model_validate(raw)
        except ValidationError as e:
            raise TrackerDataError(f"Malformed bead record {raw.get('id')!r}: {e}")

    def list_items(self, status: str) -> list[WorkItem]:
        """
        List beads with a status, skipping records without id or status.
        """
        raw_items = self._run_bd_json(["list", f"--status={status}", "--json"])
        items = []
        for raw in raw_items:
            if not raw.get("id") or not raw.get("status"):
                continue
            try:
                items.append(self._transform_bead(raw))
            except TrackerDataError as e:
                logger.warning("Skipping bead: %s", e)
        return items

    def show(self, item_id: str) -> WorkItem:
        records = self._run_bd_json(["show", item_id, "--json"])
        if not records:
            raise TrackerCommandError(f"bead {item_id} not found")
        return self._transform_bead(records[0])

    def get_state(self, item_id: str, key: str) -> str | None:
        """
        Read a state dimension. bd prints "(no <key> state set)" when unset.
        """
        value = self._run_bd(["state", item_id, key]).strip()
        if not value or value == f"(no {key} state set)":
            return None
        return value

    def set_state(self, item_id: str, key: str, value: str, reason: str | None = None) -> None:
        args = ["set-state", item_id, f"{key}={value}"]
        if reason:
            args.extend(["--reason", reason])
        self._run_bd(args)

    def append_note(self, item_id: str, text: str) -> None:
        self._run_bd(["update", item_id, "--append-notes", text])

    def dependencies_of(self, item_id: str, direction: str, dep_type: str) -> list[WorkItem]:
        raw_items = self._run_bd_json(
            ["dep", "list", item_id, f"--direction={direction}", f"--type={dep_type}", "--json"]
        )
        items = []
        for raw in raw_items:
            if not raw.get("id"):
                continue
            try:
                items.append(self._transform_bead(raw))
            except TrackerDataError as e:
                logger.warning("Skipping dependency of %s: %s", item_id, e)
        return items

    def reopen_unassigned(self, item_id: str) -> None:
        self._run_bd(["update", item_id, "--assignee=", "--status=open"])
