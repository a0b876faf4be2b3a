"""
Structured sideband channels.

A sideband is a file-based mailbox a status renderer polls. Envelopes are
addressed by (producer, channel, session):

    <root>/<producer>/<channel>/<session>.json

and look like:

    {"version": 1, "sender": "interphase", "type": "bead_phase",
     "session_id": "...", "timestamp": 1768480496, "payload": {...}}
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from interphase.core.config.models import SidebandConfig
from interphase.core.repository import atomic_write_text

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = 1


@runtime_checkable
class SidebandChannel(Protocol):
    """Pluggable structured sideband writer."""

    def is_available(self) -> bool:
        """True when envelopes can be written."""
        ...

    def path(self, producer: str, channel: str, session_id: str) -> Path:
        ...

    def write(
        self,
        path: Path,
        producer: str,
        kind: str,
        session_id: str,
        payload: dict[str, Any],
    ) -> None:
        ...

    def prune(self, producer: str, channel: str) -> None:
        ...


class FileSidebandChannel:
    """
    Sideband channel backed by JSON files under a root directory.
    """

    def __init__(self, root: Path, prune_after_hours: int = 24):
        self.root = root
        self.prune_after_seconds = prune_after_hours * 3600

    def is_available(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug("Sideband root %s unusable: %s", self.root, e)
            return False
        return self.root.is_dir()

    def path(self, producer: str, channel: str, session_id: str) -> Path:
        return self.root / producer / channel / f"{session_id}.json"

    def write(
        self,
        path: Path,
        producer: str,
        kind: str,
        session_id: str,
        payload: dict[str, Any],
    ) -> None:
        envelope = {
            "version": ENVELOPE_VERSION,
            "sender": producer,
            "type": kind,
            "session_id": session_id,
            "timestamp": int(time.time()),
            "payload": payload,
        }
        atomic_write_text(path, json.dumps(envelope, separators=(",", ":")) + "\n")

    def prune(self, producer: str, channel: str, now: float | None = None) -> None:
        """Remove envelopes older than the retention window."""
        now = time.time() if now is None else now
        channel_dir = self.root / producer / channel
        if not channel_dir.is_dir():
            return
        for envelope in channel_dir.glob("*.json"):
            try:
                if now - envelope.stat().st_mtime > self.prune_after_seconds:
                    envelope.unlink()
            except OSError as e:
                logger.debug("Failed to prune %s: %s", envelope, e)


def resolve_sideband_channel(config: SidebandConfig) -> SidebandChannel | None:
    """
    Pick the sideband channel once at startup.

    Returns None when structured publishing is disabled.
    """
    if not config.enabled:
        return None
    root = config.root or Path.home() / ".interband"
    return FileSidebandChannel(root, prune_after_hours=config.prune_after_hours)
