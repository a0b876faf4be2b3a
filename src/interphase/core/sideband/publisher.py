"""
Publish the current bead and phase for status renderers.

Renderers run as separate processes and cannot see in-conversation
state, so every phase advance is mirrored to two places:

- a structured envelope on the sideband channel (when one is configured)
- a legacy flat file, <state_dir>/interphase-bead-<session>.json

Publishing is best-effort; failures on either path are logged and dropped.
"""

import json
import logging
import tempfile
import time
from pathlib import Path

from interphase.core.repository import atomic_write_text

from .channel import SidebandChannel

logger = logging.getLogger(__name__)

PRODUCER = "interphase"
CHANNEL = "bead"
KIND = "bead_phase"


def legacy_state_path(state_dir: Path, session_id: str) -> Path:
    return state_dir / f"interphase-bead-{session_id}.json"


class SidebandPublisher:
    """
    Dual-write bead context to the sideband and the legacy state file.

    Example:
        >>> publisher = SidebandPublisher(channel, session_id="abc")
        >>> publisher.publish("Clavain-a1b", "executing", "plan approved")
    """

    def __init__(
        self,
        channel: SidebandChannel | None,
        session_id: str | None,
        state_dir: Path | None = None,
    ):
        self.channel = channel
        self.session_id = session_id
        self.state_dir = state_dir or Path(tempfile.gettempdir())

    @property
    def legacy_path(self) -> Path | None:
        if not self.session_id:
            return None
        return legacy_state_path(self.state_dir, self.session_id)

    def publish(self, item_id: str, phase: str, reason: str | None = None) -> None:
        """Publish {id, phase, reason, ts}. No session means nothing to publish."""
        if not self.session_id:
            return

        payload = {
            "id": item_id,
            "phase": phase,
            "reason": reason or "",
            "ts": int(time.time()),
        }

        if self.channel is not None:
            try:
                path = self.channel.path(PRODUCER, CHANNEL, self.session_id)
                self.channel.write(path, PRODUCER, KIND, self.session_id, payload)
                self.channel.prune(PRODUCER, CHANNEL)
            except Exception as e:
                # Channels are pluggable and may raise anything.
                logger.debug("Sideband envelope write failed: %s", e)

        try:
            atomic_write_text(self.legacy_path, json.dumps(payload, separators=(",", ":")) + "\n")
        except OSError as e:
            logger.debug("Legacy sideband write failed: %s", e)
