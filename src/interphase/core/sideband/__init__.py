"""Sideband publishing for out-of-process status renderers."""

from .channel import FileSidebandChannel, SidebandChannel, resolve_sideband_channel
from .publisher import SidebandPublisher, legacy_state_path

__all__ = [
    "FileSidebandChannel",
    "SidebandChannel",
    "SidebandPublisher",
    "legacy_state_path",
    "resolve_sideband_channel",
]
