"""
Configuration data models for interphase.

These models define the structure of .interphase.json and
~/.config/interphase/config.json files, with validation and type safety
via Pydantic.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GatesConfig(BaseModel):
    """
    Phase gate enforcement settings.

    Controls how strictly phase transitions are checked for a bead.
    """
    strict_mode: bool = Field(
        default=False,
        description="Fail closed on hard-tier (P0/P1) dependency and data errors"
    )
    skip_reason: Optional[str] = Field(
        default=None,
        description="Audited override token for a blocked transition"
    )
    disable_gates: bool = Field(
        default=False,
        description="Emergency kill switch: bypass all enforcement"
    )
    dependency_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for the strict-mode sideband dependency check"
    )
    review_dir: str = Field(
        default="docs/research/flux-drive",
        description="Directory holding review findings.json records"
    )
    artifact_phase_dirs: list[str] = Field(
        default_factory=lambda: ["docs/brainstorms", "docs/plans"],
        description="Artifact directories that carry a **Phase:** header"
    )


class DiscoveryConfig(BaseModel):
    """
    Work discovery and ranking settings.
    """
    lane_filter: Optional[str] = Field(
        default=None,
        description="Only rank beads carrying this label"
    )
    stale_after_days: float = Field(
        default=2.0,
        gt=0,
        description="Beads untouched for longer than this are flagged stale"
    )
    claim_window_minutes: int = Field(
        default=120,
        ge=1,
        description="Claims younger than this are active; older ones are abandoned"
    )
    brief_cache_ttl_seconds: int = Field(
        default=60,
        ge=0,
        description="TTL for the brief-scan summary cache"
    )
    cache_dir: Optional[Path] = Field(
        default=None,
        description="Directory for brief-scan cache and heartbeat markers (default: temp dir)"
    )


class TelemetryConfig(BaseModel):
    """
    Telemetry sink settings.
    """
    path: Optional[Path] = Field(
        default=None,
        description="JSONL telemetry file (default: $XDG_DATA_HOME/interphase/telemetry.jsonl)"
    )


class SidebandConfig(BaseModel):
    """
    Sideband publishing for status renderers.
    """
    enabled: bool = Field(
        default=True,
        description="Publish structured envelopes when a sideband root is usable"
    )
    root: Optional[Path] = Field(
        default=None,
        description="Structured sideband root (default: ~/.interband)"
    )
    state_dir: Optional[Path] = Field(
        default=None,
        description="Directory for the legacy flat state file (default: temp dir)"
    )
    prune_after_hours: int = Field(
        default=24,
        ge=1,
        description="Envelopes older than this are pruned from a channel"
    )


class InterphaseConfig(BaseModel):
    """
    Top-level interphase configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = InterphaseConfig(gates=GatesConfig(strict_mode=True))
        >>> config.gates.dependency_retry_attempts
        3
    """
    gates: GatesConfig = Field(
        default_factory=GatesConfig,
        description="Phase gate enforcement"
    )
    discovery: DiscoveryConfig = Field(
        default_factory=DiscoveryConfig,
        description="Work discovery and ranking"
    )
    telemetry: TelemetryConfig = Field(
        default_factory=TelemetryConfig,
        description="Telemetry sink"
    )
    sideband: SidebandConfig = Field(
        default_factory=SidebandConfig,
        description="Sideband publishing"
    )

    session_id: Optional[str] = Field(
        default=None,
        description="Current agent session identifier"
    )
    item_id: Optional[str] = Field(
        default=None,
        description="Explicit bead for the current run (overrides artifact inference)"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )
