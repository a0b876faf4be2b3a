"""
Configuration models and loading.

Pydantic models for interphase configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    DiscoveryConfig,
    GatesConfig,
    InterphaseConfig,
    SidebandConfig,
    TelemetryConfig,
)

__all__ = [
    # Models
    "DiscoveryConfig",
    "GatesConfig",
    "InterphaseConfig",
    "SidebandConfig",
    "TelemetryConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
