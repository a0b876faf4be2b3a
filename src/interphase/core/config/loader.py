"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import InterphaseConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: InterphaseConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Get path to ~/.config/interphase/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "interphase" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Project directory (defaults to current directory)

    Returns:
        Path to .interphase.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".interphase.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _env_flag(value: str) -> bool:
    return value.lower() not in ("false", "0", "")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        INTERPHASE_STRICT - overrides gates.strict_mode
        INTERPHASE_SKIP_GATE - overrides gates.skip_reason
        INTERPHASE_DISABLE_GATES - overrides gates.disable_gates
        INTERPHASE_LANE - overrides discovery.lane_filter
        INTERPHASE_BEAD_ID - overrides item_id
        CLAUDE_SESSION_ID - overrides session_id

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()
    gates = dict(result.get("gates") or {})
    discovery = dict(result.get("discovery") or {})

    if (strict_str := os.environ.get("INTERPHASE_STRICT")) is not None:
        gates["strict_mode"] = _env_flag(strict_str)

    if skip_reason := os.environ.get("INTERPHASE_SKIP_GATE"):
        gates["skip_reason"] = skip_reason

    if (disable_str := os.environ.get("INTERPHASE_DISABLE_GATES")) is not None:
        gates["disable_gates"] = _env_flag(disable_str)

    if lane := os.environ.get("INTERPHASE_LANE"):
        discovery["lane_filter"] = lane

    if item_id := os.environ.get("INTERPHASE_BEAD_ID"):
        result["item_id"] = item_id

    if session_id := os.environ.get("CLAUDE_SESSION_ID"):
        result["session_id"] = session_id

    result["gates"] = gates
    result["discovery"] = discovery
    return result


def get_default_config() -> dict[str, Any]:
    """Get hardcoded default configuration."""
    return {
        "gates": {
            "strict_mode": False,
            "disable_gates": False,
            "dependency_retry_attempts": 3,
        },
        "discovery": {
            "stale_after_days": 2.0,
            "claim_window_minutes": 120,
            "brief_cache_ttl_seconds": 60,
        },
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> InterphaseConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (INTERPHASE_*, CLAUDE_SESSION_ID)
        2. Project config (.interphase.json)
        3. User config (~/.config/interphase/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .interphase.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated InterphaseConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = InterphaseConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
