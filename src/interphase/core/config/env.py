"""Environment file loading.

Gate toggles (INTERPHASE_STRICT, INTERPHASE_SKIP_GATE, ...) may live in
.env files next to a project. Files are layered in order and a later file
wins over an earlier one:

  $XDG_CONFIG_HOME/interphase/.env < <project>/.env < <project>/.env.local

Variables already exported in the process environment are never replaced.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values


def user_env_files() -> list[Path]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return [Path(config_home) / "interphase" / ".env"]


def project_env_files(project_dir: Path) -> list[Path]:
    return [project_dir / ".env", project_dir / ".env.local"]


def read_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Merge dotenv files into one mapping; later files override earlier ones."""
    merged: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            continue
        merged.update(
            (str(key), str(value))
            for key, value in dotenv_values(path).items()
            if key is not None and value is not None
        )
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export variables from the user and project .env layers.

    Returns the variables that were actually set.
    """
    project_dir = project_dir or Path.cwd()
    layers = [
        *(user_env_files() if user_env_paths is None else user_env_paths),
        *(project_env_files(project_dir) if project_env_paths is None else project_env_paths),
    ]

    exported = {
        key: value for key, value in read_env_files(layers).items() if key not in os.environ
    }
    os.environ.update(exported)
    return exported
