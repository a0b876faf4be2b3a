"""
Project root discovery utilities.

Finds the project boundary by searching upward for .beads/ or .git/.
"""

from pathlib import Path

# Markers that indicate a project root, in order of priority
PROJECT_ROOT_MARKERS = [
    ".beads",  # Beads issue tracking
    ".interphase.json",  # Project configuration file
    ".git",  # Git repository
]


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Find the project root directory by searching upward for marker files.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory, or None if not found.

    Example:
        >>> find_project_root(Path("/project/docs/plans"))
        PosixPath('/project')
    """
    current = (start or Path.cwd()).resolve()

    for candidate in [current, *current.parents]:
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return candidate

    return None


def get_project_root(start: Path | None = None) -> Path:
    """Project root, falling back to the start directory when no marker is found."""
    start = start or Path.cwd()
    return find_project_root(start) or start.resolve()
