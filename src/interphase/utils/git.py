"""
Git utilities for interphase.

Commit-history lookups used to decide whether an artifact changed after
it was reviewed.
"""

from __future__ import annotations

import subprocess
from datetime import datetime
from pathlib import Path


class GitCommandError(Exception):
    """Raised when a git command cannot be run or exits non-zero."""


def get_commits_since(
    since: datetime | str,
    path: str | Path | None = None,
    cwd: Path | None = None,
) -> list[dict[str, str]]:
    """Get git commits made since a given time, optionally touching a path.

    Args:
        since: Either a datetime or an ISO format string
        path: Only include commits touching this path
        cwd: Repository directory (defaults to current directory)

    Returns:
        List of commit dictionaries with keys: hash, message, timestamp.
        The timestamp is the committer date, the same date --since filters on.

    Raises:
        GitCommandError: If git is missing or the log query fails

    Example:
        >>> commits = get_commits_since("2026-01-15T12:00:00Z", "docs/plans/x.md")
        >>> [c["hash"][:7] for c in commits]
        ['a1b2c3d']
    """
    if isinstance(since, datetime):
        since_str = since.isoformat()
    else:
        since_str = since

    cmd = ["git", "log", f"--since={since_str}", "--format=%H|%cI|%s"]
    if path is not None:
        cmd.extend(["--", str(path)])

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise GitCommandError(f"git log failed: {e.stderr.strip() if e.stderr else e}")
    except FileNotFoundError:
        raise GitCommandError("git is not installed")

    commits = []
    for line in result.stdout.strip().split("\n"):
        if not line:
            continue
        parts = line.split("|", 2)
        if len(parts) >= 3:
            commits.append({
                "hash": parts[0],
                "timestamp": parts[1],
                "message": parts[2],
            })

    return commits
