"""
Project repository access.

File reads, atomic writes, artifact globbing, and commit-history lookups
rooted at the project directory. Relative paths are resolved against the
project root.
"""

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from interphase.utils.git import get_commits_since


@dataclass(frozen=True)
class Commit:
    hash: str
    message: str
    timestamp: str


def atomic_write_text(path: Path, content: str) -> None:
    """
    Write a file via temp file + rename so readers never see a partial write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_path, path)
    except Exception:
        Path(temp_path).unlink(missing_ok=True)
        raise


class Repository:
    """
    Filesystem and git view of a project.

    Example:
        >>> repo = Repository(Path("/project"))
        >>> repo.read_file("docs/plans/gates.md") is None
        False
    """

    def __init__(self, project_dir: Path):
        self.project_dir = project_dir

    def resolve(self, path: str | Path) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path
        return self.project_dir / path

    def relative(self, path: str | Path) -> str:
        """Path relative to the project root when possible."""
        resolved = self.resolve(path)
        try:
            return str(resolved.relative_to(self.project_dir))
        except ValueError:
            return str(resolved)

    def exists(self, path: str | Path) -> bool:
        return self.resolve(path).is_file()

    def read_file(self, path: str | Path) -> str | None:
        """File content, or None when missing or unreadable."""
        try:
            return self.resolve(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def write_file(self, path: str | Path, content: str) -> None:
        """Atomically replace a file's content."""
        atomic_write_text(self.resolve(path), content)

    def mtime(self, path: str | Path) -> float | None:
        try:
            return self.resolve(path).stat().st_mtime
        except OSError:
            return None

    def find_files(self, directory: str | Path, pattern: str = "*.md") -> list[Path]:
        """Recursively find files under a directory, in sorted order."""
        root = self.resolve(directory)
        if not root.is_dir():
            return []
        return sorted(p for p in root.rglob(pattern) if p.is_file())

    def commits_since(self, path: str | Path, since: datetime | str) -> list[Commit]:
        """
        Commits touching path since a timestamp.

        Raises:
            GitCommandError: If the history query fails
        """
        return [
            Commit(hash=c["hash"], message=c["message"], timestamp=c["timestamp"])
            for c in get_commits_since(since, path=self.relative(path), cwd=self.project_dir)
        ]
