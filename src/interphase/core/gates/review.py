"""
Review staleness detection.

A review is recorded as a findings.json file under the review directory:

    {"bead_id": "Clavain-a1b", "input": "docs/plans/gates.md",
     "reviewed": "2026-01-15T12:00:00Z", ...}

A review is stale when the artifact it approved has commits after the
reviewed timestamp.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from interphase.core.repository import Repository
from interphase.utils.git import GitCommandError

from .models import ErrorClass, ReviewStaleness, StalenessReport

logger = logging.getLogger(__name__)

FINDINGS_FILENAME = "findings.json"


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ReviewStalenessChecker:
    """
    Decide whether the review covering an artifact is still current.

    Example:
        >>> checker = ReviewStalenessChecker(Repository(project_dir))
        >>> checker.check("Clavain-a1b", "docs/plans/gates.md").status
        <ReviewStaleness.FRESH: 'fresh'>
    """

    def __init__(self, repository: Repository, review_dir: str = "docs/research/flux-drive"):
        self.repository = repository
        self.review_dir = review_dir

    def _load_findings(self) -> list[tuple[Path, dict[str, Any]]]:
        records = []
        for path in self.repository.find_files(self.review_dir, FINDINGS_FILENAME):
            content = self.repository.read_file(path)
            if content is None:
                continue
            try:
                data = json.loads(content)
            except json.JSONDecodeError:
                logger.debug("Skipping unparsable review record %s", path)
                continue
            if isinstance(data, dict):
                records.append((path, data))
        return records

    def find_review(
        self, item_id: str | None, artifact_path: str
    ) -> tuple[Path, dict[str, Any]] | None:
        """
        Locate the review for a bead: by bead reference first, then by
        the artifact's filename appearing in the review input.
        """
        records = self._load_findings()

        if item_id:
            for path, data in records:
                review_input = data.get("input") or ""
                if data.get("bead_id") == item_id or (
                    isinstance(review_input, str) and item_id in review_input
                ):
                    return path, data

        basename = Path(artifact_path).name
        for path, data in records:
            review_input = data.get("input") or ""
            if isinstance(review_input, str) and basename and basename in review_input:
                return path, data

        return None

    def check(self, item_id: str | None, artifact_path: str | None) -> StalenessReport:
        """
        Classify the review of an artifact as fresh, stale, none or unknown.
        """
        if not artifact_path:
            return StalenessReport(ReviewStaleness.NONE)

        if not self.repository.resolve(self.review_dir).is_dir():
            return StalenessReport(ReviewStaleness.NONE)

        found = self.find_review(item_id, artifact_path)
        if found is None:
            return StalenessReport(ReviewStaleness.NONE)

        findings_path, data = found
        findings = self.repository.relative(findings_path)
        reviewed = data.get("reviewed")

        if reviewed is None or reviewed == "" or reviewed == "null":
            return StalenessReport(
                ReviewStaleness.UNKNOWN,
                ErrorClass.PERMANENT,
                "review_timestamp_missing",
                findings,
            )
        reviewed_at = _parse_timestamp(reviewed) if isinstance(reviewed, str) else None
        if reviewed_at is None:
            return StalenessReport(
                ReviewStaleness.UNKNOWN,
                ErrorClass.PERMANENT,
                "review_metadata_malformed",
                findings,
            )

        if not self.repository.exists(artifact_path):
            return StalenessReport(ReviewStaleness.FRESH, findings_path=findings)

        try:
            commits = self.repository.commits_since(artifact_path, reviewed)
        except GitCommandError as e:
            logger.debug("Commit lookup failed for %s: %s", artifact_path, e)
            return StalenessReport(
                ReviewStaleness.UNKNOWN,
                ErrorClass.TRANSIENT,
                "git_log_failed",
                findings,
            )

        for commit in commits:
            committed_at = _parse_timestamp(commit.timestamp)
            if committed_at is None or committed_at > reviewed_at:
                return StalenessReport(ReviewStaleness.STALE, findings_path=findings)

        return StalenessReport(ReviewStaleness.FRESH, findings_path=findings)
