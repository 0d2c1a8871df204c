"""Result objects for sync operations.

Structured results provide consistent interfaces for persistence,
error reporting and CLI output.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pr_attention.attention.scoring import AttentionState
from pr_attention.db.models import PullRequest, SyncStatus, SyncTrigger


@dataclass(frozen=True)
class SyncIssue:
    """A non-fatal problem recorded during a sync run."""

    repository: str
    """Full repository name, or "*" for run-level failures."""

    message: str
    """Human-readable error message."""

    pull_number: int | None = None
    """PR the issue belongs to, if it is per-PR."""

    @classmethod
    def from_exception(
        cls, repository: str, error: BaseException, pull_number: int | None = None
    ) -> "SyncIssue":
        message = str(error) or type(error).__name__
        return cls(repository=repository, message=message, pull_number=pull_number)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"repository": self.repository, "message": self.message}
        if self.pull_number is not None:
            data["pull_number"] = self.pull_number
        return data

    def __str__(self) -> str:
        where = self.repository
        if self.pull_number is not None:
            where = f"{where}#{self.pull_number}"
        return f"{where}: {self.message}"


@dataclass
class PullRequestSyncResult:
    """Outcome of syncing one PR."""

    pr: PullRequest
    """The upserted PR row."""

    attention: AttentionState
    """Freshly computed attention state."""

    created: bool = False
    """True if the PR row was inserted rather than updated."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "pr_id": self.pr.id,
            "pr_number": self.pr.number,
            "title": self.pr.title,
            "action": "created" if self.created else "updated",
            "ci_state": self.pr.ci_state.value,
            "review_state": self.pr.review_state.value,
            "urgency_score": self.attention.breakdown.final_score,
            "attention_reason": self.attention.reason,
            "needs_attention": self.attention.needs_attention,
            "score_breakdown": self.attention.breakdown.to_dict(),
        }


@dataclass
class RepositorySyncResult:
    """Result of syncing a single repository."""

    repository: str
    """Full repository name (owner/repo)."""

    pulled: int = 0
    """Open PRs listed from GitHub."""

    upserted: int = 0
    """PRs written successfully."""

    ci_unknown: int = 0
    """Written PRs whose CI state resolved to UNKNOWN."""

    issues: list[SyncIssue] = field(default_factory=list)
    """Per-PR (or repository-level) problems."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository,
            "pulled": self.pulled,
            "upserted": self.upserted,
            "ci_unknown": self.ci_unknown,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def classify_run_status(upserted: int, issues: list[SyncIssue]) -> SyncStatus:
    """Terminal status for a run given what it wrote and what went wrong."""
    if not issues:
        return SyncStatus.SUCCESS
    if upserted > 0:
        return SyncStatus.PARTIAL
    return SyncStatus.FAILED


@dataclass
class SyncRunResult:
    """Aggregate result of one orchestrator invocation."""

    run_id: int
    """ID of the persisted SyncRun row."""

    trigger: SyncTrigger
    status: SyncStatus
    viewer_login: str
    started_at: datetime
    finished_at: datetime

    repo_results: list[RepositorySyncResult] = field(default_factory=list)
    """Results for each repository, in processing order."""

    issues: list[SyncIssue] = field(default_factory=list)
    """All issues, including seeding and run-level ones."""

    @property
    def pulled(self) -> int:
        return sum(r.pulled for r in self.repo_results)

    @property
    def upserted(self) -> int:
        return sum(r.upserted for r in self.repo_results)

    @property
    def ci_unknown(self) -> int:
        return sum(r.ci_unknown for r in self.repo_results)

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "run_id": self.run_id,
            "trigger": self.trigger.value,
            "status": self.status.value,
            "viewer_login": self.viewer_login,
            "pulled_count": self.pulled,
            "upserted_count": self.upserted,
            "ci_unknown_count": self.ci_unknown,
            "error_count": len(self.issues),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 2),
            "repositories": [r.to_dict() for r in self.repo_results],
            "errors": [issue.to_dict() for issue in self.issues],
        }
