"""Pydantic schemas for PR Attention.

GitHub response models for input, read models for output.
"""

from .base import SchemaBase
from .github_api import (
    GitHubAuthenticatedUser,
    GitHubBranchRef,
    GitHubCheckRun,
    GitHubCheckRuns,
    GitHubCombinedStatus,
    GitHubCommitStatus,
    GitHubIssueComment,
    GitHubLabel,
    GitHubMilestone,
    GitHubPullRequest,
    GitHubRepository,
    GitHubReview,
    GitHubTeam,
    GitHubUser,
    UnrecognizedStateError,
)
from .repository import RepositoryRead, parse_repo_string
from .sync_run import SyncRunRead

__all__ = [
    # Base
    "SchemaBase",
    # GitHub API
    "GitHubAuthenticatedUser",
    "GitHubBranchRef",
    "GitHubCheckRun",
    "GitHubCheckRuns",
    "GitHubCombinedStatus",
    "GitHubCommitStatus",
    "GitHubIssueComment",
    "GitHubLabel",
    "GitHubMilestone",
    "GitHubPullRequest",
    "GitHubRepository",
    "GitHubReview",
    "GitHubTeam",
    "GitHubUser",
    "UnrecognizedStateError",
    # Read models
    "RepositoryRead",
    "SyncRunRead",
    "parse_repo_string",
]
