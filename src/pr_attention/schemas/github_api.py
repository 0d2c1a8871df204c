"""Pydantic schemas for parsing GitHub API responses.

One explicit model per response shape consumed by the sync engine.
See: https://docs.github.com/en/rest/pulls/pulls
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UnrecognizedStateError(ValueError):
    """Raised when GitHub returns an enum value we have no mapping for."""

    def __init__(self, kind: str, value: object) -> None:
        super().__init__(f"Unrecognized {kind}: {value!r}")
        self.kind = kind
        self.value = value


class GitHubUser(BaseModel):
    """GitHub user object from API responses."""

    login: str = Field(description="GitHub username")
    id: int = Field(description="GitHub user ID")
    type: str = Field(default="User", description="User type")


class GitHubAuthenticatedUser(BaseModel):
    """Response of GET /user."""

    login: str
    id: int
    name: str | None = None
    avatar_url: str | None = None


class GitHubTeam(BaseModel):
    """Team requested as a reviewer."""

    slug: str


class GitHubLabel(BaseModel):
    """GitHub label object from API responses."""

    name: str = Field(description="Label name")


class GitHubMilestone(BaseModel):
    title: str


class GitHubBranchRef(BaseModel):
    """Head or base side of a pull request."""

    ref: str = Field(description="Branch name")
    sha: str = Field(description="Commit SHA at the tip of the branch")


class GitHubRepository(BaseModel):
    """Response of GET /repos/{owner}/{repo}."""

    id: int
    name: str
    full_name: str
    owner: GitHubUser
    default_branch: str = "main"


class GitHubPullRequest(BaseModel):
    """GitHub Pull Request object from API.

    Unknown upstream fields are retained so the full payload can be stored.
    The list endpoint omits the stats and mergeable fields; they are only
    populated by GET /repos/{owner}/{repo}/pulls/{number}.
    """

    model_config = ConfigDict(extra="allow")

    id: int = Field(description="GitHub PR ID")
    node_id: str | None = Field(default=None, description="GraphQL node ID")
    number: int = Field(description="PR number")
    html_url: str = Field(description="GitHub PR URL")
    state: str = Field(description="PR state (open, closed)")
    title: str = Field(description="PR title")
    body: str | None = Field(default=None, description="PR description")
    draft: bool = Field(default=False, description="Whether the PR is a draft")

    user: GitHubUser = Field(description="PR author")
    head: GitHubBranchRef
    base: GitHubBranchRef

    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    merged: bool = False
    mergeable: bool | None = None

    labels: list[GitHubLabel] = Field(default_factory=list)
    assignees: list[GitHubUser] = Field(default_factory=list)
    requested_reviewers: list[GitHubUser] = Field(default_factory=list)
    requested_teams: list[GitHubTeam] = Field(default_factory=list)
    milestone: GitHubMilestone | None = None

    # Detail-only stats
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    comments: int = 0
    review_comments: int = 0
    commits: int = 0

    @property
    def requested_reviewer_names(self) -> list[str]:
        """Requested users plus teams as ``team:<slug>``."""
        return [u.login for u in self.requested_reviewers] + [
            f"team:{t.slug}" for t in self.requested_teams
        ]

    def raw_payload(self) -> dict[str, Any]:
        """JSON-safe copy of everything GitHub sent."""
        return self.model_dump(mode="json")


class GitHubReview(BaseModel):
    """GitHub review object from reviews endpoint."""

    id: int = Field(description="Review ID")
    user: GitHubUser | None = Field(default=None, description="Reviewer (None for ghost users)")
    state: str = Field(description="APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED or PENDING")
    submitted_at: datetime | None = Field(default=None, description="When review was submitted")


class GitHubIssueComment(BaseModel):
    """Comment on the PR conversation (issue comments endpoint)."""

    id: int
    user: GitHubUser | None = None
    created_at: datetime
    updated_at: datetime | None = None


class GitHubCommitStatus(BaseModel):
    state: str
    context: str = ""


class GitHubCombinedStatus(BaseModel):
    """Response of GET /repos/{owner}/{repo}/commits/{ref}/status."""

    state: str
    total_count: int = 0
    statuses: list[GitHubCommitStatus] = Field(default_factory=list)


class GitHubCheckRun(BaseModel):
    name: str = ""
    status: str
    conclusion: str | None = None


class GitHubCheckRuns(BaseModel):
    """Response of GET /repos/{owner}/{repo}/commits/{ref}/check-runs."""

    total_count: int = 0
    check_runs: list[GitHubCheckRun] = Field(default_factory=list)
