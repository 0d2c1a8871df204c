"""Factory functions for creating test data.

This module provides factory functions for:
- SQLAlchemy ORM models (User, Repository, PullRequest)
- GitHub API payloads (dicts) and their parsed schemas

Design principles:
- Factories provide sensible defaults that can be overridden
- Model factories add to session but don't flush (tests control flush timing)
- Payload factories return dicts shaped like the GitHub REST API
"""

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.db.models import (
    CIState,
    PRState,
    PullRequest,
    Repository,
    RepositoryProvenance,
    ReviewState,
    User,
)
from pr_attention.schemas import (
    GitHubAuthenticatedUser,
    GitHubCheckRuns,
    GitHubCombinedStatus,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubRepository,
    GitHubReview,
)

# Import test timeline constants
from tests.conftest import JAN_15, JAN_15_ISO, JAN_16, JAN_16_ISO


# -----------------------------------------------------------------------------
# Model Factories
# -----------------------------------------------------------------------------
def make_user(
    session: AsyncSession,
    *,
    login: str = "octocat",
    github_id: int = 583231,
    **overrides: Any,
) -> User:
    """Create a User model instance (added to session, not flushed)."""
    user = User(github_id=github_id, login=login, **overrides)
    session.add(user)
    return user


def make_repository(
    session: AsyncSession,
    *,
    owner: str = "octo",
    name: str = "widgets",
    full_name: str | None = None,
    user: User | None = None,
    is_tracked: bool = True,
    provenance: RepositoryProvenance = RepositoryProvenance.EXPLICIT,
    default_branch: str = "main",
    **overrides: Any,
) -> Repository:
    """Create a Repository model instance.

    Args:
        session: Async database session (model will be added but not flushed)
        owner: GitHub org/user
        name: Repository name
        full_name: Full path (defaults to "{owner}/{name}")
        user: Owning user
        is_tracked: Whether the repository is synced
        provenance: How the repository came to be tracked
        default_branch: Default branch name
        **overrides: Additional field overrides

    Returns:
        Repository instance (added to session, not flushed)
    """
    repo = Repository(
        owner=owner,
        name=name,
        full_name=full_name or f"{owner}/{name}",
        user=user,
        is_tracked=is_tracked,
        provenance=provenance,
        default_branch=default_branch,
        **overrides,
    )
    session.add(repo)
    return repo


def make_pull_request(
    session: AsyncSession,
    repository: Repository,
    *,
    number: int = 42,
    title: str | None = None,
    state: PRState = PRState.OPEN,
    head_ref: str = "feat/login",
    base_ref: str = "dev",
    ci_state: CIState = CIState.SUCCESS,
    review_state: ReviewState = ReviewState.UNREVIEWED,
    updated_at: datetime | None = None,
    **overrides: Any,
) -> PullRequest:
    """Create a PullRequest model instance (added to session, not flushed)."""
    updated = (updated_at or JAN_16).replace(tzinfo=None)
    pr = PullRequest(
        repository=repository,
        number=number,
        github_id=1_000_000 + number,
        url=f"https://github.com/{repository.full_name}/pull/{number}",
        author_login="contributor",
        title=title or f"Test PR #{number}",
        state=state,
        head_ref=head_ref,
        base_ref=base_ref,
        ci_state=ci_state,
        review_state=review_state,
        github_created_at=JAN_15.replace(tzinfo=None),
        github_updated_at=updated,
        last_activity_at=updated,
        **overrides,
    )
    session.add(pr)
    return pr


# -----------------------------------------------------------------------------
# GitHub Payload Factories
# -----------------------------------------------------------------------------
def make_github_user(login: str = "contributor", user_id: int = 1001) -> dict[str, Any]:
    return {"login": login, "id": user_id, "type": "User"}


def make_github_pr(
    number: int = 42,
    *,
    owner: str = "octo",
    repo: str = "widgets",
    title: str | None = None,
    state: str = "open",
    draft: bool = False,
    author: str = "contributor",
    head_ref: str = "feat/login",
    base_ref: str = "dev",
    head_sha: str = "0123456789abcdef0123456789abcdef01234567",
    requested_reviewers: list[str] | None = None,
    assignees: list[str] | None = None,
    mergeable: bool | None = True,
    body: str | None = "Adds the login page.",
    created_at: str = JAN_15_ISO,
    updated_at: str = JAN_16_ISO,
    **overrides: Any,
) -> dict[str, Any]:
    """Create a GitHub PR detail payload.

    Returns:
        Dict shaped like GET /repos/{owner}/{repo}/pulls/{number}
    """
    payload: dict[str, Any] = {
        "id": 1_000_000 + number,
        "node_id": f"PR_node{number}",
        "number": number,
        "html_url": f"https://github.com/{owner}/{repo}/pull/{number}",
        "state": state,
        "title": title or f"Test PR #{number}",
        "body": body,
        "draft": draft,
        "user": make_github_user(author),
        "head": {"ref": head_ref, "sha": head_sha},
        "base": {"ref": base_ref, "sha": "fedcba9876543210fedcba9876543210fedcba98"},
        "created_at": created_at,
        "updated_at": updated_at,
        "closed_at": None,
        "merged_at": None,
        "merged": False,
        "mergeable": mergeable,
        "labels": [{"id": 1, "name": "enhancement"}],
        "assignees": [make_github_user(a, 2000 + i) for i, a in enumerate(assignees or [])],
        "requested_reviewers": [
            make_github_user(r, 3000 + i) for i, r in enumerate(requested_reviewers or [])
        ],
        "requested_teams": [],
        "milestone": None,
        "additions": 120,
        "deletions": 30,
        "changed_files": 4,
        "comments": 2,
        "review_comments": 1,
        "commits": 3,
    }
    payload.update(overrides)
    return payload


def make_gh_pr(number: int = 42, **kwargs: Any) -> GitHubPullRequest:
    """Parsed GitHubPullRequest built from make_github_pr()."""
    return GitHubPullRequest.model_validate(make_github_pr(number, **kwargs))


def make_gh_repository(
    owner: str = "octo", name: str = "widgets", *, repo_id: int = 77, default_branch: str = "main"
) -> GitHubRepository:
    return GitHubRepository.model_validate(
        {
            "id": repo_id,
            "name": name,
            "full_name": f"{owner}/{name}",
            "owner": make_github_user(owner, 9000),
            "default_branch": default_branch,
        }
    )


def make_gh_viewer(login: str = "octocat", user_id: int = 583231) -> GitHubAuthenticatedUser:
    return GitHubAuthenticatedUser(
        login=login, id=user_id, name="The Octocat", avatar_url="https://example.com/a.png"
    )


def make_gh_review(
    review_id: int = 1,
    *,
    login: str = "reviewer",
    state: str = "APPROVED",
    submitted_at: str | None = JAN_16_ISO,
) -> GitHubReview:
    return GitHubReview.model_validate(
        {
            "id": review_id,
            "user": make_github_user(login, 4000 + review_id),
            "state": state,
            "submitted_at": submitted_at,
        }
    )


def make_gh_comment(
    comment_id: int = 1, *, login: str = "contributor", created_at: str = JAN_16_ISO
) -> GitHubIssueComment:
    return GitHubIssueComment.model_validate(
        {
            "id": comment_id,
            "user": make_github_user(login, 5000 + comment_id),
            "created_at": created_at,
        }
    )


def make_combined_status(state: str = "success", total_count: int = 1) -> GitHubCombinedStatus:
    return GitHubCombinedStatus(
        state=state,
        total_count=total_count,
        statuses=[{"state": state, "context": "ci/build"}] * total_count,
    )


def make_check_runs(*runs: tuple[str, str | None]) -> GitHubCheckRuns:
    """Check runs from (status, conclusion) pairs."""
    return GitHubCheckRuns(
        total_count=len(runs),
        check_runs=[
            {"name": f"check-{i}", "status": status, "conclusion": conclusion}
            for i, (status, conclusion) in enumerate(runs)
        ],
    )
