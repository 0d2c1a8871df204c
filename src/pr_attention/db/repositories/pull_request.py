"""Repository for PullRequest model upserts."""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.db.models import CIState, PRState, PullRequest, ReviewState
from pr_attention.schemas.github_api import GitHubPullRequest

from .base import BaseRepository


def pr_state_from_github(gh_pr: GitHubPullRequest) -> PRState:
    """Map GitHub's open/closed plus merged flag onto the lifecycle enum."""
    if gh_pr.merged or gh_pr.merged_at is not None:
        return PRState.MERGED
    if gh_pr.state == "closed":
        return PRState.CLOSED
    return PRState.OPEN


class PullRequestRepository(BaseRepository[PullRequest]):
    """Repository for PullRequest entities.

    Writes are upserts keyed by (repository_id, number), so re-syncing the
    same remote data updates the existing row instead of adding one.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PullRequest)

    async def get_by_number(self, repository_id: int, number: int) -> PullRequest | None:
        """Get a PR by repository and PR number."""
        stmt = select(PullRequest).where(
            PullRequest.repository_id == repository_id,
            PullRequest.number == number,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_repository(
        self,
        repository_id: int,
        state: PRState | None = None,
    ) -> list[PullRequest]:
        stmt = select(PullRequest).where(PullRequest.repository_id == repository_id)
        if state is not None:
            stmt = stmt.where(PullRequest.state == state)
        result = await self._session.execute(stmt.order_by(PullRequest.number))
        return list(result.scalars().all())

    async def upsert(
        self,
        repository_id: int,
        gh_pr: GitHubPullRequest,
        *,
        ci_state: CIState,
        review_state: ReviewState,
        last_activity_at: datetime | None = None,
    ) -> tuple[PullRequest, bool]:
        """Insert or update a PR from its GitHub detail payload.

        Args:
            repository_id: Parent repository ID
            gh_pr: Full PR payload (detail endpoint, so stats are populated)
            ci_state: Resolved CI state
            review_state: Resolved review state
            last_activity_at: Latest review or comment time, if newer than updated_at

        Returns:
            Tuple of (pull request, created)
        """
        pr = await self.get_by_number(repository_id, gh_pr.number)
        created = pr is None
        if pr is None:
            pr = self.add(PullRequest(repository_id=repository_id, number=gh_pr.number))

        for field, value in self._payload_to_dict(gh_pr).items():
            setattr(pr, field, value)
        pr.ci_state = ci_state
        pr.review_state = review_state
        if last_activity_at is not None:
            pr.last_activity_at = max(pr.last_activity_at, _naive_utc(last_activity_at))

        await self.flush()
        return pr, created

    @staticmethod
    def _payload_to_dict(gh_pr: GitHubPullRequest) -> dict[str, object]:
        """Column values derived from a GitHub payload."""
        return {
            "github_id": gh_pr.id,
            "node_id": gh_pr.node_id,
            "url": gh_pr.html_url,
            "author_login": gh_pr.user.login,
            "title": gh_pr.title,
            "body": gh_pr.body,
            "state": pr_state_from_github(gh_pr),
            "draft": gh_pr.draft,
            "mergeable": gh_pr.mergeable,
            "head_ref": gh_pr.head.ref,
            "base_ref": gh_pr.base.ref,
            "milestone": gh_pr.milestone.title if gh_pr.milestone else None,
            "additions": gh_pr.additions,
            "deletions": gh_pr.deletions,
            "changed_files": gh_pr.changed_files,
            "comments_count": gh_pr.comments + gh_pr.review_comments,
            "commits_count": gh_pr.commits,
            "labels": [label.name for label in gh_pr.labels],
            "assignees": [a.login for a in gh_pr.assignees],
            "requested_reviewers": gh_pr.requested_reviewer_names,
            "github_created_at": _naive_utc(gh_pr.created_at),
            "github_updated_at": _naive_utc(gh_pr.updated_at),
            "closed_at": _naive_utc(gh_pr.closed_at),
            "merged_at": _naive_utc(gh_pr.merged_at),
            "last_activity_at": _naive_utc(gh_pr.updated_at),
            "raw": gh_pr.raw_payload(),
        }


def _naive_utc(value: datetime | None) -> datetime | None:
    """SQLite DateTime columns store naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
