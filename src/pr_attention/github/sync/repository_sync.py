"""Repository Synchronizer - open PRs → resolvers → attention → store.

For one tracked repository, lists every open pull request, resolves its CI
and review state, scores it and upserts both the PR row and its attention
row. Network calls for a PR all happen before any write for that PR.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.attention import build_attention_state
from pr_attention.config import ScoringWeights, get_settings
from pr_attention.db.models import CIState, Repository, ReviewState
from pr_attention.db.repositories import (
    AttentionRepository,
    PullRequestRepository,
    RepositoryRepository,
)
from pr_attention.github.exceptions import GitHubClientError
from pr_attention.logging import bind_pr, bind_repo, get_logger
from pr_attention.schemas.github_api import (
    GitHubCheckRuns,
    GitHubCombinedStatus,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubReview,
)

from .resolvers import (
    ViewerActivity,
    resolve_ci_state,
    resolve_review_state,
    resolve_viewer_activity,
    short_circuit_review_state,
)
from .results import PullRequestSyncResult, RepositorySyncResult, SyncIssue

if TYPE_CHECKING:
    from loguru import Logger

    from pr_attention.github.client import GitHubClient

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class RepositorySynchronizer:
    """Sync the open pull requests of one repository at a time.

    Per-PR failures become SyncIssues and never stop the loop. Failing to
    reach the repository itself (metadata or PR listing) raises, so the
    caller can record one repository-level issue.

    Usage:
        async with GitHubClient(token) as client:
            async with get_session() as session:
                synchronizer = RepositorySynchronizer(
                    client, session, viewer_login="octocat"
                )
                result = await synchronizer.sync_repository(repo)
                print(f"{result.upserted}/{result.pulled} PRs synced")
    """

    def __init__(
        self,
        client: GitHubClient,
        session: AsyncSession,
        *,
        viewer_login: str | None,
        weights: ScoringWeights | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            client: Authenticated GitHub client
            session: Session the upserts are written to (caller commits)
            viewer_login: Login the attention state is computed for
            weights: Scoring weights (settings default if None)
            clock: Source of "now" for staleness and sync timestamps
        """
        self._client = client
        self._session = session
        self._viewer_login = viewer_login
        self._weights = weights or get_settings().scoring
        self._clock = clock
        self._repo_repository = RepositoryRepository(session)
        self._pr_repository = PullRequestRepository(session)
        self._attention_repository = AttentionRepository(session)

    async def sync_repository(self, repository: Repository) -> RepositorySyncResult:
        """Sync every open PR of a tracked repository.

        Flow:
            1. Refresh repository metadata (default branch, ids)
            2. List all open PRs, across every page
            3. For each PR: fetch detail and signals, resolve, score, upsert
            4. Stamp the repository's last_synced_at

        Raises:
            GitHubClientError: If the repository or its PR listing is unreachable
        """
        repo_logger = bind_repo(repository.full_name)
        owner, name = repository.owner, repository.name

        gh_repo = await self._client.get_repository(owner, name)
        await self._repo_repository.upsert_tracked(
            gh_repo, user_id=repository.user_id, provenance=repository.provenance
        )

        open_prs = await self._client.list_open_pull_requests(owner, name)
        result = RepositorySyncResult(repository=repository.full_name, pulled=len(open_prs))

        for listed in open_prs:
            try:
                pr_result = await self._sync_one(repository, listed.number)
            except Exception as e:
                bind_pr(repository.full_name, listed.number).warning(
                    "PR sync failed: {}", e
                )
                result.issues.append(
                    SyncIssue.from_exception(repository.full_name, e, pull_number=listed.number)
                )
                continue

            result.upserted += 1
            if pr_result.pr.ci_state == CIState.UNKNOWN:
                result.ci_unknown += 1
            bind_pr(repository.full_name, listed.number).debug(
                "{} PR (score={}, reason={})",
                "Created" if pr_result.created else "Updated",
                pr_result.attention.breakdown.final_score,
                pr_result.attention.reason,
            )

        await self._repo_repository.mark_synced(repository, self._clock())
        repo_logger.info(
            "Synced repository: pulled={}, upserted={}, ci_unknown={}, issues={}",
            result.pulled,
            result.upserted,
            result.ci_unknown,
            len(result.issues),
        )
        return result

    async def sync_pull_request(self, repository: Repository, number: int) -> PullRequestSyncResult:
        """Refresh a single PR by number, whatever its state.

        Unlike sync_repository, failures propagate to the caller.
        """
        result = await self._sync_one(repository, number)
        bind_pr(repository.full_name, number).info(
            "Refreshed PR (score={}, reason={})",
            result.attention.breakdown.final_score,
            result.attention.reason,
        )
        return result

    # -------------------------------------------------------------------------
    # Per-PR pipeline
    # -------------------------------------------------------------------------
    async def _sync_one(self, repository: Repository, number: int) -> PullRequestSyncResult:
        owner, name = repository.owner, repository.name
        pr_logger = bind_pr(repository.full_name, number)

        # The list payload lacks stats and mergeability
        gh_pr = await self._client.get_pull_request(owner, name, number)

        ci_state = await self._resolve_ci(owner, name, gh_pr, pr_logger)

        early = short_circuit_review_state(
            draft=gh_pr.draft, requested_reviewers=gh_pr.requested_reviewer_names
        )
        if early is not None:
            # Drafts and PRs awaiting requested reviewers skip the review fetch
            review_state = early
            reviews: list[GitHubReview] | None = []
        else:
            reviews = await self._fetch_reviews(owner, name, number, pr_logger)
            review_state = self._review_state(gh_pr, reviews)
        comments = await self._fetch_comments(owner, name, number, pr_logger)
        activity = self._viewer_activity(reviews, comments)

        now = self._clock()
        attention = build_attention_state(
            viewer_login=self._viewer_login,
            ci_state=ci_state,
            review_state=review_state,
            is_draft=gh_pr.draft,
            updated_at=gh_pr.updated_at,
            now=now,
            assignees=[a.login for a in gh_pr.assignees],
            requested_reviewers=gh_pr.requested_reviewer_names,
            body=gh_pr.body,
            weights=self._weights,
            is_mergeable=gh_pr.mergeable,
            additions=gh_pr.additions,
            deletions=gh_pr.deletions,
            comment_count=gh_pr.comments + gh_pr.review_comments,
            commit_count=gh_pr.commits,
            last_activity_by_viewer=activity.last_actor_is_viewer,
        )

        # A failed flush rolls back this PR only, leaving the session usable
        async with self._session.begin_nested():
            pr, created = await self._pr_repository.upsert(
                repository.id,
                gh_pr,
                ci_state=ci_state,
                review_state=review_state,
                last_activity_at=activity.last_activity_at,
            )
            await self._attention_repository.upsert(pr.id, attention, now)

        return PullRequestSyncResult(pr=pr, attention=attention, created=created)

    async def _resolve_ci(
        self,
        owner: str,
        name: str,
        gh_pr: GitHubPullRequest,
        pr_logger: Logger,
    ) -> CIState:
        sha = gh_pr.head.sha
        combined: GitHubCombinedStatus | None = None
        checks: GitHubCheckRuns | None = None

        try:
            combined = await self._client.get_combined_status(owner, name, sha)
        except GitHubClientError as e:
            pr_logger.warning("Combined status unavailable, ignoring it: {}", e)

        try:
            checks = await self._client.list_check_runs(owner, name, sha)
        except GitHubClientError as e:
            pr_logger.warning("Check runs unavailable, ignoring them: {}", e)

        ci_state = resolve_ci_state(combined, checks)
        if ci_state == CIState.UNKNOWN:
            pr_logger.info("No CI signal for head {}", sha[:12])
        return ci_state

    async def _fetch_reviews(
        self, owner: str, name: str, number: int, pr_logger: Logger
    ) -> list[GitHubReview] | None:
        try:
            return await self._client.list_reviews(owner, name, number)
        except GitHubClientError as e:
            pr_logger.warning("Reviews unavailable, treating PR as unreviewed: {}", e)
            return None

    async def _fetch_comments(
        self, owner: str, name: str, number: int, pr_logger: Logger
    ) -> list[GitHubIssueComment] | None:
        try:
            return await self._client.list_issue_comments(owner, name, number)
        except GitHubClientError as e:
            pr_logger.warning("Comments unavailable, assuming viewer did not act last: {}", e)
            return None

    @staticmethod
    def _review_state(
        gh_pr: GitHubPullRequest, reviews: list[GitHubReview] | None
    ) -> ReviewState:
        if reviews is None:
            return ReviewState.UNREVIEWED
        return resolve_review_state(
            draft=gh_pr.draft,
            requested_reviewers=gh_pr.requested_reviewer_names,
            reviews=reviews,
        )

    def _viewer_activity(
        self,
        reviews: list[GitHubReview] | None,
        comments: list[GitHubIssueComment] | None,
    ) -> ViewerActivity:
        if comments is None:
            return ViewerActivity(False, None)
        return resolve_viewer_activity(self._viewer_login, reviews or [], comments)
