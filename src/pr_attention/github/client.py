"""Async GitHub API client wrapper using githubkit.

This module provides a typed async interface to the GitHub REST API for
the calls the sync engine makes: open pull requests, their detail, commit
statuses, check runs, reviews and conversation comments.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from githubkit import GitHub
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from pydantic import BaseModel

from pr_attention.config import get_settings
from pr_attention.logging import get_logger
from pr_attention.schemas.github_api import (
    GitHubAuthenticatedUser,
    GitHubCheckRun,
    GitHubCheckRuns,
    GitHubCombinedStatus,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubRepository,
    GitHubReview,
)

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubRetryableError,
)

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _check_runs_of(response: Any) -> list[Any]:
    """Unwrap one page of the check-runs endpoint, which nests its list."""
    return response.parsed_data.check_runs


class GitHubClient:
    """Async GitHub API client for PR data retrieval.

    Every request carries the configured timeout, so no call on the sync
    path can block indefinitely.

    Usage:
        async with GitHubClient(token) as client:
            for pr in await client.list_open_pull_requests("octo", "widgets"):
                print(pr.title)
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float | None = None,
        per_page: int | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub PAT. If not provided, uses GITHUB_TOKEN from settings.
            timeout: Per-request timeout in seconds (settings default if None)
            per_page: Page size for listings (settings default if None)

        Raises:
            GitHubAuthenticationError: If no token is available.
        """
        settings = get_settings()
        self._token = token or settings.github_token
        if not self._token:
            raise GitHubAuthenticationError(
                "GitHub token required. Set GITHUB_TOKEN environment variable."
            )
        self._timeout = timeout if timeout is not None else settings.github_timeout_seconds
        self._per_page = per_page if per_page is not None else settings.sync.per_page
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            self._client = GitHub(self._token, timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Drop the underlying githubkit client."""
        self._client = None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Request helpers
    # -------------------------------------------------------------------------
    async def _fetch_one(
        self,
        method: Callable[..., Any],
        schema: type[SchemaT],
        not_found: str,
        **kwargs: Any,
    ) -> SchemaT:
        try:
            resp = await method(**kwargs)
        except RequestFailed as e:
            if e.response.status_code == 404:
                raise GitHubNotFoundError(not_found) from e
            raise self._handle_error(e) from e
        except (RequestTimeout, RequestError) as e:
            raise GitHubRetryableError(f"GitHub request failed: {e}") from e
        return schema.model_validate(resp.parsed_data.model_dump())

    async def _fetch_all(
        self,
        method: Callable[..., Any],
        schema: type[SchemaT],
        not_found: str,
        **kwargs: Any,
    ) -> list[SchemaT]:
        items: list[SchemaT] = []
        try:
            item: Any
            async for item in self._github.paginate(method, per_page=self._per_page, **kwargs):
                items.append(schema.model_validate(item.model_dump()))
        except RequestFailed as e:
            if e.response.status_code == 404:
                raise GitHubNotFoundError(not_found) from e
            raise self._handle_error(e) from e
        except (RequestTimeout, RequestError) as e:
            raise GitHubRetryableError(f"GitHub request failed: {e}") from e
        return items

    # -------------------------------------------------------------------------
    # Users & Repositories
    # -------------------------------------------------------------------------
    async def get_authenticated_user(self) -> GitHubAuthenticatedUser:
        """Get the user that owns the token."""
        return await self._fetch_one(
            self._github.rest.users.async_get_authenticated,
            GitHubAuthenticatedUser,
            "Authenticated user not found",
        )

    async def get_repository(self, owner: str, repo: str) -> GitHubRepository:
        """Get repository metadata (including default branch).

        Raises:
            GitHubNotFoundError: If the repository doesn't exist or isn't visible
        """
        return await self._fetch_one(
            self._github.rest.repos.async_get,
            GitHubRepository,
            f"Repository {owner}/{repo} not found",
            owner=owner,
            repo=repo,
        )

    # -------------------------------------------------------------------------
    # Pull Requests
    # -------------------------------------------------------------------------
    async def list_open_pull_requests(self, owner: str, repo: str) -> list[GitHubPullRequest]:
        """List every open PR, most recently updated first, across all pages.

        Note: the list endpoint returns partial PR data. For stats and
        mergeability use get_pull_request().
        """
        prs = await self._fetch_all(
            self._github.rest.pulls.async_list,
            GitHubPullRequest,
            f"Repository {owner}/{repo} not found",
            owner=owner,
            repo=repo,
            state="open",
            sort="updated",
            direction="desc",
        )
        logger.debug("Listed {} open PRs for {}/{}", len(prs), owner, repo)
        return prs

    async def get_pull_request(self, owner: str, repo: str, number: int) -> GitHubPullRequest:
        """Get full details for a single pull request.

        Raises:
            GitHubNotFoundError: If PR doesn't exist
        """
        return await self._fetch_one(
            self._github.rest.pulls.async_get,
            GitHubPullRequest,
            f"PR #{number} not found in {owner}/{repo}",
            owner=owner,
            repo=repo,
            pull_number=number,
        )

    async def list_reviews(self, owner: str, repo: str, number: int) -> list[GitHubReview]:
        """Get all reviews for a pull request."""
        return await self._fetch_all(
            self._github.rest.pulls.async_list_reviews,
            GitHubReview,
            f"PR #{number} not found in {owner}/{repo}",
            owner=owner,
            repo=repo,
            pull_number=number,
        )

    async def list_issue_comments(
        self, owner: str, repo: str, number: int
    ) -> list[GitHubIssueComment]:
        """Get all conversation comments on a pull request."""
        return await self._fetch_all(
            self._github.rest.issues.async_list_comments,
            GitHubIssueComment,
            f"PR #{number} not found in {owner}/{repo}",
            owner=owner,
            repo=repo,
            issue_number=number,
        )

    # -------------------------------------------------------------------------
    # CI signals
    # -------------------------------------------------------------------------
    async def get_combined_status(self, owner: str, repo: str, ref: str) -> GitHubCombinedStatus:
        """Get the legacy combined commit status for a ref."""
        return await self._fetch_one(
            self._github.rest.repos.async_get_combined_status_for_ref,
            GitHubCombinedStatus,
            f"Ref {ref} not found in {owner}/{repo}",
            owner=owner,
            repo=repo,
            ref=ref,
            per_page=self._per_page,
        )

    async def list_check_runs(self, owner: str, repo: str, ref: str) -> GitHubCheckRuns:
        """Get every check run for a ref, across all pages."""
        runs = await self._fetch_all(
            self._github.rest.checks.async_list_for_ref,
            GitHubCheckRun,
            f"Ref {ref} not found in {owner}/{repo}",
            map_func=_check_runs_of,
            owner=owner,
            repo=repo,
            ref=ref,
        )
        return GitHubCheckRuns(total_count=len(runs), check_runs=runs)

    # -------------------------------------------------------------------------
    # Error Handling
    # -------------------------------------------------------------------------
    def _handle_error(self, error: RequestFailed) -> GitHubClientError:
        """Convert githubkit exceptions to our custom exceptions."""
        status = error.response.status_code

        if status == 401:
            return GitHubAuthenticationError("Invalid GitHub token")
        if status in (403, 429):
            headers = error.response.headers
            if headers.get("x-ratelimit-remaining") == "0" or status == 429:
                reset_ts = int(headers.get("x-ratelimit-reset", "0") or 0)
                reset_at = datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts else None
                return GitHubRateLimitError("GitHub rate limit exceeded", reset_at=reset_at)
            return GitHubClientError(f"Access forbidden: {error}")
        if status == 404:
            return GitHubNotFoundError(str(error))
        if status >= 500:
            return GitHubRetryableError(f"GitHub server error ({status}): {error}")
        return GitHubClientError(f"GitHub API error ({status}): {error}")
