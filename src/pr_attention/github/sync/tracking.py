"""Tracked repository management: add, list and soft-remove."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pr_attention.db.models import Repository, RepositoryProvenance
from pr_attention.db.repositories import RepositoryRepository
from pr_attention.logging import get_logger
from pr_attention.schemas.repository import parse_repo_string

if TYPE_CHECKING:
    from pr_attention.github.client import GitHubClient

logger = get_logger(__name__)


class TrackedRepositoryService:
    """Manage which repositories a user syncs.

    Usage:
        service = TrackedRepositoryService(RepositoryRepository(session), client)
        repo = await service.add("octo/widgets", user_id=user.id)
    """

    def __init__(
        self,
        repo_repository: RepositoryRepository,
        client: GitHubClient | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repo_repository: Repository for Repository model
            client: GitHub client, required only by add()
        """
        self._repo_repository = repo_repository
        self._client = client

    async def add(
        self,
        full_name: str,
        *,
        user_id: int | None,
        provenance: RepositoryProvenance = RepositoryProvenance.EXPLICIT,
    ) -> Repository:
        """Track a repository, fetching its metadata from GitHub.

        Re-adding a soft-removed repository tracks it again.

        Raises:
            ValueError: If full_name is not owner/name
            GitHubNotFoundError: If GitHub has no such repository
        """
        if self._client is None:
            raise RuntimeError("A GitHub client is required to add repositories")

        owner, name = parse_repo_string(full_name)
        gh_repo = await self._client.get_repository(owner, name)
        repo, created = await self._repo_repository.upsert_tracked(
            gh_repo, user_id=user_id, provenance=provenance
        )
        logger.info(
            "{} tracked repository {} ({})",
            "Added" if created else "Refreshed",
            repo.full_name,
            provenance.value,
        )
        return repo

    async def list_tracked(self, user_id: int | None = None) -> list[Repository]:
        return await self._repo_repository.list_tracked(user_id)

    async def remove(self, identifier: str | int) -> Repository | None:
        """Stop tracking a repository by ID or by owner/name (any case).

        Returns:
            The untracked repository, or None if nothing matched
        """
        if isinstance(identifier, int) or identifier.isdigit():
            repo = await self._repo_repository.untrack(int(identifier))
        else:
            repo = await self._repo_repository.untrack_by_full_name(identifier.strip())

        if repo is not None:
            logger.info("Stopped tracking {}", repo.full_name)
        return repo
