"""Repository for tracked GitHub repositories."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.db.models import Repository, RepositoryProvenance
from pr_attention.schemas.github_api import GitHubRepository

from .base import BaseRepository


class RepositoryRepository(BaseRepository[Repository]):
    """Repository for GitHub Repository entities.

    Rows are soft-removed through is_tracked and never deleted, so
    previously synced pull requests keep their parent.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Repository)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_full_name(self, full_name: str) -> Repository | None:
        """Get a repository by owner/name, ignoring case.

        Args:
            full_name: Full repository name (e.g., "octo/widgets")

        Returns:
            Repository or None if not found
        """
        stmt = select(Repository).where(func.lower(Repository.full_name) == full_name.lower())
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_tracked(self, user_id: int | None = None) -> list[Repository]:
        """Get tracked repositories ordered by full name.

        Args:
            user_id: Restrict to one user's repositories when given

        Returns:
            List of tracked repositories
        """
        stmt = select(Repository).where(Repository.is_tracked.is_(True))
        if user_id is not None:
            stmt = stmt.where(Repository.user_id == user_id)
        stmt = stmt.order_by(Repository.full_name)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Create/Update Methods
    # -------------------------------------------------------------------------

    async def upsert_tracked(
        self,
        gh_repo: GitHubRepository,
        *,
        user_id: int | None,
        provenance: RepositoryProvenance = RepositoryProvenance.EXPLICIT,
    ) -> tuple[Repository, bool]:
        """Create or refresh a repository from GitHub metadata and mark it tracked.

        An explicit add upgrades a previously seeded row; seeding never
        downgrades an explicit one.

        Args:
            gh_repo: Repository payload from GitHub
            user_id: Owning user
            provenance: How the repository is being tracked

        Returns:
            Tuple of (repository, created) where created is True if new
        """
        repo = await self.get_by_full_name(gh_repo.full_name)
        created = repo is None
        if repo is None:
            repo = self.add(
                Repository(
                    owner=gh_repo.owner.login,
                    name=gh_repo.name,
                    full_name=gh_repo.full_name,
                    provenance=provenance,
                )
            )
        elif provenance == RepositoryProvenance.EXPLICIT:
            repo.provenance = RepositoryProvenance.EXPLICIT

        repo.github_repo_id = gh_repo.id
        repo.owner = gh_repo.owner.login
        repo.name = gh_repo.name
        repo.full_name = gh_repo.full_name
        repo.default_branch = gh_repo.default_branch
        repo.is_tracked = True
        if user_id is not None:
            repo.user_id = user_id

        await self.flush()
        return repo, created

    async def mark_synced(self, repo: Repository, synced_at: datetime) -> None:
        repo.last_synced_at = synced_at
        await self.flush()

    async def untrack(self, repository_id: int) -> Repository | None:
        """Stop tracking a repository by ID.

        Returns:
            Updated repository or None if not found
        """
        repo = await self.get_by_id(repository_id)
        if repo is None:
            return None

        repo.is_tracked = False
        await self.flush()
        return repo

    async def untrack_by_full_name(self, full_name: str) -> Repository | None:
        """Stop tracking a repository by owner/name, ignoring case."""
        repo = await self.get_by_full_name(full_name)
        if repo is None:
            return None

        repo.is_tracked = False
        await self.flush()
        return repo
