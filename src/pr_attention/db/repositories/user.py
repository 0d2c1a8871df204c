"""Repository for User model operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.db.models import User
from pr_attention.schemas.github_api import GitHubAuthenticatedUser

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for GitHub identities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_github_id(self, github_id: int) -> User | None:
        return await self._get_by_field("github_id", github_id)

    async def upsert_from_github(self, gh_user: GitHubAuthenticatedUser) -> User:
        """Create or refresh a user from the authenticated-user payload.

        Keyed by the numeric GitHub id, since logins can be renamed.
        """
        user = await self.get_by_github_id(gh_user.id)
        if user is None:
            user = self.add(User(github_id=gh_user.id, login=gh_user.login))

        user.login = gh_user.login
        user.name = gh_user.name
        user.avatar_url = gh_user.avatar_url
        await self.flush()
        return user
