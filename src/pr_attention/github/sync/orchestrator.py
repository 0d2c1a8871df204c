"""Sync Orchestrator - one run across every tracked repository.

Resolves who is syncing, which repositories they track, drives a
RepositorySynchronizer per repository and records the run as a SyncRun
that always ends in a terminal status.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.config import Settings, get_settings
from pr_attention.credentials import CredentialResolver, Identity
from pr_attention.db.models import (
    Repository,
    RepositoryProvenance,
    SyncRun,
    SyncStatus,
    SyncTrigger,
)
from pr_attention.db.repositories import RepositoryRepository, SyncRunRepository, UserRepository
from pr_attention.github.client import GitHubClient
from pr_attention.logging import bind_run, get_logger

from .exceptions import AmbiguousIdentityError, IdentityResolutionError
from .repository_sync import RepositorySynchronizer, utc_now
from .results import RepositorySyncResult, SyncIssue, SyncRunResult, classify_run_status
from .tracking import TrackedRepositoryService

if TYPE_CHECKING:
    from pr_attention.db.models import User

logger = get_logger(__name__)

RUN_LEVEL = "*"
"""Repository name used for issues that belong to the run as a whole."""


class SyncOrchestrator:
    """Run a full sync for one identity and record it.

    The session is committed after the run row is created, after each
    repository and after finalization, so a late failure never discards
    work already done.

    Usage:
        async with get_session() as session:
            orchestrator = SyncOrchestrator(session, SettingsCredentialResolver())
            result = await orchestrator.run(trigger=SyncTrigger.MANUAL)
            print(result.status.value, result.upserted)
    """

    def __init__(
        self,
        session: AsyncSession,
        credential_resolver: CredentialResolver,
        *,
        settings: Settings | None = None,
        client_factory: Callable[..., GitHubClient] = GitHubClient,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            session: Session all writes go through
            credential_resolver: Source of stored identities
            settings: Settings (cached settings if None)
            client_factory: Builds a GitHub client from a token
            clock: Source of run timestamps
        """
        self._session = session
        self._credentials = credential_resolver
        self._settings = settings or get_settings()
        self._client_factory = client_factory
        self._clock = clock
        self._users = UserRepository(session)
        self._repositories = RepositoryRepository(session)
        self._runs = SyncRunRepository(session)

    async def resolve_identity(
        self,
        login: str | None = None,
        identity: Identity | None = None,
    ) -> Identity:
        """Pick the identity to sync as.

        An explicit identity wins. Otherwise exactly one stored identity
        (for the given login, if any) must exist.

        Raises:
            IdentityResolutionError: If no stored identity matches
            AmbiguousIdentityError: If several match and none was chosen
        """
        if identity is not None:
            return identity

        identities = await self._credentials.list_identities(login)
        if not identities:
            if login:
                raise IdentityResolutionError(
                    f"No stored GitHub OAuth token found for login '{login}'"
                )
            raise IdentityResolutionError(
                "No stored GitHub tokens found. Sign in first, or provide --login"
            )
        if len(identities) > 1:
            raise AmbiguousIdentityError([i.login or "<unknown>" for i in identities])
        return identities[0]

    async def run(
        self,
        *,
        trigger: SyncTrigger = SyncTrigger.POLL,
        login: str | None = None,
        identity: Identity | None = None,
    ) -> SyncRunResult:
        """Sync every repository the identity tracks.

        Identity and user lookup failures raise before any SyncRun exists.
        Once the run row is written it is always finalized; an unexpected
        error finalizes it as FAILED and is then re-raised.
        """
        resolved = await self.resolve_identity(login=login, identity=identity)

        async with self._client_factory(
            resolved.token,
            timeout=self._settings.github_timeout_seconds,
            per_page=self._settings.sync.per_page,
        ) as client:
            gh_user = await client.get_authenticated_user()
            if login and gh_user.login.lower() != login.lower():
                raise IdentityResolutionError(
                    f"Stored token belongs to '{gh_user.login}', not '{login}'"
                )
            user = await self._users.upsert_from_github(gh_user)
            viewer_login = user.login

            issues: list[SyncIssue] = []
            repositories = await self._resolve_repositories(client, user, issues)

            started_at = self._clock()
            run = await self._runs.start(
                viewer_login=viewer_login,
                trigger=trigger,
                tracked_repos=[r.full_name for r in repositories],
                started_at=started_at,
                user_id=user.id,
            )
            await self._session.commit()
            run_id = run.id

            run_logger = bind_run(run_id, trigger.value)
            run_logger.info(
                "Sync run started for {} ({} repositories)", viewer_login, len(repositories)
            )

            synchronizer = RepositorySynchronizer(
                client,
                self._session,
                viewer_login=viewer_login,
                weights=self._settings.scoring,
                clock=self._clock,
            )
            repo_results: list[RepositorySyncResult] = []

            try:
                for repo_id in [r.id for r in repositories]:
                    repo_result = await self._sync_one_repository(synchronizer, repo_id)
                    repo_results.append(repo_result)
                    issues.extend(repo_result.issues)

                status = classify_run_status(sum(r.upserted for r in repo_results), issues)
                finished_at = await self._finalize(run, status, repo_results, issues)
            except Exception as e:
                message = str(e) or type(e).__name__
                run_logger.exception("Sync run failed: {}", message)
                await self._session.rollback()
                issues.append(SyncIssue(repository=RUN_LEVEL, message=message))
                await self._finalize(
                    run, SyncStatus.FAILED, repo_results, issues, error_summary=message
                )
                raise

        result = SyncRunResult(
            run_id=run_id,
            trigger=trigger,
            status=status,
            viewer_login=viewer_login,
            started_at=started_at,
            finished_at=finished_at,
            repo_results=repo_results,
            issues=issues,
        )
        run_logger.info(
            "Sync run finished: status={}, pulled={}, upserted={}, errors={}",
            status.value,
            result.pulled,
            result.upserted,
            len(issues),
        )
        return result

    async def _resolve_repositories(
        self,
        client: GitHubClient,
        user: User,
        issues: list[SyncIssue],
    ) -> list[Repository]:
        """Tracked repositories of the user, seeding the fallback list if none.

        Each seed that cannot be tracked adds an issue and is skipped.
        """
        tracked = await self._repositories.list_tracked(user.id)
        if tracked:
            return tracked

        fallback = self._settings.sync.fallback_repositories
        if fallback:
            logger.info("No tracked repositories for {}, seeding {}", user.login, len(fallback))

        service = TrackedRepositoryService(self._repositories, client)
        for full_name in fallback:
            try:
                await service.add(
                    full_name, user_id=user.id, provenance=RepositoryProvenance.SEEDED
                )
            except Exception as e:
                logger.warning("Could not seed {}: {}", full_name, e)
                issues.append(SyncIssue.from_exception(full_name, e))

        return await self._repositories.list_tracked(user.id)

    async def _sync_one_repository(
        self,
        synchronizer: RepositorySynchronizer,
        repo_id: int,
    ) -> RepositorySyncResult:
        """Sync one repository and commit, or roll back and record why not."""
        # A rollback expires every loaded row, so reload by id each time
        repository = await self._repositories.get_by_id(repo_id)
        if repository is None:
            return RepositorySyncResult(
                repository=str(repo_id),
                issues=[SyncIssue(repository=str(repo_id), message="Repository no longer exists")],
            )

        full_name = repository.full_name
        try:
            result = await synchronizer.sync_repository(repository)
            await self._session.commit()
        except Exception as e:
            logger.bind(repo=full_name).error("Repository sync failed: {}", e)
            await self._session.rollback()
            return RepositorySyncResult(
                repository=full_name,
                issues=[SyncIssue.from_exception(full_name, e)],
            )
        return result

    async def _finalize(
        self,
        run: SyncRun,
        status: SyncStatus,
        repo_results: list[RepositorySyncResult],
        issues: list[SyncIssue],
        *,
        error_summary: str | None = None,
    ) -> datetime:
        # Earlier rollbacks expire the row
        await self._session.refresh(run)
        finished_at = self._clock()
        await self._runs.finalize(
            run,
            status=status,
            pulled_count=sum(r.pulled for r in repo_results),
            upserted_count=sum(r.upserted for r in repo_results),
            errors=[issue.to_dict() for issue in issues],
            finished_at=finished_at,
            error_summary=error_summary,
        )
        await self._session.commit()
        return finished_at
