"""Repository for SyncRun records."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.db.models import SyncRun, SyncStatus, SyncTrigger

from .base import BaseRepository


class SyncRunAlreadyFinalizedError(RuntimeError):
    """Raised when finalizing a run that already reached a terminal status."""


class SyncRunRepository(BaseRepository[SyncRun]):
    """Repository for SyncRun entities.

    A run is inserted as RUNNING and finalized exactly once.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SyncRun)

    async def start(
        self,
        *,
        viewer_login: str,
        trigger: SyncTrigger,
        tracked_repos: list[str],
        started_at: datetime,
        user_id: int | None = None,
    ) -> SyncRun:
        """Insert a RUNNING run and flush so it has an ID."""
        run = self.add(
            SyncRun(
                user_id=user_id,
                viewer_login=viewer_login,
                trigger=trigger,
                status=SyncStatus.RUNNING,
                tracked_repos=list(tracked_repos),
                pulled_count=0,
                upserted_count=0,
                error_count=0,
                errors=[],
                started_at=started_at,
            )
        )
        await self.flush()
        return run

    async def finalize(
        self,
        run: SyncRun,
        *,
        status: SyncStatus,
        pulled_count: int,
        upserted_count: int,
        errors: list[dict[str, Any]],
        finished_at: datetime,
        error_summary: str | None = None,
    ) -> SyncRun:
        """Move a run to its terminal status.

        Raises:
            ValueError: If status is RUNNING
            SyncRunAlreadyFinalizedError: If the run is already terminal
        """
        if not status.is_terminal:
            raise ValueError("A sync run cannot be finalized as RUNNING")
        if run.status.is_terminal:
            raise SyncRunAlreadyFinalizedError(
                f"Sync run {run.id} already finalized as {run.status.value}"
            )

        run.status = status
        run.pulled_count = pulled_count
        run.upserted_count = upserted_count
        run.error_count = len(errors)
        run.errors = list(errors)
        if error_summary is None and errors:
            error_summary = f"{len(errors)} error(s) during sync"
        run.error_summary = error_summary
        run.finished_at = finished_at

        await self.flush()
        return run

    async def get_latest(self, user_id: int | None = None) -> SyncRun | None:
        stmt = select(SyncRun).order_by(SyncRun.started_at.desc(), SyncRun.id.desc()).limit(1)
        if user_id is not None:
            stmt = stmt.where(SyncRun.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
