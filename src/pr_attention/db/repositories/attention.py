"""Repository for derived per-PR attention state."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pr_attention.db.models import PRState, PullRequest, PullRequestAttention, Repository

from .base import BaseRepository

if TYPE_CHECKING:
    from pr_attention.attention.scoring import AttentionState


class AttentionRepository(BaseRepository[PullRequestAttention]):
    """Repository for PullRequestAttention entities (1:1 with PullRequest)."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PullRequestAttention)

    async def get_for_pull_request(self, pull_request_id: int) -> PullRequestAttention | None:
        return await self._get_by_field("pull_request_id", pull_request_id)

    async def upsert(
        self,
        pull_request_id: int,
        state: AttentionState,
        synced_at: datetime,
    ) -> PullRequestAttention:
        """Replace the attention state of a PR with a freshly computed one.

        Args:
            pull_request_id: Owning PR
            state: Output of build_attention_state
            synced_at: When this computation happened

        Returns:
            The stored attention row
        """
        row = await self.get_for_pull_request(pull_request_id)
        if row is None:
            row = self.add(PullRequestAttention(pull_request_id=pull_request_id))

        row.score_breakdown = state.breakdown.to_dict()
        row.urgency_score = state.breakdown.final_score
        row.attention_reason = state.reason
        row.needs_attention = state.needs_attention
        row.last_synced_at = synced_at

        await self.flush()
        return row

    async def list_ranked(
        self,
        *,
        user_id: int | None = None,
        only_needing_attention: bool = True,
        limit: int = 20,
    ) -> list[PullRequestAttention]:
        """Open PRs ordered by urgency, highest first.

        Args:
            user_id: Restrict to repositories tracked by this user
            only_needing_attention: Skip PRs whose needs_attention flag is off
            limit: Maximum rows to return

        Returns:
            Attention rows with pull_request and its repository loaded
        """
        stmt = (
            select(PullRequestAttention)
            .join(PullRequestAttention.pull_request)
            .join(PullRequest.repository)
            .where(PullRequest.state == PRState.OPEN, Repository.is_tracked.is_(True))
            .options(
                selectinload(PullRequestAttention.pull_request).selectinload(
                    PullRequest.repository
                )
            )
            .order_by(PullRequestAttention.urgency_score.desc(), PullRequest.number)
            .limit(limit)
        )
        if user_id is not None:
            stmt = stmt.where(Repository.user_id == user_id)
        if only_needing_attention:
            stmt = stmt.where(PullRequestAttention.needs_attention.is_(True))

        result = await self._session.execute(stmt)
        return list(result.scalars().all())
