"""Tests for AttentionRepository."""

from datetime import datetime

from pr_attention.attention import build_attention_state
from pr_attention.config import ScoringWeights
from pr_attention.db.models import CIState, PRState, ReviewState
from pr_attention.db.repositories import AttentionRepository
from tests.conftest import JAN_16, JAN_17
from tests.factories import make_pull_request, make_repository, make_user

SYNCED_AT = datetime(2024, 1, 17, 14, 0)


def _state(ci_state: CIState = CIState.SUCCESS, requested: list[str] | None = None):
    return build_attention_state(
        viewer_login="octocat",
        ci_state=ci_state,
        review_state=ReviewState.UNREVIEWED,
        is_draft=False,
        updated_at=JAN_16,
        now=JAN_17,
        assignees=[],
        requested_reviewers=requested or [],
        body=None,
        weights=ScoringWeights(),
    )


async def _add_attention(session, pr, state):
    return await AttentionRepository(session).upsert(pr.id, state, SYNCED_AT)


class TestAttentionRepositoryUpsert:
    """Upsert tests for AttentionRepository."""

    async def test_upsert_creates(self, db_session):
        repo = make_repository(db_session)
        pr = make_pull_request(db_session, repo)
        await db_session.flush()
        state = _state(CIState.FAILURE)

        row = await _add_attention(db_session, pr, state)

        assert row.pull_request_id == pr.id
        assert row.urgency_score == state.breakdown.final_score
        assert row.score_breakdown["ci_penalty"] == 15
        assert row.score_breakdown["final_score"] == row.urgency_score
        assert row.attention_reason == "CI failing"
        assert row.needs_attention is True
        assert row.last_synced_at == SYNCED_AT

    async def test_upsert_replaces_existing(self, db_session):
        """One attention row per PR, overwritten on every sync."""
        repo = make_repository(db_session)
        pr = make_pull_request(db_session, repo)
        await db_session.flush()
        repository = AttentionRepository(db_session)

        first = await _add_attention(db_session, pr, _state(CIState.FAILURE))
        second = await _add_attention(db_session, pr, _state(CIState.SUCCESS))

        assert first.id == second.id
        assert await repository.count() == 1
        assert second.attention_reason is None
        assert second.needs_attention is False


class TestAttentionRepositoryRanking:
    """Tests for the ranked inbox query."""

    async def test_ranked_by_score_descending(self, db_session):
        repo = make_repository(db_session)
        low = make_pull_request(db_session, repo, number=1)
        high = make_pull_request(db_session, repo, number=2)
        await db_session.flush()
        await _add_attention(db_session, low, _state(CIState.FAILURE))
        await _add_attention(db_session, high, _state(CIState.FAILURE, requested=["octocat"]))

        rows = await AttentionRepository(db_session).list_ranked()

        assert [r.pull_request.number for r in rows] == [2, 1]
        assert rows[0].pull_request.repository.full_name == "octo/widgets"

    async def test_only_needing_attention_by_default(self, db_session):
        repo = make_repository(db_session)
        quiet = make_pull_request(db_session, repo, number=1)
        failing = make_pull_request(db_session, repo, number=2)
        await db_session.flush()
        await _add_attention(db_session, quiet, _state(CIState.SUCCESS))
        await _add_attention(db_session, failing, _state(CIState.FAILURE))
        repository = AttentionRepository(db_session)

        needing = await repository.list_ranked()
        everything = await repository.list_ranked(only_needing_attention=False)

        assert [r.pull_request.number for r in needing] == [2]
        assert {r.pull_request.number for r in everything} == {1, 2}

    async def test_excludes_closed_and_untracked(self, db_session):
        tracked = make_repository(db_session)
        removed = make_repository(db_session, name="removed", is_tracked=False)
        merged = make_pull_request(db_session, tracked, number=1, state=PRState.MERGED)
        orphan = make_pull_request(db_session, removed, number=2)
        await db_session.flush()
        await _add_attention(db_session, merged, _state(CIState.FAILURE))
        await _add_attention(db_session, orphan, _state(CIState.FAILURE))

        assert await AttentionRepository(db_session).list_ranked() == []

    async def test_filter_by_user_and_limit(self, db_session):
        alice = make_user(db_session, login="alice", github_id=1)
        bob = make_user(db_session, login="bob", github_id=2)
        alices = make_repository(db_session, name="alices", user=alice)
        bobs = make_repository(db_session, name="bobs", user=bob)
        prs = [make_pull_request(db_session, alices, number=n) for n in (1, 2, 3)]
        other = make_pull_request(db_session, bobs, number=9)
        await db_session.flush()
        for pr in [*prs, other]:
            await _add_attention(db_session, pr, _state(CIState.FAILURE))

        rows = await AttentionRepository(db_session).list_ranked(user_id=alice.id, limit=2)

        assert len(rows) == 2
        assert all(r.pull_request.repository.name == "alices" for r in rows)
