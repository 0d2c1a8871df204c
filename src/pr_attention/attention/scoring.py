"""Attention engine - urgency score, reason and needs-attention flag.

Everything here is pure: the current time is an input, so the same PR
scored with the same weights always produces the same breakdown.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from datetime import datetime

from pr_attention.config import ScoringWeights
from pr_attention.db.models import CIState, ReviewState

REASON_REVIEW_REQUESTED = "Review requested"
REASON_ASSIGNED = "Assigned to you"
REASON_MERGE_CONFLICTS = "Has merge conflicts"
REASON_CHANGES_REQUESTED = "Changes requested"
REASON_CI_FAILING = "CI failing"
REASON_CI_UNKNOWN = "CI status unknown"
REASON_STALE = "Stale pull request"

# Reasons that are informational and never demand attention on their own
_INFORMATIONAL_REASONS = frozenset({REASON_CI_UNKNOWN})

_HOURS_PER_STALENESS_POINT = 4


@dataclass(frozen=True)
class AttentionInput:
    """Signals about one PR from the viewer's point of view."""

    review_requested: bool
    assigned_to_me: bool
    ci_state: CIState
    review_state: ReviewState
    is_draft: bool
    updated_at: datetime
    now: datetime
    is_mergeable: bool | None = None
    additions: int = 0
    deletions: int = 0
    comment_count: int = 0
    commit_count: int = 0
    mention_count: int = 0
    last_activity_by_viewer: bool = False


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor contributions and the clamped total."""

    review_request_boost: int
    assignee_boost: int
    ci_penalty: int
    staleness_boost: int
    mention_boost: int
    size_boost: int
    activity_boost: int
    commit_boost: int
    draft_penalty: int
    my_last_activity_penalty: int
    final_score: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class AttentionState:
    """Everything persisted for a PR's attention row."""

    breakdown: ScoreBreakdown
    reason: str | None
    needs_attention: bool
    review_requested: bool
    assigned_to_me: bool
    mention_count: int


def _ci_weight(ci_state: CIState, weights: ScoringWeights) -> int:
    if ci_state == CIState.FAILURE:
        return weights.ci_failure_penalty
    if ci_state == CIState.PENDING:
        return weights.ci_pending_penalty
    if ci_state == CIState.UNKNOWN:
        return weights.ci_unknown_penalty
    return 0


def calculate_urgency_score(data: AttentionInput, weights: ScoringWeights) -> ScoreBreakdown:
    """Score a PR.

    Boosts and CI weights are added, draft and my-last-activity penalties
    subtracted, and the total is clamped at zero.
    """
    hours_stale = max(0.0, (data.now - data.updated_at).total_seconds() / 3600)
    total_lines = max(0, data.additions) + max(0, data.deletions)

    review_request_boost = weights.review_request_boost if data.review_requested else 0
    assignee_boost = weights.assignee_boost if data.assigned_to_me else 0
    ci_penalty = _ci_weight(data.ci_state, weights)
    staleness_boost = min(
        weights.staleness_max_boost, math.floor(hours_stale / _HOURS_PER_STALENESS_POINT)
    )
    mention_boost = min(
        weights.mention_max_boost, max(0, data.mention_count) * weights.mention_boost_per_mention
    )
    size_boost = min(weights.size_max_boost, math.floor(math.log2(total_lines + 1) * 2))
    activity_boost = min(
        weights.activity_max_boost,
        max(0, data.comment_count) * weights.activity_boost_per_comment,
    )
    commit_boost = min(weights.commit_max_boost, max(0, data.commit_count))
    draft_penalty = weights.draft_penalty if data.is_draft else 0
    my_last_activity_penalty = (
        weights.my_last_activity_penalty if data.last_activity_by_viewer else 0
    )

    total = (
        review_request_boost
        + assignee_boost
        + ci_penalty
        + staleness_boost
        + mention_boost
        + size_boost
        + activity_boost
        + commit_boost
        - draft_penalty
        - my_last_activity_penalty
    )

    return ScoreBreakdown(
        review_request_boost=review_request_boost,
        assignee_boost=assignee_boost,
        ci_penalty=ci_penalty,
        staleness_boost=staleness_boost,
        mention_boost=mention_boost,
        size_boost=size_boost,
        activity_boost=activity_boost,
        commit_boost=commit_boost,
        draft_penalty=draft_penalty,
        my_last_activity_penalty=my_last_activity_penalty,
        final_score=max(0, total),
    )


def derive_attention_reason(data: AttentionInput) -> str | None:
    """First matching reason, in priority order, or None."""
    if data.review_requested:
        return REASON_REVIEW_REQUESTED
    if data.assigned_to_me:
        return REASON_ASSIGNED
    if data.is_mergeable is False:
        return REASON_MERGE_CONFLICTS
    if data.review_state == ReviewState.CHANGES_REQUESTED:
        return REASON_CHANGES_REQUESTED
    if data.ci_state == CIState.FAILURE:
        return REASON_CI_FAILING
    if data.ci_state == CIState.UNKNOWN:
        return REASON_CI_UNKNOWN
    return None


def needs_attention_for(reason: str | None) -> bool:
    """A PR needs attention when it has a reason that is more than informational."""
    return reason is not None and reason not in _INFORMATIONAL_REASONS


def count_mentions(text: str | None, login: str | None) -> int:
    """Count ``@login`` mentions (whole word, any case)."""
    if not text or not login:
        return 0
    return len(re.findall(rf"@{re.escape(login)}\b", text, flags=re.IGNORECASE))


def _contains_login(values: list[str], login: str) -> bool:
    needle = login.lower()
    return any(value.lower() == needle for value in values)


def build_attention_state(
    *,
    viewer_login: str | None,
    ci_state: CIState,
    review_state: ReviewState,
    is_draft: bool,
    updated_at: datetime,
    now: datetime,
    assignees: list[str],
    requested_reviewers: list[str],
    body: str | None,
    weights: ScoringWeights,
    is_mergeable: bool | None = None,
    additions: int = 0,
    deletions: int = 0,
    comment_count: int = 0,
    commit_count: int = 0,
    last_activity_by_viewer: bool = False,
) -> AttentionState:
    """Derive viewer-relative signals for a PR, then score it.

    Without a viewer login, "review requested" falls back to the PR-level
    review state. A PR with no other reason but a score at or above the
    stale threshold is reported as stale.
    """
    viewer = viewer_login.strip() if viewer_login and viewer_login.strip() else None

    assigned_to_me = _contains_login(assignees, viewer) if viewer else False
    review_requested = (
        _contains_login(requested_reviewers, viewer)
        if viewer
        else review_state == ReviewState.REVIEW_REQUESTED
    )
    mentions = count_mentions(body, viewer)

    data = AttentionInput(
        review_requested=review_requested,
        assigned_to_me=assigned_to_me,
        ci_state=ci_state,
        review_state=review_state,
        is_draft=is_draft,
        updated_at=updated_at,
        now=now,
        is_mergeable=is_mergeable,
        additions=additions,
        deletions=deletions,
        comment_count=comment_count,
        commit_count=commit_count,
        mention_count=mentions,
        last_activity_by_viewer=last_activity_by_viewer,
    )

    breakdown = calculate_urgency_score(data, weights)
    reason = derive_attention_reason(data)
    if reason is None and breakdown.final_score >= weights.stale_attention_threshold:
        reason = REASON_STALE

    return AttentionState(
        breakdown=breakdown,
        reason=reason,
        needs_attention=needs_attention_for(reason),
        review_requested=review_requested,
        assigned_to_me=assigned_to_me,
        mention_count=mentions,
    )
