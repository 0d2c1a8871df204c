"""State resolvers - turn raw GitHub signals into canonical enums.

The mapping functions are pure and fail loudly on values GitHub has never
been documented to return. Degrading on *fetch* failure is the caller's job
(see RepositorySynchronizer), not these functions'.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pr_attention.db.models import CIState, ReviewState
from pr_attention.schemas.github_api import (
    GitHubCheckRun,
    GitHubCheckRuns,
    GitHubCombinedStatus,
    GitHubIssueComment,
    GitHubReview,
    UnrecognizedStateError,
)

# Precedence when merging signals, strongest first
_CI_PRECEDENCE = (CIState.FAILURE, CIState.PENDING, CIState.SUCCESS)

_COMBINED_STATUS_MAP = {
    "failure": CIState.FAILURE,
    "error": CIState.FAILURE,
    "pending": CIState.PENDING,
    "success": CIState.SUCCESS,
    "unknown": CIState.UNKNOWN,
}

_FAILED_CONCLUSIONS = frozenset({"failure", "timed_out", "cancelled"})
_OTHER_CONCLUSIONS = frozenset(
    {"success", "neutral", "skipped", "stale", "action_required", "startup_failure"}
)
_PENDING_STATUSES = frozenset({"queued", "in_progress", "waiting", "requested", "pending"})

_REVIEW_STATE_MAP = {
    "APPROVED": ReviewState.APPROVED,
    "CHANGES_REQUESTED": ReviewState.CHANGES_REQUESTED,
    "COMMENTED": ReviewState.COMMENTED,
    "DISMISSED": ReviewState.UNREVIEWED,
}


# -----------------------------------------------------------------------------
# CI state
# -----------------------------------------------------------------------------
def map_combined_status(state: str) -> CIState:
    """Map the legacy combined-status ``state`` field."""
    try:
        return _COMBINED_STATUS_MAP[state.lower()]
    except KeyError:
        raise UnrecognizedStateError("combined status state", state) from None


def map_check_run(run: GitHubCheckRun) -> CIState:
    """Map one check run: a failed conclusion wins over an in-flight status."""
    conclusion = run.conclusion.lower() if run.conclusion else None
    status = run.status.lower()

    if conclusion in _FAILED_CONCLUSIONS:
        return CIState.FAILURE
    if conclusion is not None and conclusion not in _OTHER_CONCLUSIONS:
        raise UnrecognizedStateError("check run conclusion", run.conclusion)
    if status in _PENDING_STATUSES:
        return CIState.PENDING
    if status != "completed":
        raise UnrecognizedStateError("check run status", run.status)
    return CIState.SUCCESS


def _strongest(states: list[CIState]) -> CIState:
    for candidate in _CI_PRECEDENCE:
        if candidate in states:
            return candidate
    return CIState.UNKNOWN


def resolve_ci_state(
    combined: GitHubCombinedStatus | None,
    checks: GitHubCheckRuns | None,
) -> CIState:
    """Merge the combined-status and checks signals for one commit.

    A signal that could not be fetched is passed as None and counts as
    having no entries. FAILURE beats PENDING beats SUCCESS; with no
    entries on either side the result is UNKNOWN.
    """
    signals: list[CIState] = []

    if combined is not None and combined.total_count > 0:
        signals.append(map_combined_status(combined.state))

    if checks is not None and checks.total_count > 0 and checks.check_runs:
        signals.append(_strongest([map_check_run(run) for run in checks.check_runs]))

    return _strongest(signals)


# -----------------------------------------------------------------------------
# Review state
# -----------------------------------------------------------------------------
def map_review_state(state: str) -> ReviewState | None:
    """Map a review's state; PENDING (unsubmitted) reviews map to None."""
    upper = state.upper()
    if upper == "PENDING":
        return None
    try:
        return _REVIEW_STATE_MAP[upper]
    except KeyError:
        raise UnrecognizedStateError("review state", state) from None


def latest_review(reviews: list[GitHubReview]) -> GitHubReview | None:
    """Most recently submitted non-pending review; earliest wins ties."""
    latest: GitHubReview | None = None
    for review in reviews:
        if review.state.upper() == "PENDING" or review.submitted_at is None:
            continue
        if latest is None or review.submitted_at > latest.submitted_at:  # type: ignore[operator]
            latest = review
    return latest


def short_circuit_review_state(
    *, draft: bool, requested_reviewers: list[str]
) -> ReviewState | None:
    """Review state that is known without fetching reviews, if any."""
    if draft:
        return ReviewState.DRAFT
    if requested_reviewers:
        return ReviewState.REVIEW_REQUESTED
    return None


def resolve_review_state(
    *,
    draft: bool,
    requested_reviewers: list[str],
    reviews: list[GitHubReview],
) -> ReviewState:
    """Derive the review state of a PR.

    Draft beats outstanding review requests, which beat submitted reviews.
    """
    early = short_circuit_review_state(draft=draft, requested_reviewers=requested_reviewers)
    if early is not None:
        return early

    latest = latest_review(reviews)
    if latest is None:
        return ReviewState.UNREVIEWED
    return map_review_state(latest.state) or ReviewState.UNREVIEWED


# -----------------------------------------------------------------------------
# Last activity by viewer
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ViewerActivity:
    """Who acted last on a PR's conversation."""

    last_actor_is_viewer: bool
    """True if the newest review or comment belongs to the viewer."""

    last_activity_at: datetime | None
    """Timestamp of that newest review or comment."""


def resolve_viewer_activity(
    viewer_login: str | None,
    reviews: list[GitHubReview],
    comments: list[GitHubIssueComment],
) -> ViewerActivity:
    """Decide whether the viewer made the most recent review or comment.

    The review counts only when it is strictly newer than the newest
    comment. Logins compare case-insensitively.
    """
    review = latest_review(reviews)
    comment = max(comments, key=lambda c: c.created_at, default=None)

    review_at = review.submitted_at if review else None
    comment_at = comment.created_at if comment else None

    if review_at is None and comment_at is None:
        return ViewerActivity(False, None)

    if review_at is not None and (comment_at is None or review_at > comment_at):
        actor = review.user.login if review and review.user else None
        last_at = review_at
    else:
        actor = comment.user.login if comment and comment.user else None
        last_at = comment_at

    is_viewer = bool(viewer_login and actor and actor.lower() == viewer_login.lower())
    return ViewerActivity(is_viewer, last_at)
