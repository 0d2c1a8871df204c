"""Test fixtures for PR Attention."""

from .github_responses import (
    GITHUB_CHECK_RUNS_RESPONSE,
    GITHUB_COMBINED_STATUS_RESPONSE,
    GITHUB_COMMENTS_RESPONSE,
    GITHUB_PR_RESPONSE,
    GITHUB_REPOSITORY_RESPONSE,
    GITHUB_REVIEWS_RESPONSE,
    GITHUB_VIEWER_RESPONSE,
)

__all__ = [
    "GITHUB_CHECK_RUNS_RESPONSE",
    "GITHUB_COMBINED_STATUS_RESPONSE",
    "GITHUB_COMMENTS_RESPONSE",
    "GITHUB_PR_RESPONSE",
    "GITHUB_REPOSITORY_RESPONSE",
    "GITHUB_REVIEWS_RESPONSE",
    "GITHUB_VIEWER_RESPONSE",
]
