"""Attention engine: urgency scoring and reason derivation."""

from .scoring import (
    REASON_ASSIGNED,
    REASON_CHANGES_REQUESTED,
    REASON_CI_FAILING,
    REASON_CI_UNKNOWN,
    REASON_MERGE_CONFLICTS,
    REASON_REVIEW_REQUESTED,
    REASON_STALE,
    AttentionInput,
    AttentionState,
    ScoreBreakdown,
    build_attention_state,
    calculate_urgency_score,
    count_mentions,
    derive_attention_reason,
    needs_attention_for,
)

__all__ = [
    "REASON_ASSIGNED",
    "REASON_CHANGES_REQUESTED",
    "REASON_CI_FAILING",
    "REASON_CI_UNKNOWN",
    "REASON_MERGE_CONFLICTS",
    "REASON_REVIEW_REQUESTED",
    "REASON_STALE",
    "AttentionInput",
    "AttentionState",
    "ScoreBreakdown",
    "build_attention_state",
    "calculate_urgency_score",
    "count_mentions",
    "derive_attention_reason",
    "needs_attention_for",
]
