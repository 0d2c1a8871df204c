"""Branch flow rules - which base branches a head branch may target.

Patterns support ``*`` (anything) and a single trailing wildcard such as
``feat/*``, which matches ``feat/login`` and ``feat/a/b`` but not ``feat/``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from pr_attention.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FlowRule:
    """Source branch pattern and the base branches it may target."""

    source_pattern: str
    allowed_targets: tuple[str, ...]


@dataclass(frozen=True)
class FlowViolation:
    head_ref: str
    base_ref: str
    expected_targets: tuple[str, ...]
    message: str


class FlowPhase(str, Enum):
    """Where a PR sits in the release flow."""

    DEVELOPMENT = "Development"
    QA_FIX = "QA Fix"
    PROMOTION = "Promotion"
    UNKNOWN = "Unknown"


DEFAULT_FLOW_RULES: tuple[FlowRule, ...] = (
    FlowRule("feat/*", ("dev",)),
    FlowRule("fix/*", ("snap/*",)),
    FlowRule("snap/*", ("main",)),
)


class _FlowRuleInput(BaseModel):
    """Loose input shape; accepts snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source_pattern: str
    allowed_targets: list[Any]


def matches_branch_pattern(branch: str, pattern: str) -> bool:
    """Match a branch name against a flow pattern.

    Only ``*`` alone or a trailing ``*`` act as wildcards; a star anywhere
    else is compared literally.
    """
    if pattern == "*":
        return True
    if "*" not in pattern:
        return branch == pattern
    if pattern.endswith("*"):
        prefix = pattern[: pattern.index("*")]
        return branch.startswith(prefix) and len(branch) > len(prefix)
    return branch == pattern


def validate_pr_flow(
    head_ref: str,
    base_ref: str,
    rules: Iterable[FlowRule] = DEFAULT_FLOW_RULES,
) -> FlowViolation | None:
    """Check a head/base pair against the first rule matching the head branch.

    Branches that no rule matches are not policed.
    """
    for rule in rules:
        if not matches_branch_pattern(head_ref, rule.source_pattern):
            continue

        if any(matches_branch_pattern(base_ref, target) for target in rule.allowed_targets):
            return None

        expected = " or ".join(f'"{t}"' for t in rule.allowed_targets)
        return FlowViolation(
            head_ref=head_ref,
            base_ref=base_ref,
            expected_targets=rule.allowed_targets,
            message=f'Branch "{head_ref}" should target {expected}, but targets "{base_ref}"',
        )

    return None


def get_flow_phase(head_ref: str, base_ref: str) -> FlowPhase:
    if matches_branch_pattern(head_ref, "feat/*") and base_ref == "dev":
        return FlowPhase.DEVELOPMENT
    if matches_branch_pattern(head_ref, "fix/*") and matches_branch_pattern(base_ref, "snap/*"):
        return FlowPhase.QA_FIX
    if matches_branch_pattern(head_ref, "snap/*") and base_ref == "main":
        return FlowPhase.PROMOTION
    return FlowPhase.UNKNOWN


def parse_flow_rules(value: object) -> tuple[FlowRule, ...]:
    """Build rules from loosely-typed data.

    Malformed entries are dropped, as are non-string targets. An input
    yielding no usable rule falls back to DEFAULT_FLOW_RULES.
    """
    if not isinstance(value, (list, tuple)):
        return DEFAULT_FLOW_RULES

    rules: list[FlowRule] = []
    for item in value:
        if isinstance(item, BaseModel):
            item = item.model_dump()
        try:
            parsed = _FlowRuleInput.model_validate(item)
        except ValidationError:
            logger.debug("Dropping malformed flow rule: {!r}", item)
            continue

        targets = tuple(t for t in parsed.allowed_targets if isinstance(t, str))
        if not targets:
            continue
        rules.append(FlowRule(parsed.source_pattern, targets))

    return tuple(rules) if rules else DEFAULT_FLOW_RULES
