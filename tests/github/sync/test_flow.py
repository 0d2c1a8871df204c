"""Tests for branch flow rules."""

import pytest

from pr_attention.config import FlowRuleConfig, Settings
from pr_attention.github.sync.flow import (
    DEFAULT_FLOW_RULES,
    FlowPhase,
    FlowRule,
    get_flow_phase,
    matches_branch_pattern,
    parse_flow_rules,
    validate_pr_flow,
)


class TestMatchesBranchPattern:
    """Tests for branch pattern matching."""

    @pytest.mark.parametrize(
        ("branch", "pattern", "expected"),
        [
            ("anything", "*", True),
            ("dev", "dev", True),
            ("dev2", "dev", False),
            ("feat/login", "feat/*", True),
            ("feat/a/b", "feat/*", True),
            ("feat/", "feat/*", False),
            ("feature/login", "feat/*", False),
            ("fix/a*b", "fix/a*b", True),
            ("fix/axb", "fix/a*b", False),
        ],
    )
    def test_patterns(self, branch, pattern, expected):
        assert matches_branch_pattern(branch, pattern) is expected


class TestValidatePrFlow:
    """Tests for validating a head/base pair."""

    def test_allowed_target(self):
        assert validate_pr_flow("feat/login", "dev") is None

    def test_wildcard_target(self):
        assert validate_pr_flow("fix/crash", "snap/2024-01") is None

    def test_violation_message(self):
        violation = validate_pr_flow("feat/login", "main")

        assert violation is not None
        assert violation.expected_targets == ("dev",)
        assert violation.message == 'Branch "feat/login" should target "dev", but targets "main"'

    def test_multiple_targets_in_message(self):
        rules = (FlowRule("hotfix/*", ("main", "snap/*")),)

        violation = validate_pr_flow("hotfix/x", "dev", rules)

        assert violation is not None
        assert '"main" or "snap/*"' in violation.message

    def test_unmatched_head_not_policed(self):
        assert validate_pr_flow("chore/deps", "main") is None

    def test_first_matching_rule_applies(self):
        rules = (FlowRule("feat/*", ("dev",)), FlowRule("*", ("main",)))

        assert validate_pr_flow("feat/x", "dev", rules) is None
        assert validate_pr_flow("other", "dev", rules) is not None


class TestGetFlowPhase:
    """Tests for classifying PRs into release phases."""

    @pytest.mark.parametrize(
        ("head", "base", "phase"),
        [
            ("feat/login", "dev", FlowPhase.DEVELOPMENT),
            ("fix/crash", "snap/2024-01", FlowPhase.QA_FIX),
            ("snap/2024-01", "main", FlowPhase.PROMOTION),
            ("feat/login", "main", FlowPhase.UNKNOWN),
            ("chore/deps", "dev", FlowPhase.UNKNOWN),
        ],
    )
    def test_phases(self, head, base, phase):
        assert get_flow_phase(head, base) == phase


class TestParseFlowRules:
    """Tests for building rules from loose data."""

    def test_not_a_list_uses_defaults(self):
        assert parse_flow_rules(None) == DEFAULT_FLOW_RULES
        assert parse_flow_rules({"source_pattern": "x"}) == DEFAULT_FLOW_RULES

    def test_accepts_snake_and_camel_case(self):
        rules = parse_flow_rules(
            [
                {"source_pattern": "feat/*", "allowed_targets": ["dev"]},
                {"sourcePattern": "rel/*", "allowedTargets": ["main"]},
            ]
        )

        assert rules == (FlowRule("feat/*", ("dev",)), FlowRule("rel/*", ("main",)))

    def test_malformed_entries_dropped(self):
        rules = parse_flow_rules(
            [
                "not a rule",
                {"source_pattern": "feat/*"},
                {"source_pattern": "fix/*", "allowed_targets": [1, None, "snap/*"]},
                {"source_pattern": "odd/*", "allowed_targets": [3]},
            ]
        )

        assert rules == (FlowRule("fix/*", ("snap/*",)),)

    def test_nothing_usable_uses_defaults(self):
        assert parse_flow_rules([{"bogus": True}]) == DEFAULT_FLOW_RULES

    def test_settings_rules(self):
        """Rules configured in settings parse to the same defaults."""
        assert parse_flow_rules(Settings(_env_file=None).flow.rules) == DEFAULT_FLOW_RULES

    def test_config_models_accepted(self):
        rules = parse_flow_rules([FlowRuleConfig(source_pattern="x/*", allowed_targets=["y"])])

        assert rules == (FlowRule("x/*", ("y",)),)
