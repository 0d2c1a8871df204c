"""Tests for the per-feature circuit breaker registry."""

import pytest

from pr_attention.ai import CircuitBreakerRegistry, CircuitOpenError, CircuitState
from pr_attention.config import CircuitBreakerConfig


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breakers(clock) -> CircuitBreakerRegistry:
    config = CircuitBreakerConfig(failure_threshold=3, cooldown_seconds=60)
    return CircuitBreakerRegistry(config, clock=clock)


def _fail(breakers: CircuitBreakerRegistry, feature: str, times: int) -> None:
    for _ in range(times):
        breakers.record_failure(feature)


class TestCircuitBreaker:
    """Tests for state transitions."""

    def test_unknown_feature_is_closed(self, breakers):
        assert breakers.state_of("ai_summary") == CircuitState.CLOSED
        breakers.check("ai_summary")

    def test_opens_at_threshold(self, breakers):
        _fail(breakers, "ai_summary", 2)
        assert breakers.state_of("ai_summary") == CircuitState.CLOSED

        breakers.record_failure("ai_summary")

        assert breakers.state_of("ai_summary") == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            breakers.check("ai_summary")

    def test_success_resets_consecutive_failures(self, breakers):
        _fail(breakers, "ai_summary", 2)
        breakers.record_success("ai_summary")
        _fail(breakers, "ai_summary", 2)

        assert breakers.state_of("ai_summary") == CircuitState.CLOSED

    def test_open_error_reports_remaining_cooldown(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(20.5)

        with pytest.raises(CircuitOpenError) as exc_info:
            breakers.check("ai_summary")

        assert exc_info.value.feature == "ai_summary"
        assert exc_info.value.retry_after_seconds == pytest.approx(39.5)
        assert str(exc_info.value) == (
            "AI service temporarily unavailable for ai_summary (circuit open). Retry in ~40s."
        )

    def test_half_open_after_cooldown(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(60)

        breakers.check("ai_summary")

        assert breakers.state_of("ai_summary") == CircuitState.HALF_OPEN

    def test_half_open_lets_one_call_through(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(61)
        breakers.check("ai_summary")

        for _ in range(3):
            with pytest.raises(CircuitOpenError) as exc_info:
                breakers.check("ai_summary")
            assert exc_info.value.retry_after_seconds == 0.0

        assert breakers.state_of("ai_summary") == CircuitState.HALF_OPEN

    def test_release_lets_next_call_through(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(61)
        breakers.check("ai_summary")

        breakers.release_probe("ai_summary")

        breakers.check("ai_summary")
        with pytest.raises(CircuitOpenError):
            breakers.check("ai_summary")

    def test_half_open_success_closes(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(61)
        breakers.check("ai_summary")

        breakers.record_success("ai_summary")

        assert breakers.state_of("ai_summary") == CircuitState.CLOSED
        breakers.check("ai_summary")
        breakers.check("ai_summary")

    def test_half_open_failure_reopens_with_fresh_cooldown(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(61)
        breakers.check("ai_summary")

        breakers.record_failure("ai_summary")

        assert breakers.state_of("ai_summary") == CircuitState.OPEN
        with pytest.raises(CircuitOpenError) as exc_info:
            breakers.check("ai_summary")
        assert exc_info.value.retry_after_seconds == pytest.approx(60)

    def test_features_are_independent(self, breakers):
        _fail(breakers, "ai_summary", 3)

        breakers.check("ai_review")

        assert breakers.open_circuits() == ["ai_summary"]
        assert breakers.state_of("ai_review") == CircuitState.CLOSED


class TestSnapshotAndReset:
    """Tests for health reporting and manual reset."""

    def test_snapshot(self, breakers, clock):
        breakers.record_success("ai_review")
        _fail(breakers, "ai_summary", 3)
        clock.advance(10)

        snapshot = breakers.snapshot()

        assert list(snapshot) == ["ai_review", "ai_summary"]
        summary = snapshot["ai_summary"]
        assert summary.state == CircuitState.OPEN
        assert summary.consecutive_failures == 3
        assert summary.total_failures == 3
        assert summary.to_dict()["retry_after_seconds"] == 50.0
        assert snapshot["ai_review"].to_dict() == {
            "feature": "ai_review",
            "state": "CLOSED",
            "consecutive_failures": 0,
            "total_failures": 0,
            "total_successes": 1,
            "retry_after_seconds": 0.0,
        }

    def test_snapshot_does_not_half_open(self, breakers, clock):
        _fail(breakers, "ai_summary", 3)
        clock.advance(120)

        assert breakers.snapshot()["ai_summary"].state == CircuitState.OPEN

    def test_reset_one(self, breakers):
        _fail(breakers, "ai_summary", 3)
        _fail(breakers, "ai_review", 3)

        breakers.reset("ai_summary")

        assert breakers.open_circuits() == ["ai_review"]

    def test_reset_all(self, breakers):
        _fail(breakers, "ai_summary", 3)

        breakers.reset()

        assert breakers.snapshot() == {}

    def test_defaults_from_settings(self):
        breakers = CircuitBreakerRegistry()

        _fail(breakers, "ai_summary", 4)
        assert breakers.state_of("ai_summary") == CircuitState.CLOSED
        breakers.record_failure("ai_summary")
        assert breakers.state_of("ai_summary") == CircuitState.OPEN
