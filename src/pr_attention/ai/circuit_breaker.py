"""Per-feature circuit breakers for AI calls.

States:
    CLOSED: calls pass through.
    OPEN: after N consecutive failures, calls are rejected until a
        cooldown elapses.
    HALF_OPEN: after the cooldown one probe is let through. Success closes
        the circuit, failure re-opens it.

Each feature key has its own state, so one broken feature never blocks
another. State lives in the registry instance and is lost on restart.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pr_attention.config import CircuitBreakerConfig, get_settings
from pr_attention.logging import bind_feature

from .exceptions import CircuitOpenError


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class BreakerState:
    """Mutable state of one feature's breaker."""

    state: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    last_failure_at: float | None = None
    """Clock reading of the most recent failure."""
    total_failures: int = 0
    total_successes: int = 0
    probe_in_flight: bool = False
    """A HALF_OPEN probe has been let through and has not reported back."""


@dataclass(frozen=True)
class BreakerSnapshot:
    """Read-only view of a breaker for health reporting."""

    feature: str
    state: CircuitState
    consecutive_failures: int
    total_failures: int
    total_successes: int
    retry_after_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "feature": self.feature,
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "total_failures": self.total_failures,
            "total_successes": self.total_successes,
            "retry_after_seconds": round(self.retry_after_seconds, 1),
        }


class CircuitBreakerRegistry:
    """Breakers keyed by feature name.

    Pass one registry to every call site that guards AI calls.

    Usage:
        breakers = CircuitBreakerRegistry()
        breakers.check("ai_summary")  # raises CircuitOpenError when open
        try:
            ...
        except Exception:
            breakers.record_failure("ai_summary")
            raise
        breakers.record_success("ai_summary")
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            config: Threshold and cooldown (settings default if None)
            clock: Monotonic seconds source
        """
        self._config = config or get_settings().circuit_breaker
        self._clock = clock
        self._breakers: dict[str, BreakerState] = {}

    def _get(self, feature: str) -> BreakerState:
        breaker = self._breakers.get(feature)
        if breaker is None:
            breaker = self._breakers[feature] = BreakerState()
        return breaker

    def _remaining_cooldown(self, breaker: BreakerState) -> float:
        if breaker.state != CircuitState.OPEN or breaker.last_failure_at is None:
            return 0.0
        elapsed = self._clock() - breaker.last_failure_at
        return max(0.0, self._config.cooldown_seconds - elapsed)

    def check(self, feature: str) -> None:
        """Allow a call through or reject it.

        An OPEN circuit whose cooldown has elapsed moves to HALF_OPEN and
        lets this call through as the probe. Until that probe reports back,
        every other call is rejected.

        Raises:
            CircuitOpenError: If the circuit is open and still cooling down,
                or half-open with its probe still running
        """
        breaker = self._get(feature)
        if breaker.state == CircuitState.CLOSED:
            return
        if breaker.state == CircuitState.HALF_OPEN:
            if breaker.probe_in_flight:
                raise CircuitOpenError(feature, 0.0)
            breaker.probe_in_flight = True
            return

        remaining = self._remaining_cooldown(breaker)
        if remaining > 0:
            raise CircuitOpenError(feature, remaining)

        breaker.state = CircuitState.HALF_OPEN
        breaker.probe_in_flight = True
        bind_feature(feature).info("Circuit half-open, allowing probe")

    def record_success(self, feature: str) -> None:
        breaker = self._get(feature)
        if breaker.state != CircuitState.CLOSED:
            bind_feature(feature).info("Circuit closed after successful call")
        breaker.state = CircuitState.CLOSED
        breaker.probe_in_flight = False
        breaker.consecutive_failures = 0
        breaker.total_successes += 1

    def record_failure(self, feature: str) -> None:
        breaker = self._get(feature)
        breaker.probe_in_flight = False
        breaker.consecutive_failures += 1
        breaker.total_failures += 1
        breaker.last_failure_at = self._clock()

        if breaker.state == CircuitState.HALF_OPEN:
            breaker.state = CircuitState.OPEN
            bind_feature(feature).warning("Probe failed, circuit re-opened")
        elif (
            breaker.state == CircuitState.CLOSED
            and breaker.consecutive_failures >= self._config.failure_threshold
        ):
            breaker.state = CircuitState.OPEN
            bind_feature(feature).warning(
                "Circuit opened after {} consecutive failures", breaker.consecutive_failures
            )

    def release_probe(self, feature: str) -> None:
        """Let another probe through after one ended without an outcome."""
        breaker = self._breakers.get(feature)
        if breaker is not None:
            breaker.probe_in_flight = False

    def state_of(self, feature: str) -> CircuitState:
        """Current state, without the OPEN → HALF_OPEN side effect of check()."""
        breaker = self._breakers.get(feature)
        return breaker.state if breaker else CircuitState.CLOSED

    def snapshot(self) -> dict[str, BreakerSnapshot]:
        """All known breakers, keyed by feature."""
        return {
            feature: BreakerSnapshot(
                feature=feature,
                state=breaker.state,
                consecutive_failures=breaker.consecutive_failures,
                total_failures=breaker.total_failures,
                total_successes=breaker.total_successes,
                retry_after_seconds=self._remaining_cooldown(breaker),
            )
            for feature, breaker in sorted(self._breakers.items())
        }

    def open_circuits(self) -> list[str]:
        return [f for f, b in sorted(self._breakers.items()) if b.state == CircuitState.OPEN]

    def reset(self, feature: str | None = None) -> None:
        """Forget one feature's breaker, or all of them."""
        if feature is None:
            self._breakers.clear()
        else:
            self._breakers.pop(feature, None)
