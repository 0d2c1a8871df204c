"""Circuit-breaker protected AI invocation.

Flow: check the feature's circuit → invoke with retry → record the outcome.
AI features call GuardedInvoker rather than ResilientInvoker directly.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from pr_attention.logging import bind_feature

from .circuit_breaker import BreakerSnapshot, CircuitBreakerRegistry
from .invoker import InvokeResult, ResilientInvoker

T = TypeVar("T")


class GuardedInvoker:
    """ResilientInvoker behind a per-feature circuit breaker.

    Usage:
        guarded = GuardedInvoker(ResilientInvoker(), CircuitBreakerRegistry())
        summary = await guarded.run_json(
            "ai_summary", prompt, output_schema=SCHEMA, context=diff_text
        )
    """

    def __init__(
        self,
        invoker: ResilientInvoker | None = None,
        breakers: CircuitBreakerRegistry | None = None,
    ) -> None:
        self._invoker = invoker or ResilientInvoker()
        self._breakers = breakers or CircuitBreakerRegistry()

    @property
    def breakers(self) -> CircuitBreakerRegistry:
        return self._breakers

    async def run(self, feature: str, prompt: str, **kwargs: Any) -> InvokeResult:
        """Invoke for a feature; a non-zero final exit counts as a failure.

        Raises:
            CircuitOpenError: If the feature's circuit is open
            InvokerStartError: If the executable cannot be started
        """
        self._breakers.check(feature)
        try:
            result = await self._invoker.run(prompt, **kwargs)
        except asyncio.CancelledError:
            self._breakers.release_probe(feature)
            raise
        except Exception:
            self._breakers.record_failure(feature)
            raise

        if result.ok:
            self._breakers.record_success(feature)
        else:
            bind_feature(feature).warning("AI call failed: {}", result.error)
            self._breakers.record_failure(feature)
        return result

    async def run_json(
        self,
        feature: str,
        prompt: str,
        *,
        output_schema: str | dict[str, Any],
        validate: Callable[[Any], T] | None = None,
        **kwargs: Any,
    ) -> T | Any:
        """Invoke for a feature and return validated JSON.

        Unparseable or invalid output counts as a failure too.

        Raises:
            CircuitOpenError: If the feature's circuit is open
            InvokerError: If invocation or parsing fails
        """
        self._breakers.check(feature)
        try:
            value = await self._invoker.run_json(
                prompt, output_schema=output_schema, validate=validate, **kwargs
            )
        except asyncio.CancelledError:
            self._breakers.release_probe(feature)
            raise
        except Exception as e:
            bind_feature(feature).warning("AI call failed: {}", e)
            self._breakers.record_failure(feature)
            raise

        self._breakers.record_success(feature)
        return value

    def snapshot(self) -> dict[str, BreakerSnapshot]:
        return self._breakers.snapshot()

    def open_circuits(self) -> list[str]:
        return self._breakers.open_circuits()
