"""AI resilience layer.

This module provides:
- CircuitBreakerRegistry: per-feature breakers for AI calls
- ResilientInvoker: timeout, retry and bounded capture around the AI CLI
- GuardedInvoker: the invoker behind a breaker, for AI features
"""

from .circuit_breaker import BreakerSnapshot, BreakerState, CircuitBreakerRegistry, CircuitState
from .exceptions import (
    AIError,
    CircuitOpenError,
    InvokerError,
    InvokerExhaustedError,
    InvokerOutputError,
    InvokerStartError,
)
from .guarded import GuardedInvoker
from .invoker import TIMEOUT_EXIT_CODE, InvokeResult, ResilientInvoker, extract_json

__all__ = [
    # Circuit breaker
    "BreakerSnapshot",
    "BreakerState",
    "CircuitBreakerRegistry",
    "CircuitState",
    # Invocation
    "GuardedInvoker",
    "InvokeResult",
    "ResilientInvoker",
    "TIMEOUT_EXIT_CODE",
    "extract_json",
    # Exceptions
    "AIError",
    "CircuitOpenError",
    "InvokerError",
    "InvokerExhaustedError",
    "InvokerOutputError",
    "InvokerStartError",
]
