"""AI invocation exceptions."""

import math


class AIError(Exception):
    """Base exception for AI invocation errors."""

    pass


class CircuitOpenError(AIError):
    """Raised before any process is started when a feature's circuit is open."""

    def __init__(self, feature: str, retry_after_seconds: float) -> None:
        self.feature = feature
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"AI service temporarily unavailable for {feature} (circuit open). "
            f"Retry in ~{math.ceil(retry_after_seconds)}s."
        )


class InvokerError(AIError):
    """Base exception for external process failures."""

    pass


class InvokerStartError(InvokerError):
    """Raised when the process cannot be started at all. Never retried."""

    pass


class InvokerExhaustedError(InvokerError):
    """Raised when every attempt exited non-zero or timed out."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        exit_code: int,
        stderr_excerpt: str = "",
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.exit_code = exit_code
        self.stderr_excerpt = stderr_excerpt


class InvokerOutputError(InvokerError):
    """Raised when JSON output was required but none could be parsed."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw
