"""Centralized logging configuration using loguru.

Provides:
- Log level from Settings, overridable by --verbose/--quiet
- Standard library interception (SQLAlchemy, httpx via githubkit, asyncio)
- Context binders for sync runs, repositories, pull requests and AI features
- Optional rotating file sink
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_CONSOLE_FORMAT = (
    "<dim>{time:HH:mm:ss}</dim> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - "
    "<level>{message}</level>"
)

_configured = False


class InterceptHandler(logging.Handler):
    """Route standard library log records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        from types import FrameType

        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        # Walk out of the logging module so loguru reports the real caller
        frame: FrameType | None = logging.currentframe()
        depth = 2
        while frame is not None:
            if frame.f_code.co_filename != logging.__file__:
                break
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(name=record.name).log(
            level, record.getMessage()
        )


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Configure logging for the application.

    Args:
        level: Base log level from config
        verbose: If True, use DEBUG level (overrides level)
        quiet: If True, use WARNING level (overrides level)
        log_file: Optional path for file logging with rotation
        rotation: When to rotate log file (e.g., "10 MB", "1 day")
        retention: How long to keep rotated logs
        serialize: If True, write JSON records to the file sink

    Returns:
        Configured logger instance

    Note:
        verbose takes precedence over quiet if both are True.
    """
    global _configured

    effective_level: LogLevel
    if verbose:
        effective_level = "DEBUG"
    elif quiet:
        effective_level = "WARNING"
    else:
        effective_level = level

    logger.remove()
    # Records without a bound name still get a readable column
    logger.configure(extra={"name": "pr_attention"})

    logger.add(
        sys.stderr,
        level=effective_level,
        format=_CONSOLE_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=effective_level == "DEBUG",
    )

    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[name]}:{function}:{line} | "
                "{extra} | "
                "{message}"
            ),
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
        )

    _intercept_stdlib_logging(effective_level)

    _configured = True
    return logger


def _intercept_stdlib_logging(level: LogLevel) -> None:
    """Send stdlib loggers through loguru with library-appropriate levels."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    debug = level in ("TRACE", "DEBUG")
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)

    httpx_level = logging.DEBUG if debug else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> Logger:
    """Get a logger with the given name bound as context.

    Usage:
        from pr_attention.logging import get_logger
        logger = get_logger(__name__)
        logger.bind(repo="octo/widgets", pr=42).info("Processing PR")
    """
    return logger.bind(name=name)


def bind_run(run_id: int, trigger: str) -> Logger:
    """Bind sync run context to logger."""
    return logger.bind(name="sync", run_id=run_id, trigger=trigger)


def bind_repo(full_name: str) -> Logger:
    """Bind repository context to logger.

    Args:
        full_name: Repository in owner/name form

    Returns:
        Logger with repo context bound
    """
    return logger.bind(name="sync", repo=full_name)


def bind_pr(full_name: str, pr_number: int) -> Logger:
    """Bind PR context to logger.

    Args:
        full_name: Repository in owner/name form
        pr_number: PR number

    Returns:
        Logger with repo and PR context bound
    """
    return logger.bind(name="sync", repo=full_name, pr=pr_number)


def bind_feature(feature: str) -> Logger:
    """Bind an AI feature key to logger."""
    return logger.bind(name="ai", feature=feature)


class LogContext:
    """Context manager for temporary log context binding.

    Usage:
        with LogContext(run_id=7):
            logger.info("Processing")  # carries run_id
        logger.info("After")  # no longer does
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._token: Any = None

    def __enter__(self) -> Logger:
        self._token = logger.contextualize(**self._context)
        self._token.__enter__()
        return logger

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._token:
            self._token.__exit__(exc_type, exc_val, exc_tb)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def reset_logging() -> None:
    """Reset logging state (primarily for testing)."""
    global _configured
    logger.remove()
    _configured = False
