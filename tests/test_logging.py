"""Tests for logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from loguru import logger

from pr_attention.logging import (
    LogContext,
    bind_feature,
    bind_pr,
    bind_repo,
    bind_run,
    get_logger,
    is_configured,
    reset_logging,
    setup_logging,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Generator[None, None, None]:
    """Reset loguru state before and after each test."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def captured() -> Generator[list[str], None, None]:
    """Messages rendered as "{extra} | {message}" after DEBUG setup."""
    messages: list[str] = []
    setup_logging(level="DEBUG")
    handler_id = logger.add(
        lambda msg: messages.append(str(msg)),
        format="{extra} | {message}",
    )
    yield messages
    logger.remove(handler_id)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_default_level(self) -> None:
        """Test default INFO level setup."""
        setup_logging(level="INFO")
        assert is_configured()

    def test_setup_logging_verbose_overrides_level(self) -> None:
        """Test that verbose flag sets DEBUG level."""
        messages: list[str] = []
        setup_logging(level="WARNING", verbose=True)

        handler_id = logger.add(lambda msg: messages.append(str(msg)))
        try:
            logger.bind(name="test").debug("debug message")
            assert any("debug message" in msg for msg in messages)
        finally:
            logger.remove(handler_id)

    def test_setup_logging_with_file(self, tmp_path: Path) -> None:
        """Test file logging setup."""
        log_file = tmp_path / "test.log"
        setup_logging(level="INFO", log_file=log_file)

        logger.bind(name="test").info("Test file message")
        logger.complete()

        assert log_file.exists()
        assert "Test file message" in log_file.read_text()

    def test_setup_logging_sets_configured_flag(self) -> None:
        """Test that setup_logging sets the configured flag."""
        assert not is_configured()
        setup_logging(level="INFO")
        assert is_configured()


class TestInterceptHandler:
    """Tests for stdlib logging interception."""

    def test_intercept_stdlib_logging(self, captured: list[str]) -> None:
        """Test that stdlib logging is routed to loguru."""
        logging.getLogger("test_stdlib_intercept").warning("Hello from stdlib")

        assert any("Hello from stdlib" in msg for msg in captured)

    def test_library_loggers_quiet_at_info(self) -> None:
        """SQLAlchemy and httpx stay at WARNING unless debugging."""
        setup_logging(level="INFO")

        assert logging.getLogger("sqlalchemy.engine").level >= logging.WARNING
        assert logging.getLogger("httpx").level >= logging.WARNING

    def test_library_loggers_verbose_at_debug(self) -> None:
        setup_logging(level="INFO", verbose=True)

        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO
        assert logging.getLogger("httpx").level == logging.DEBUG


class TestContextBinding:
    """Tests for context binding helpers."""

    def test_get_logger_binds_name(self, captured: list[str]) -> None:
        get_logger("my_test_module").info("Test message")

        assert any("my_test_module" in msg for msg in captured)

    def test_bind_run(self, captured: list[str]) -> None:
        bind_run(17, "manual").info("Run message")

        output = "".join(captured)
        assert "'run_id': 17" in output
        assert "manual" in output

    def test_bind_repo(self, captured: list[str]) -> None:
        bind_repo("octo/widgets").info("Test repo message")

        assert any("octo/widgets" in msg for msg in captured)

    def test_bind_pr(self, captured: list[str]) -> None:
        bind_pr("octo/widgets", 123).info("Test PR message")

        output = "".join(captured)
        assert "octo/widgets" in output
        assert "'pr': 123" in output

    def test_bind_feature(self, captured: list[str]) -> None:
        bind_feature("ai_summary").warning("Feature message")

        assert any("ai_summary" in msg for msg in captured)

    def test_log_context_manager(self, captured: list[str]) -> None:
        with LogContext(custom_key="custom_value"):
            logger.info("Inside context")
        logger.info("Outside context")

        inside = next(m for m in captured if "Inside context" in m)
        outside = next(m for m in captured if "Outside context" in m)
        assert "custom_value" in inside
        assert "custom_value" not in outside


class TestResetLogging:
    """Tests for reset_logging function."""

    def test_reset_logging_clears_configured(self) -> None:
        setup_logging(level="INFO")
        assert is_configured()

        reset_logging()
        assert not is_configured()
