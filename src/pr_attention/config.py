"""Configuration settings for PR Attention."""

from functools import lru_cache
from typing import Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringWeights(BaseModel):
    """Weights and caps for the urgency score.

    The shape of the score is fixed; only these magnitudes are tunable.
    Boosts raise urgency, penalties lower it. CI weights are all added,
    since a failing build makes a PR more urgent to act on.
    """

    review_request_boost: int = Field(default=25, ge=0, le=100)
    assignee_boost: int = Field(default=20, ge=0, le=100)

    # CI weights (added to the score)
    ci_failure_penalty: int = Field(default=15, ge=0, le=100)
    ci_pending_penalty: int = Field(default=5, ge=0, le=100)
    ci_unknown_penalty: int = Field(default=3, ge=0, le=100)

    staleness_max_boost: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Cap for the staleness boost (1 point per 4 hours idle)",
    )
    mention_boost_per_mention: int = Field(default=5, ge=0, le=50)
    mention_max_boost: int = Field(default=20, ge=0, le=100)
    size_max_boost: int = Field(default=20, ge=0, le=100)
    activity_boost_per_comment: int = Field(default=2, ge=0, le=50)
    activity_max_boost: int = Field(default=15, ge=0, le=100)
    commit_max_boost: int = Field(default=10, ge=0, le=100)

    # Subtracted from the score
    draft_penalty: int = Field(default=20, ge=0, le=100)
    my_last_activity_penalty: int = Field(default=10, ge=0, le=100)

    stale_attention_threshold: int = Field(
        default=20,
        ge=0,
        description="Final score at or above which an otherwise quiet PR is flagged as stale",
    )

    @model_validator(mode="after")
    def _check_ci_ordering(self) -> Self:
        if not (self.ci_failure_penalty > self.ci_pending_penalty > self.ci_unknown_penalty > 0):
            raise ValueError(
                "CI weights must be ordered FAILURE > PENDING > UNKNOWN > SUCCESS (0)"
            )
        return self


class SyncConfig(BaseModel):
    """Configuration for repository sync behavior."""

    fallback_repositories: list[str] = Field(
        default_factory=list,
        description="Repositories seeded for a user who tracks none yet (owner/name)",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Page size for paginated GitHub listings",
    )

    @field_validator("fallback_repositories", mode="before")
    @classmethod
    def _split_repositories(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip() for part in value.replace("\n", ",").split(",") if part.strip()]
        return value


class AIConfig(BaseModel):
    """Configuration for the external AI command-line process."""

    cli_path: str = Field(default="codex", description="Executable for the AI CLI")
    model: str | None = Field(default=None, description="Optional --model override")
    timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Wall-clock limit for a single invocation",
    )
    kill_grace_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay between SIGTERM and SIGKILL on timeout",
    )
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_base_delay_seconds: float = Field(default=2.0, ge=0)
    max_output_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Per-stream capture limit for stdout/stderr",
    )


class CircuitBreakerConfig(BaseModel):
    """Configuration for the per-feature circuit breaker."""

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that open the circuit",
    )
    cooldown_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Time an open circuit rejects calls before allowing a probe",
    )


class FlowRuleConfig(BaseModel):
    """A single branch flow rule."""

    source_pattern: str
    allowed_targets: list[str]


class FlowConfig(BaseModel):
    """Ordered branch flow rules."""

    rules: list[FlowRuleConfig] = Field(
        default_factory=lambda: [
            FlowRuleConfig(source_pattern="feat/*", allowed_targets=["dev"]),
            FlowRuleConfig(source_pattern="fix/*", allowed_targets=["snap/*"]),
            FlowRuleConfig(source_pattern="snap/*", allowed_targets=["main"]),
        ],
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Database
    # --------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./pr_attention.db",
        description="Async SQLite database connection string",
    )

    # --------------------------------------------------------------------------
    # GitHub API
    # --------------------------------------------------------------------------
    github_token: str = Field(
        default="",
        description="GitHub personal access token",
    )
    github_login: str | None = Field(
        default=None,
        description="Login that owns github_token (resolved from the API if unset)",
    )
    github_tokens: dict[str, str] = Field(
        default_factory=dict,
        description="Stored credentials keyed by login, for multi-user deployments",
    )
    github_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout for GitHub API calls",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Sync & Scoring
    # --------------------------------------------------------------------------
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Repository sync configuration",
    )
    scoring: ScoringWeights = Field(
        default_factory=ScoringWeights,
        description="Urgency score weights and caps",
    )
    flow: FlowConfig = Field(
        default_factory=FlowConfig,
        description="Branch flow rules",
    )

    # --------------------------------------------------------------------------
    # AI Resilience
    # --------------------------------------------------------------------------
    ai: AIConfig = Field(
        default_factory=AIConfig,
        description="External AI process configuration",
    )
    circuit_breaker: CircuitBreakerConfig = Field(
        default_factory=CircuitBreakerConfig,
        description="Circuit breaker thresholds",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
