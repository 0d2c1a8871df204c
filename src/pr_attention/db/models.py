"""SQLAlchemy ORM models for PR Attention."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class PRState(str, Enum):
    """Pull request lifecycle state."""

    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"  # closed without merge


class CIState(str, Enum):
    """Aggregate CI outcome for a PR head commit."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    UNKNOWN = "unknown"


class ReviewState(str, Enum):
    """Derived review state of a PR."""

    DRAFT = "draft"
    REVIEW_REQUESTED = "review_requested"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    UNREVIEWED = "unreviewed"


class RepositoryProvenance(str, Enum):
    """How a repository came to be tracked."""

    EXPLICIT = "explicit"  # added by the user
    SEEDED = "seeded"  # seeded from the fallback list


class SyncTrigger(str, Enum):
    """What started a sync run."""

    MANUAL = "manual"
    POLL = "poll"


class SyncStatus(str, Enum):
    """Lifecycle of a sync run. Everything except RUNNING is terminal."""

    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SyncStatus.RUNNING


# ------------------------------------------------------------------------------
# User model
# ------------------------------------------------------------------------------
class User(Base):
    """GitHub identity that syncs and views attention state."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    github_id: Mapped[int] = mapped_column(unique=True)
    login: Mapped[str] = mapped_column(String(100))
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    repositories: Mapped[list["Repository"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, login='{self.login}')>"


# ------------------------------------------------------------------------------
# Repository model
# ------------------------------------------------------------------------------
class Repository(Base):
    """Tracked GitHub repository.

    Never hard-deleted: removal flips is_tracked so PR history survives.
    """

    __tablename__ = "repositories"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    github_repo_id: Mapped[int | None] = mapped_column(nullable=True)
    owner: Mapped[str] = mapped_column(String(100))
    name: Mapped[str] = mapped_column(String(100))
    full_name: Mapped[str] = mapped_column(String(200), unique=True)  # "octo/widgets"
    default_branch: Mapped[str] = mapped_column(String(200), default="main")
    provenance: Mapped[RepositoryProvenance] = mapped_column(
        default=RepositoryProvenance.EXPLICIT
    )
    is_tracked: Mapped[bool] = mapped_column(default=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    user: Mapped["User | None"] = relationship(back_populates="repositories")
    pull_requests: Mapped[list["PullRequest"]] = relationship(
        back_populates="repository",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Repository(id={self.id}, full_name='{self.full_name}')>"


# ------------------------------------------------------------------------------
# PullRequest model
# ------------------------------------------------------------------------------
class PullRequest(Base):
    """Last observed state of a GitHub pull request."""

    __tablename__ = "pull_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    repository_id: Mapped[int] = mapped_column(ForeignKey("repositories.id", ondelete="CASCADE"))

    # --------------------------------------------------------------------------
    # Identity
    # --------------------------------------------------------------------------
    number: Mapped[int] = mapped_column()
    github_id: Mapped[int] = mapped_column()
    node_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    url: Mapped[str] = mapped_column(String(500))
    author_login: Mapped[str] = mapped_column(String(100))

    # --------------------------------------------------------------------------
    # Content and lifecycle
    # --------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(String(500))
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[PRState] = mapped_column(default=PRState.OPEN)
    draft: Mapped[bool] = mapped_column(default=False)
    mergeable: Mapped[bool | None] = mapped_column(nullable=True)
    head_ref: Mapped[str] = mapped_column(String(255))
    base_ref: Mapped[str] = mapped_column(String(255))
    milestone: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # --------------------------------------------------------------------------
    # Derived states
    # --------------------------------------------------------------------------
    ci_state: Mapped[CIState] = mapped_column(default=CIState.UNKNOWN)
    review_state: Mapped[ReviewState] = mapped_column(default=ReviewState.UNREVIEWED)

    # --------------------------------------------------------------------------
    # Metrics
    # --------------------------------------------------------------------------
    additions: Mapped[int] = mapped_column(default=0)
    deletions: Mapped[int] = mapped_column(default=0)
    changed_files: Mapped[int] = mapped_column(default=0)
    comments_count: Mapped[int] = mapped_column(default=0)
    commits_count: Mapped[int] = mapped_column(default=0)

    # JSON lists of logins / label names
    labels: Mapped[list[str]] = mapped_column(JSON, default=list)
    assignees: Mapped[list[str]] = mapped_column(JSON, default=list)
    requested_reviewers: Mapped[list[str]] = mapped_column(JSON, default=list)

    # --------------------------------------------------------------------------
    # Timestamps
    # --------------------------------------------------------------------------
    github_created_at: Mapped[datetime] = mapped_column(DateTime)
    github_updated_at: Mapped[datetime] = mapped_column(DateTime)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    merged_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime)

    # Upstream payload, stored untyped for later re-derivation
    raw: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    # --------------------------------------------------------------------------
    # Relationships
    # --------------------------------------------------------------------------
    repository: Mapped["Repository"] = relationship(back_populates="pull_requests")
    attention: Mapped["PullRequestAttention | None"] = relationship(
        back_populates="pull_request",
        cascade="all, delete-orphan",
        uselist=False,
    )

    # One PR number per repo
    __table_args__ = (UniqueConstraint("repository_id", "number", name="uq_repo_pr_number"),)

    def __repr__(self) -> str:
        return f"<PullRequest(id={self.id}, repo='{self.repository_id}', number={self.number})>"

    @property
    def is_open(self) -> bool:
        return self.state == PRState.OPEN


# ------------------------------------------------------------------------------
# PullRequestAttention model
# ------------------------------------------------------------------------------
class PullRequestAttention(Base):
    """Derived attention state, recomputed on every sync of its PR."""

    __tablename__ = "pull_request_attention"

    id: Mapped[int] = mapped_column(primary_key=True)
    pull_request_id: Mapped[int] = mapped_column(
        ForeignKey("pull_requests.id", ondelete="CASCADE"), unique=True
    )
    score_breakdown: Mapped[dict[str, int]] = mapped_column(JSON, default=dict)
    urgency_score: Mapped[int] = mapped_column(default=0)
    attention_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    needs_attention: Mapped[bool] = mapped_column(default=False)
    last_synced_at: Mapped[datetime] = mapped_column(DateTime)

    pull_request: Mapped["PullRequest"] = relationship(back_populates="attention")

    def __repr__(self) -> str:
        return (
            f"<PullRequestAttention(pr_id={self.pull_request_id}, "
            f"score={self.urgency_score}, needs_attention={self.needs_attention})>"
        )


# ------------------------------------------------------------------------------
# SyncRun model
# ------------------------------------------------------------------------------
class SyncRun(Base):
    """One orchestrator invocation.

    Created RUNNING, finalized exactly once, immutable afterwards.
    """

    __tablename__ = "sync_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    viewer_login: Mapped[str] = mapped_column(String(100))
    trigger: Mapped[SyncTrigger] = mapped_column(default=SyncTrigger.POLL)
    status: Mapped[SyncStatus] = mapped_column(default=SyncStatus.RUNNING)

    tracked_repos: Mapped[list[str]] = mapped_column(JSON, default=list)
    pulled_count: Mapped[int] = mapped_column(default=0)
    upserted_count: Mapped[int] = mapped_column(default=0)
    error_count: Mapped[int] = mapped_column(default=0)
    error_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    errors: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    started_at: Mapped[datetime] = mapped_column(DateTime)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<SyncRun(id={self.id}, status={self.status.value})>"
