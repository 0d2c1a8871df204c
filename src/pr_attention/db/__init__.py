"""Database module for PR Attention."""

from pr_attention.db.engine import (
    create_tables,
    dispose_engine,
    get_engine,
    get_session,
    get_session_factory,
)
from pr_attention.db.models import (
    Base,
    CIState,
    PRState,
    PullRequest,
    PullRequestAttention,
    Repository,
    RepositoryProvenance,
    ReviewState,
    SyncRun,
    SyncStatus,
    SyncTrigger,
    User,
)
from pr_attention.db.repositories import (
    AttentionRepository,
    BaseRepository,
    PullRequestRepository,
    RepositoryRepository,
    SyncRunRepository,
    UserRepository,
)

__all__ = [
    # Models
    "Base",
    "CIState",
    "PRState",
    "PullRequest",
    "PullRequestAttention",
    "Repository",
    "RepositoryProvenance",
    "ReviewState",
    "SyncRun",
    "SyncStatus",
    "SyncTrigger",
    "User",
    # Engine
    "create_tables",
    "dispose_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
    # Repositories
    "AttentionRepository",
    "BaseRepository",
    "PullRequestRepository",
    "RepositoryRepository",
    "SyncRunRepository",
    "UserRepository",
]
