"""Repository pattern implementation for database access.

Each repository wraps one model and a caller-owned session.
"""

from .attention import AttentionRepository
from .base import BaseRepository
from .pull_request import PullRequestRepository, pr_state_from_github
from .repository import RepositoryRepository
from .sync_run import SyncRunAlreadyFinalizedError, SyncRunRepository
from .user import UserRepository

__all__ = [
    "AttentionRepository",
    "BaseRepository",
    "PullRequestRepository",
    "RepositoryRepository",
    "SyncRunAlreadyFinalizedError",
    "SyncRunRepository",
    "UserRepository",
    "pr_state_from_github",
]
