"""PR Sync module - GitHub to database synchronization.

Services:
- RepositorySynchronizer: Open PRs of one repository → resolvers → attention → store
- SyncOrchestrator: Identity, tracked repositories and the SyncRun record
- TrackedRepositoryService: Add, list and soft-remove tracked repositories
"""

from .enums import OutputFormat
from .exceptions import AmbiguousIdentityError, IdentityResolutionError, SyncError
from .flow import (
    DEFAULT_FLOW_RULES,
    FlowPhase,
    FlowRule,
    FlowViolation,
    get_flow_phase,
    matches_branch_pattern,
    parse_flow_rules,
    validate_pr_flow,
)
from .orchestrator import RUN_LEVEL, SyncOrchestrator
from .repository_sync import RepositorySynchronizer
from .resolvers import (
    ViewerActivity,
    resolve_ci_state,
    resolve_review_state,
    resolve_viewer_activity,
)
from .results import (
    PullRequestSyncResult,
    RepositorySyncResult,
    SyncIssue,
    SyncRunResult,
    classify_run_status,
)
from .tracking import TrackedRepositoryService

__all__ = [
    # Orchestration
    "RUN_LEVEL",
    "SyncOrchestrator",
    "RepositorySynchronizer",
    "TrackedRepositoryService",
    # Results
    "PullRequestSyncResult",
    "RepositorySyncResult",
    "SyncIssue",
    "SyncRunResult",
    "classify_run_status",
    # Resolvers
    "ViewerActivity",
    "resolve_ci_state",
    "resolve_review_state",
    "resolve_viewer_activity",
    # Flow rules
    "DEFAULT_FLOW_RULES",
    "FlowPhase",
    "FlowRule",
    "FlowViolation",
    "get_flow_phase",
    "matches_branch_pattern",
    "parse_flow_rules",
    "validate_pr_flow",
    # Errors
    "AmbiguousIdentityError",
    "IdentityResolutionError",
    "SyncError",
    "OutputFormat",
]
