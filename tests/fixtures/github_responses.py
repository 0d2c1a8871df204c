"""Mock GitHub API response fixtures.

These fixtures represent realistic GitHub REST API responses for testing
schema parsing and client conversion logic. Structure matches the GitHub
REST API v3, trimmed to the fields the sync engine reads plus a few extras
it must tolerate.

See: https://docs.github.com/en/rest/pulls/pulls
"""

from tests.conftest import (
    JAN_15_EVENING_ISO,
    JAN_15_ISO,
    JAN_16_ISO,
    JAN_16_MID_ISO,
    JAN_16_MORNING_ISO,
)

# -----------------------------------------------------------------------------
# Users & Repositories
# -----------------------------------------------------------------------------
GITHUB_VIEWER_RESPONSE = {
    "login": "octocat",
    "id": 583231,
    "name": "The Octocat",
    "avatar_url": "https://avatars.githubusercontent.com/u/583231?v=4",
    "type": "User",
    "site_admin": False,
}

GITHUB_REPOSITORY_RESPONSE = {
    "id": 1296269,
    "name": "widgets",
    "full_name": "octo/widgets",
    "owner": {"login": "octo", "id": 9919, "type": "Organization"},
    "private": False,
    "default_branch": "dev",
}

# -----------------------------------------------------------------------------
# Pull Request Response (Open, detail endpoint)
# -----------------------------------------------------------------------------
GITHUB_PR_RESPONSE = {
    "id": 1001234,
    "node_id": "PR_kwDOABCD12345",
    "number": 1234,
    "html_url": "https://github.com/octo/widgets/pull/1234",
    "state": "open",
    "locked": False,
    "title": "Add login page",
    "body": "Adds the login page. cc @octocat",
    "draft": False,
    "user": {"login": "contributor", "id": 12345, "type": "User"},
    "head": {"ref": "feat/login", "sha": "6dcb09b5b57875f334f61aebed695e2e4193db5e"},
    "base": {"ref": "dev", "sha": "9c48853fa3dc5c1c3d6f1f1cd1f2743e72652840"},
    "created_at": JAN_15_ISO,
    "updated_at": JAN_16_ISO,
    "closed_at": None,
    "merged_at": None,
    "merged": False,
    "mergeable": True,
    "labels": [{"id": 1, "name": "enhancement", "color": "a2eeef"}],
    "assignees": [{"login": "octocat", "id": 583231, "type": "User"}],
    "requested_reviewers": [{"login": "reviewer1", "id": 22222, "type": "User"}],
    "requested_teams": [{"slug": "frontend", "name": "Frontend"}],
    "milestone": {"title": "v2.0", "number": 3},
    "additions": 250,
    "deletions": 10,
    "changed_files": 5,
    "comments": 3,
    "review_comments": 2,
    "commits": 4,
}

# -----------------------------------------------------------------------------
# Reviews & Comments
# -----------------------------------------------------------------------------
GITHUB_REVIEWS_RESPONSE = [
    {
        "id": 80,
        "user": {"login": "reviewer1", "id": 22222, "type": "User"},
        "state": "CHANGES_REQUESTED",
        "submitted_at": JAN_15_EVENING_ISO,
    },
    {
        "id": 81,
        "user": {"login": "octocat", "id": 583231, "type": "User"},
        "state": "APPROVED",
        "submitted_at": JAN_16_MID_ISO,
    },
]

GITHUB_COMMENTS_RESPONSE = [
    {
        "id": 501,
        "user": {"login": "contributor", "id": 12345, "type": "User"},
        "body": "Ready for another look",
        "created_at": JAN_16_MORNING_ISO,
        "updated_at": JAN_16_MORNING_ISO,
    },
]

# -----------------------------------------------------------------------------
# CI signals
# -----------------------------------------------------------------------------
GITHUB_COMBINED_STATUS_RESPONSE = {
    "state": "pending",
    "sha": "6dcb09b5b57875f334f61aebed695e2e4193db5e",
    "total_count": 2,
    "statuses": [
        {"state": "success", "context": "ci/lint"},
        {"state": "pending", "context": "ci/deploy-preview"},
    ],
}

GITHUB_CHECK_RUNS_RESPONSE = {
    "total_count": 2,
    "check_runs": [
        {"name": "build", "status": "completed", "conclusion": "success"},
        {"name": "test", "status": "completed", "conclusion": "failure"},
    ],
}
