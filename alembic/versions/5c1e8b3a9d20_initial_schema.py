"""initial schema

Revision ID: 5c1e8b3a9d20
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e8b3a9d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, repositories, pull requests, attention and sync run tables."""
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('github_id', sa.Integer(), nullable=False),
        sa.Column('login', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('github_id')
    )
    op.create_table('repositories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('github_repo_id', sa.Integer(), nullable=True),
        sa.Column('owner', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('default_branch', sa.String(length=200), nullable=False),
        sa.Column('provenance', sa.Enum('EXPLICIT', 'SEEDED', name='repositoryprovenance'), nullable=False),
        sa.Column('is_tracked', sa.Boolean(), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('full_name')
    )
    op.create_table('pull_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('repository_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('github_id', sa.Integer(), nullable=False),
        sa.Column('node_id', sa.String(length=100), nullable=True),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('author_login', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('state', sa.Enum('OPEN', 'MERGED', 'CLOSED', name='prstate'), nullable=False),
        sa.Column('draft', sa.Boolean(), nullable=False),
        sa.Column('mergeable', sa.Boolean(), nullable=True),
        sa.Column('head_ref', sa.String(length=255), nullable=False),
        sa.Column('base_ref', sa.String(length=255), nullable=False),
        sa.Column('milestone', sa.String(length=200), nullable=True),
        sa.Column('ci_state', sa.Enum('SUCCESS', 'FAILURE', 'PENDING', 'UNKNOWN', name='cistate'), nullable=False),
        sa.Column('review_state', sa.Enum('DRAFT', 'REVIEW_REQUESTED', 'APPROVED', 'CHANGES_REQUESTED', 'COMMENTED', 'UNREVIEWED', name='reviewstate'), nullable=False),
        sa.Column('additions', sa.Integer(), nullable=False),
        sa.Column('deletions', sa.Integer(), nullable=False),
        sa.Column('changed_files', sa.Integer(), nullable=False),
        sa.Column('comments_count', sa.Integer(), nullable=False),
        sa.Column('commits_count', sa.Integer(), nullable=False),
        sa.Column('labels', sa.JSON(), nullable=False),
        sa.Column('assignees', sa.JSON(), nullable=False),
        sa.Column('requested_reviewers', sa.JSON(), nullable=False),
        sa.Column('github_created_at', sa.DateTime(), nullable=False),
        sa.Column('github_updated_at', sa.DateTime(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('merged_at', sa.DateTime(), nullable=True),
        sa.Column('last_activity_at', sa.DateTime(), nullable=False),
        sa.Column('raw', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['repository_id'], ['repositories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('repository_id', 'number', name='uq_repo_pr_number')
    )
    op.create_table('pull_request_attention',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pull_request_id', sa.Integer(), nullable=False),
        sa.Column('score_breakdown', sa.JSON(), nullable=False),
        sa.Column('urgency_score', sa.Integer(), nullable=False),
        sa.Column('attention_reason', sa.String(length=200), nullable=True),
        sa.Column('needs_attention', sa.Boolean(), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['pull_request_id'], ['pull_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pull_request_id')
    )
    # Ranked inbox reads order by score
    op.create_index('ix_pull_request_attention_urgency_score', 'pull_request_attention', ['urgency_score'])
    op.create_table('sync_runs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('viewer_login', sa.String(length=100), nullable=False),
        sa.Column('trigger', sa.Enum('MANUAL', 'POLL', name='synctrigger'), nullable=False),
        sa.Column('status', sa.Enum('RUNNING', 'SUCCESS', 'PARTIAL', 'FAILED', name='syncstatus'), nullable=False),
        sa.Column('tracked_repos', sa.JSON(), nullable=False),
        sa.Column('pulled_count', sa.Integer(), nullable=False),
        sa.Column('upserted_count', sa.Integer(), nullable=False),
        sa.Column('error_count', sa.Integer(), nullable=False),
        sa.Column('error_summary', sa.Text(), nullable=True),
        sa.Column('errors', sa.JSON(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sync_runs_started_at', 'sync_runs', ['started_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_sync_runs_started_at', table_name='sync_runs')
    op.drop_table('sync_runs')
    op.drop_index('ix_pull_request_attention_urgency_score', table_name='pull_request_attention')
    op.drop_table('pull_request_attention')
    op.drop_table('pull_requests')
    op.drop_table('repositories')
    op.drop_table('users')
