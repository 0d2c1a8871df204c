"""Pydantic schema for reporting stored sync runs."""

from datetime import datetime
from typing import Any

from pr_attention.db.models import SyncStatus, SyncTrigger

from .base import SchemaBase


class SyncRunRead(SchemaBase):
    """Schema for reading a sync run row."""

    id: int
    trigger: SyncTrigger
    status: SyncStatus
    viewer_login: str
    tracked_repos: list[str]
    pulled_count: int
    upserted_count: int
    error_count: int
    error_summary: str | None
    errors: list[dict[str, Any]]
    started_at: datetime
    finished_at: datetime | None

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
