"""Pydantic schemas for tracked repositories."""

from datetime import datetime

from pr_attention.db.models import RepositoryProvenance

from .base import SchemaBase


def parse_repo_string(value: str) -> tuple[str, str]:
    """Split ``owner/name`` into its parts.

    Raises:
        ValueError: If either part is missing or there are extra slashes
    """
    parts = value.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid repository format: {value}. Use owner/repo.")
    return parts[0], parts[1]


class RepositoryRead(SchemaBase):
    """Schema for reading repository data."""

    id: int
    owner: str
    name: str
    full_name: str
    default_branch: str
    provenance: RepositoryProvenance
    is_tracked: bool
    last_synced_at: datetime | None
