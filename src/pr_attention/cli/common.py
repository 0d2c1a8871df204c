"""Common CLI option types and helpers.

Provides:
- `run_async_command`: async execution with unified error handling
- Option/argument type aliases shared by command modules
- `open_viewer_client`: identity resolution for commands that call GitHub
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from pr_attention.config import get_settings
from pr_attention.credentials import SettingsCredentialResolver
from pr_attention.db.engine import dispose_engine
from pr_attention.db.models import User
from pr_attention.db.repositories import UserRepository
from pr_attention.github.client import GitHubClient
from pr_attention.github.sync.enums import OutputFormat
from pr_attention.github.sync.orchestrator import SyncOrchestrator

# Shared console instance for CLI output
console = Console()

T = TypeVar("T")


async def _run_then_dispose(coro: Coroutine[object, object, T]) -> T:
    # Each command gets its own event loop; pooled connections must not outlive it
    try:
        return await coro
    finally:
        await dispose_engine()


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Execute async code from a synchronous CLI command.

    Prints a red error line and exits with code 1 on any exception.

    Raises:
        typer.Exit: Re-raised from deliberate exits, or raised with code 1 on error
    """
    try:
        return asyncio.run(_run_then_dispose(coro))
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


def print_json(data: Any) -> None:
    """Print data as JSON, rendering datetimes and enums as strings."""
    console.print_json(json.dumps(data, default=str))


# Typer requires function calls as default arguments, which triggers B008.
# Using Annotated with a centralized type alias keeps the noqa in one place.

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option(
        "--format",
        "-f",
        help="Output format",
    ),
]
"""Output format option type for CLI commands.

Usage:
    def command(output_format: OutputFormatOption = OutputFormat.TEXT):
"""

LoginOption = Annotated[
    str | None,
    typer.Option(
        "--login",
        "-l",
        help="GitHub login to act as (required when several tokens are stored)",
    ),
]

RepoArgument = Annotated[
    str,
    typer.Argument(
        help="Repository in owner/name format (e.g., octo/widgets)",
    ),
]


def validate_repo(repo: str) -> tuple[str, str]:
    """Parse a repository string, exiting with code 1 if malformed."""
    from pr_attention.schemas import parse_repo_string

    try:
        return parse_repo_string(repo)
    except ValueError:
        console.print("[red]Error:[/red] Repository must be in owner/name format")
        raise typer.Exit(1) from None


@asynccontextmanager
async def open_viewer_client(
    session: AsyncSession, login: str | None
) -> AsyncIterator[tuple[GitHubClient, User]]:
    """Resolve the acting identity and yield its client and stored User.

    Raises:
        IdentityResolutionError: If no single stored identity matches
    """
    settings = get_settings()
    orchestrator = SyncOrchestrator(
        session, SettingsCredentialResolver(settings), settings=settings
    )
    identity = await orchestrator.resolve_identity(login=login)

    async with GitHubClient(
        identity.token,
        timeout=settings.github_timeout_seconds,
        per_page=settings.sync.per_page,
    ) as client:
        gh_user = await client.get_authenticated_user()
        user = await UserRepository(session).upsert_from_github(gh_user)
        yield client, user
