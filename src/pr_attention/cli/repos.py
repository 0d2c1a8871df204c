"""Tracked repository commands."""

from typing import Annotated

import typer
from rich.table import Table

from pr_attention.cli.common import (
    LoginOption,
    OutputFormatOption,
    RepoArgument,
    console,
    open_viewer_client,
    print_json,
    run_async_command,
    validate_repo,
)
from pr_attention.db import RepositoryRepository, get_session
from pr_attention.github.sync import OutputFormat, TrackedRepositoryService
from pr_attention.schemas import RepositoryRead

app = typer.Typer(help="Manage tracked repositories")


@app.command("list")
def list_repositories(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """List tracked repositories.

    Examples:
        prattn repos list
        prattn repos list --format json
    """

    async def _list() -> list[RepositoryRead]:
        async with get_session() as session:
            service = TrackedRepositoryService(RepositoryRepository(session))
            return RepositoryRead.from_orm_list(await service.list_tracked())

    repos = run_async_command(_list())

    if output_format == OutputFormat.JSON:
        print_json([r.model_dump(mode="json") for r in repos])
        return

    if not repos:
        console.print("[yellow]No tracked repositories.[/yellow] Add one with 'prattn repos add'.")
        return

    table = Table(title="Tracked repositories")
    table.add_column("ID", style="cyan")
    table.add_column("Repository")
    table.add_column("Default branch")
    table.add_column("Provenance")
    table.add_column("Last synced")
    for repo in repos:
        table.add_row(
            str(repo.id),
            repo.full_name,
            repo.default_branch,
            repo.provenance.value.lower(),
            repo.last_synced_at.strftime("%Y-%m-%d %H:%M") if repo.last_synced_at else "never",
        )
    console.print(table)


@app.command("add")
def add_repository(
    repo: RepoArgument,
    login: LoginOption = None,
) -> None:
    """Track a repository (re-tracks a removed one).

    Examples:
        prattn repos add octo/widgets
    """
    validate_repo(repo)

    async def _add() -> RepositoryRead:
        async with get_session() as session:
            async with open_viewer_client(session, login) as (client, user):
                service = TrackedRepositoryService(RepositoryRepository(session), client)
                added = await service.add(repo, user_id=user.id)
                return RepositoryRead.model_validate(added)

    added = run_async_command(_add(), error_prefix="Could not add repository")
    console.print(
        f"[green]Tracking[/green] {added.full_name} (default branch {added.default_branch})"
    )


@app.command("remove")
def remove_repository(
    identifier: Annotated[
        str,
        typer.Argument(help="Repository ID or owner/name"),
    ],
) -> None:
    """Stop tracking a repository. Synced PRs are kept.

    Examples:
        prattn repos remove octo/widgets
        prattn repos remove 3
    """

    async def _remove() -> RepositoryRead | None:
        async with get_session() as session:
            service = TrackedRepositoryService(RepositoryRepository(session))
            removed = await service.remove(identifier)
            return RepositoryRead.model_validate(removed) if removed else None

    removed = run_async_command(_remove())

    if removed is None:
        console.print(f"[red]Error:[/red] No repository matches '{identifier}'")
        raise typer.Exit(1)
    console.print(f"Stopped tracking {removed.full_name}")
