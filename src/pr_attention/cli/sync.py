"""Sync commands for PR Attention."""

from typing import Annotated, Any

import typer

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
from pr_attention.config import get_settings
from pr_attention.credentials import SettingsCredentialResolver
from pr_attention.db import RepositoryRepository, SyncRunRepository, get_session
from pr_attention.db.models import SyncStatus, SyncTrigger
from pr_attention.github.sync import (
    OutputFormat,
    RepositorySynchronizer,
    SyncOrchestrator,
    SyncRunResult,
)
from pr_attention.schemas import SyncRunRead

app = typer.Typer(help="Sync pull requests from GitHub")

_STATUS_STYLE = {
    SyncStatus.SUCCESS: "green",
    SyncStatus.PARTIAL: "yellow",
    SyncStatus.FAILED: "red",
    SyncStatus.RUNNING: "cyan",
}


def _print_run_summary(result: SyncRunResult) -> None:
    style = _STATUS_STYLE[result.status]
    console.print(
        f"[bold]Sync run #{result.run_id}[/bold] "
        f"[{style}]{result.status.value}[/{style}] as {result.viewer_login}"
    )
    for repo in result.repo_results:
        console.print(
            f"  {repo.repository}: {repo.upserted}/{repo.pulled} PRs synced"
            + (f", [yellow]{len(repo.issues)} issue(s)[/yellow]" if repo.issues else "")
            + (f", {repo.ci_unknown} without CI status" if repo.ci_unknown else "")
        )
    console.print(
        f"Pulled {result.pulled}, upserted {result.upserted} "
        f"in {result.duration_seconds:.1f}s"
    )
    if result.issues:
        console.print(f"\n[yellow]{len(result.issues)} error(s) during sync:[/yellow]")
        for issue in result.issues:
            console.print(f"  [red]-[/red] {issue}")


@app.command("run")
def sync_run(
    manual: Annotated[
        bool,
        typer.Option("--manual", help="Record the run as MANUAL instead of POLL"),
    ] = False,
    login: LoginOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Sync every tracked repository and record a sync run.

    Exits with code 1 when the run FAILED.

    Examples:
        prattn sync run
        prattn sync run --manual --login octocat
        prattn sync run --format json
    """
    trigger = SyncTrigger.MANUAL if manual else SyncTrigger.POLL

    async def _run() -> SyncRunResult:
        settings = get_settings()
        async with get_session() as session:
            orchestrator = SyncOrchestrator(
                session, SettingsCredentialResolver(settings), settings=settings
            )
            return await orchestrator.run(trigger=trigger, login=login)

    result = run_async_command(_run(), error_prefix="Sync failed")

    if output_format == OutputFormat.JSON:
        print_json(result.to_dict())
    else:
        _print_run_summary(result)

    if result.status == SyncStatus.FAILED:
        raise typer.Exit(1)


@app.command("pr")
def sync_pull_request(
    repo: RepoArgument,
    pr_number: Annotated[int, typer.Argument(help="PR number to refresh")],
    login: LoginOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Refresh a single PR of a tracked repository.

    Examples:
        prattn sync pr octo/widgets 42
        prattn sync pr octo/widgets 42 --format json
    """
    validate_repo(repo)

    async def _refresh() -> dict[str, Any]:
        async with get_session() as session:
            repository = await RepositoryRepository(session).get_by_full_name(repo)
            if repository is None or not repository.is_tracked:
                raise ValueError(
                    f"Repository {repo} is not tracked. Add it with 'prattn repos add {repo}'."
                )

            async with open_viewer_client(session, login) as (client, user):
                synchronizer = RepositorySynchronizer(
                    client,
                    session,
                    viewer_login=user.login,
                    weights=get_settings().scoring,
                )
                result = await synchronizer.sync_pull_request(repository, pr_number)
                return result.to_dict()

    result = run_async_command(_refresh(), error_prefix="Refresh failed")

    if output_format == OutputFormat.JSON:
        print_json(result)
        return

    title = result["title"]
    if len(title) > 60:
        title = title[:57] + "..."
    console.print(f"[bold]{result['action'].title()}[/bold] PR #{pr_number}: {title}")
    console.print(
        f"  CI {result['ci_state']}, review {result['review_state']}, "
        f"score {result['urgency_score']}"
    )
    if result["attention_reason"]:
        flag = "[red]needs attention[/red]" if result["needs_attention"] else "[dim]info[/dim]"
        console.print(f"  {result['attention_reason']} ({flag})")


@app.command("status")
def sync_status(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show the most recent sync run.

    Examples:
        prattn sync status
        prattn sync status --format json
    """

    async def _latest() -> SyncRunRead | None:
        async with get_session() as session:
            run = await SyncRunRepository(session).get_latest()
            return SyncRunRead.model_validate(run) if run else None

    run = run_async_command(_latest())

    if run is None:
        console.print("[yellow]No sync runs recorded yet.[/yellow]")
        return

    if output_format == OutputFormat.JSON:
        print_json(run.model_dump(mode="json"))
        return

    style = _STATUS_STYLE[run.status]
    console.print(
        f"[bold]Sync run #{run.id}[/bold] [{style}]{run.status.value}[/{style}] "
        f"({run.trigger.value}) as {run.viewer_login}"
    )
    console.print(f"  Started:  {run.started_at:%Y-%m-%d %H:%M:%S}")
    if run.finished_at is not None:
        console.print(f"  Finished: {run.finished_at:%Y-%m-%d %H:%M:%S}")
    console.print(
        f"  Repositories: {len(run.tracked_repos)}, pulled {run.pulled_count}, "
        f"upserted {run.upserted_count}, errors {run.error_count}"
    )
    if run.error_summary:
        console.print(f"  [yellow]{run.error_summary}[/yellow]")
