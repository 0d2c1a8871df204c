"""Attention inbox commands."""

from typing import Annotated, Any

import typer
from rich.table import Table

from pr_attention.cli.common import OutputFormatOption, console, print_json, run_async_command
from pr_attention.config import get_settings
from pr_attention.db import AttentionRepository, get_session
from pr_attention.db.models import PullRequestAttention
from pr_attention.github.sync import (
    FlowRule,
    OutputFormat,
    get_flow_phase,
    parse_flow_rules,
    validate_pr_flow,
)

app = typer.Typer(help="Show pull requests ranked by urgency")


def _row_to_dict(row: PullRequestAttention, rules: tuple[FlowRule, ...]) -> dict[str, Any]:
    pr = row.pull_request
    violation = validate_pr_flow(pr.head_ref, pr.base_ref, rules)
    return {
        "repository": pr.repository.full_name,
        "number": pr.number,
        "title": pr.title,
        "url": pr.url,
        "author": pr.author_login,
        "ci_state": pr.ci_state.value,
        "review_state": pr.review_state.value,
        "urgency_score": row.urgency_score,
        "attention_reason": row.attention_reason,
        "needs_attention": row.needs_attention,
        "flow_phase": get_flow_phase(pr.head_ref, pr.base_ref).value,
        "flow_violation": violation.message if violation else None,
        "score_breakdown": row.score_breakdown,
    }


@app.command("list")
def list_attention(
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include open PRs that need no attention"),
    ] = False,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Maximum PRs to show"),
    ] = 20,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """List open PRs by urgency score, highest first.

    Examples:
        prattn attention list
        prattn attention list --all --limit 50
        prattn attention list --format json
    """
    rules = parse_flow_rules(get_settings().flow.rules)

    async def _list() -> list[dict[str, Any]]:
        async with get_session() as session:
            rows = await AttentionRepository(session).list_ranked(
                only_needing_attention=not show_all, limit=limit
            )
            return [_row_to_dict(row, rules) for row in rows]

    items = run_async_command(_list())

    if output_format == OutputFormat.JSON:
        print_json(items)
        return

    if not items:
        console.print("[green]Nothing needs your attention.[/green]")
        return

    table = Table(title="Pull requests by urgency")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("PR", style="cyan")
    table.add_column("Title", max_width=50)
    table.add_column("Reason")
    table.add_column("CI")
    table.add_column("Flow")
    for item in items:
        title = item["title"]
        if len(title) > 50:
            title = title[:47] + "..."
        reason = item["attention_reason"] or ""
        if reason and not item["needs_attention"]:
            reason = f"[dim]{reason}[/dim]"
        flow = item["flow_phase"]
        if item["flow_violation"]:
            flow = f"[red]{flow} (wrong base)[/red]"
        table.add_row(
            str(item["urgency_score"]),
            f"{item['repository']}#{item['number']}",
            title,
            reason,
            item["ci_state"].lower(),
            flow,
        )
    console.print(table)

    violations = [i for i in items if i["flow_violation"]]
    for item in violations:
        console.print(
            f"[red]Flow:[/red] {item['repository']}#{item['number']}: {item['flow_violation']}"
        )
