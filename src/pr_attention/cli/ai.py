"""AI service health commands."""

from datetime import UTC, datetime
from typing import Annotated, Any

import typer
from rich.table import Table

from pr_attention.ai import AIError, GuardedInvoker
from pr_attention.cli.common import OutputFormatOption, console, print_json, run_async_command
from pr_attention.github.sync import OutputFormat

app = typer.Typer(help="AI service commands")

PROBE_FEATURE = "health_probe"
PROBE_PROMPT = 'Reply with exactly this JSON and nothing else: {"ok": true}'


async def _probe(guarded: GuardedInvoker) -> dict[str, Any]:
    try:
        result = await guarded.run(PROBE_FEATURE, PROBE_PROMPT, max_retries=0)
    except AIError as e:
        return {"ok": False, "exit_code": None, "error": str(e)}
    return {"ok": result.ok, "exit_code": result.exit_code, "error": result.error}


@app.command("health")
def health(
    probe: Annotated[
        bool,
        typer.Option("--probe", help="Run one minimal AI call through its breaker"),
    ] = False,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Report circuit breaker states, optionally probing the AI CLI.

    Exits with code 1 when a circuit is open or the probe fails.

    Examples:
        prattn ai health
        prattn ai health --probe --format json
    """
    guarded = GuardedInvoker()
    probe_result = run_async_command(_probe(guarded)) if probe else None

    open_circuits = guarded.open_circuits()
    healthy = not open_circuits and (probe_result is None or probe_result["ok"])
    report = {
        "healthy": healthy,
        "open_circuits": open_circuits,
        "breakers": {name: snap.to_dict() for name, snap in guarded.snapshot().items()},
        "probe": probe_result,
        "timestamp": datetime.now(UTC).isoformat(),
    }

    if output_format == OutputFormat.JSON:
        print_json(report)
    else:
        status = "[green]healthy[/green]" if healthy else "[red]degraded[/red]"
        console.print(f"AI service: {status}")
        if probe_result is not None:
            if probe_result["ok"]:
                console.print("  Probe: [green]ok[/green]")
            else:
                console.print(f"  Probe: [red]failed[/red] {probe_result['error']}")
        if report["breakers"]:
            table = Table(title="Circuit breakers")
            table.add_column("Feature", style="cyan")
            table.add_column("State")
            table.add_column("Consecutive failures", justify="right")
            table.add_column("Failures", justify="right")
            table.add_column("Successes", justify="right")
            for snap in guarded.snapshot().values():
                table.add_row(
                    snap.feature,
                    snap.state.value,
                    str(snap.consecutive_failures),
                    str(snap.total_failures),
                    str(snap.total_successes),
                )
            console.print(table)

    if not healthy:
        raise typer.Exit(1)
