"""Main CLI application for PR Attention."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from pr_attention import __version__
from pr_attention.cli import ai as ai_cmd
from pr_attention.cli import attention as attention_cmd
from pr_attention.cli import repos as repos_cmd
from pr_attention.cli import sync as sync_cmd
from pr_attention.config import get_settings
from pr_attention.logging import setup_logging

app = typer.Typer(
    name="prattn",
    help="Track pull requests across repositories and rank what needs your attention.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"prattn version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """PR Attention - sync pull requests and score their urgency."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


app.add_typer(sync_cmd.app, name="sync")
app.add_typer(repos_cmd.app, name="repos")
app.add_typer(attention_cmd.app, name="attention")
app.add_typer(ai_cmd.app, name="ai")


if __name__ == "__main__":
    app()
