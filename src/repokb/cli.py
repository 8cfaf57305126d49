"""
Command line interface for repository ingestion.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .ingestion.walker import Failed, FileOutcome, Processed
from .logger import configure_logging, get_logger, redirect_logging_to_file
from .services import RepositoryIngestionService
from .settings import settings

app = typer.Typer(name="repokb", help="Turn git repositories into tagged knowledge bases.")
configure_logging(enable_console=False)
log = get_logger(__name__)
console = Console()


@app.command()
def ingest(
    repo_url: str = typer.Argument(..., help="HTTPS or scp-style URL of the repository."),
    token: str = typer.Option(
        "",
        "--token",
        "-t",
        envvar="REPOKB_GIT_TOKEN",
        help="Access token used as the clone credential.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log",
        help="Write detailed logs to this file.",
    ),
) -> None:
    """Clone a repository, index its files, and register its knowledge tag."""
    if log_file:
        redirect_logging_to_file(log_file.resolve())
        typer.echo(f"Logging detailed output to {log_file.resolve()}")

    service = RepositoryIngestionService()
    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Cloning repository", total=None)
        counts = {"processed": 0, "failed": 0, "seen": 0}

        def on_outcome(outcome: FileOutcome) -> None:
            counts["seen"] += 1
            if isinstance(outcome, Processed):
                counts["processed"] += 1
            elif isinstance(outcome, Failed):
                counts["failed"] += 1
            progress.update(
                task,
                description=(
                    f"Indexing {outcome.candidate.path.name} "
                    f"(seen={counts['seen']} ok={counts['processed']} failed={counts['failed']})"
                ),
            )

        response = service.analyze(repo_url, token, progress=on_outcome)

    log.info("cli_ingest_finished", code=response.code)
    if not response.ok:
        console.print(f"[{response.code}] {response.info}", style="red", markup=False)
        raise typer.Exit(code=1)
    console.print(f"{response.info}: {response.data}", style="green", markup=False)


@app.command("tags")
def list_tags() -> None:
    """List registered knowledge-base tags."""
    response = RepositoryIngestionService().list_tags()
    table = Table("knowledge tag")
    for tag in response.data or []:
        table.add_row(tag)
    console.print(table)


@app.command()
def serve() -> None:
    """Run the HTTP API."""
    from .api.main import run

    configure_logging()
    run()


@app.command()
def workspace() -> None:
    """Show where repositories are cloned and where tags are recorded."""
    typer.echo(f"Workspace root: {settings.workspace_root}")
    typer.echo(f"Tag registry: {settings.resolved_registry_path()}")


if __name__ == "__main__":  # pragma: no cover
    app()
