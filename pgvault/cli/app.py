"""Typer entry point: ``pgvault``.

Exactly one command, no sub-commands: load configuration, configure
logging, run one backup, print a summary, exit with the run's status.

Exit codes: 0 done, 1 failed run, 2 invalid configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from pgvault.config import load_config
from pgvault.core.errors import ConfigurationError
from pgvault.core.orchestrator import build_orchestrator
from pgvault.core.units import format_bytes
from pgvault.logging_setup import configure_logging
from pgvault.models.results import RunReport

CONFIG_ERROR_EXIT_CODE = 2

console = Console(stderr=True)

app = typer.Typer(
    name="pgvault",
    help="Back up a PostgreSQL database to S3 with size validation and rotation.",
    rich_markup_mode="rich",
    add_completion=False,
)


def _summary(report: RunReport) -> Panel:
    lines = [f"[bold]Run ID:[/bold]     {report.run_id}"]
    if report.artifact_name:
        lines.append(f"[bold]Artifact:[/bold]   {report.artifact_name}")
    if report.size_bytes is not None:
        lines.append(f"[bold]Size:[/bold]       {format_bytes(report.size_bytes)}")
    if report.remote_key:
        lines.append(f"[bold]Remote key:[/bold] {report.remote_key}")
    if report.rotation is not None:
        lines.append(
            f"[bold]Rotation:[/bold]   {len(report.rotation.deleted)} deleted, "
            f"{report.rotation.kept} kept"
        )
        for error in report.rotation.errors:
            lines.append(f"[yellow]  ! {error}[/yellow]")

    if report.succeeded:
        title = "[bold green]Backup completed[/bold green]"
        border = "green"
    else:
        reason = report.failure_reason.value if report.failure_reason else "unknown"
        lines.append("")
        lines.append(f"[bold red]Failed:[/bold red] {reason}")
        if report.detail:
            lines.append(f"[dim]{report.detail}[/dim]")
        title = "[bold red]Backup failed[/bold red]"
        border = "red"

    return Panel("\n".join(lines), title=title, border_style=border, padding=(1, 2))


@app.command()
def backup(
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        "-e",
        help="Path to a .env file (default: ./.env if present).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    """Run one backup: admit, dump, validate, upload, rotate, clean up."""
    overrides = {"log_level": log_level} if log_level else {}
    try:
        config = load_config(env_file, **overrides)
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=CONFIG_ERROR_EXIT_CODE)

    log_file = configure_logging(config.log_dir, config.log_level)

    report = build_orchestrator(config).run()

    console.print(_summary(report))
    console.print(f"[dim]Log file: {log_file}[/dim]")
    raise typer.Exit(code=report.exit_code)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
