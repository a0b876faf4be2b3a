"""
Interphase CLI - Discover commands.

Rank open beads, print the brief session-start summary, and record which
option was picked.
"""

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from interphase.core.discovery import ScoreRecord
from interphase.core.services import LifecycleService

app = typer.Typer(
    name="discover",
    help="Find the next bead to work on",
    no_args_is_help=True,
)

console = Console()


def _record_to_json(record: ScoreRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "title": record.title,
        "priority": record.priority,
        "status": record.status,
        "phase": record.phase,
        "score": record.score,
        "action": record.action.value,
        "plan_path": record.artifact_path or "",
        "stale": record.stale,
        "claimed_by_other": record.claimed_by_other,
        "parent_closed": record.parent_closed,
    }


@app.command()
def scan(
    lane: str | None = typer.Option(
        None, "--lane", "-l", help="Only beads in this lane (or INTERPHASE_LANE)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Show at most N rows"),
) -> None:
    """
    Rank open and in-progress beads by what to work on next.

    With --json, prints DISCOVERY_UNAVAILABLE or DISCOVERY_ERROR instead
    of a list when the tracker cannot be queried.

    Examples:
        interphase discover scan
        interphase discover scan --lane backend --json
    """
    service = LifecycleService.from_project_dir()
    result = service.scan(lane)

    if json_output:
        if result.sentinel:
            typer.echo(result.sentinel)
            return
        typer.echo(json.dumps([_record_to_json(r) for r in result.records], indent=2))
        return

    if not result.ok:
        console.print(f"[yellow]Discovery {result.status.value}[/yellow]")
        return

    records = result.records[:limit] if limit else result.records
    if not records:
        console.print("[dim]No open beads.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("ID")
    table.add_column("Pri")
    table.add_column("Phase")
    table.add_column("Action")
    table.add_column("Title")
    table.add_column("Flags")

    for record in records:
        flags = []
        if record.stale:
            flags.append("stale")
        if record.claimed_by_other:
            flags.append("claimed")
        if record.parent_closed:
            flags.append("parent closed")
        table.add_row(
            str(record.score),
            record.id or "[dim]orphan[/dim]",
            f"P{record.priority}",
            record.phase or "-",
            record.action.value,
            record.title,
            ", ".join(flags),
        )

    console.print(table)


@app.command()
def brief() -> None:
    """
    One-line summary of open work, cached briefly per project.
    """
    service = LifecycleService.from_project_dir()
    summary = service.brief_summary()
    if summary:
        console.print(summary, highlight=False)


@app.command()
def select(
    bead: str = typer.Argument(..., help="Chosen bead id"),
    action: str = typer.Argument(..., help="Action taken"),
    recommended: bool = typer.Option(
        False, "--recommended/--not-recommended", help="Was this the top recommendation"
    ),
) -> None:
    """
    Record which discovery option was picked (discovery_select telemetry).
    """
    service = LifecycleService.from_project_dir()
    service.log_selection(bead, action, recommended)
