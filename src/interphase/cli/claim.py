"""
Interphase CLI - Claim commands.

Claim, heartbeat and release beads for an agent session.
"""

import typer
from rich.console import Console

from interphase.cli.errors import ExitCode, print_error
from interphase.core.services import LifecycleService

app = typer.Typer(
    name="claim",
    help="Claim and release beads for a session",
    no_args_is_help=True,
)

console = Console()

SESSION_OPTION = typer.Option(
    None, "--session", "-s", help="Session id (defaults to CLAUDE_SESSION_ID)"
)


def _no_session(e: ValueError) -> typer.Exit:
    print_error(str(e), solution="interphase claim ... --session <id>")
    return typer.Exit(ExitCode.USER_ERROR)


@app.command()
def take(
    bead: str = typer.Argument(..., help="Bead id"),
    session: str | None = SESSION_OPTION,
) -> None:
    """
    Claim a bead unless another session holds a fresh claim on it.

    Exits 1 when the claim was refused.
    """
    service = LifecycleService.from_project_dir()
    try:
        result = service.claim(bead, session)
    except ValueError as e:
        raise _no_session(e)

    if result.claimed:
        console.print(f"[green]Claimed[/green] {bead}", highlight=False)
        return
    console.print(f"[yellow]{bead}: {result.message}[/yellow]", highlight=False)
    raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def heartbeat(
    bead: str = typer.Argument(..., help="Bead id"),
    session: str | None = SESSION_OPTION,
) -> None:
    """
    Refresh the claim timestamp (throttled to once a minute).
    """
    service = LifecycleService.from_project_dir()
    try:
        service.heartbeat(bead, session)
    except ValueError as e:
        raise _no_session(e)


@app.command()
def release(
    bead: str = typer.Argument(..., help="Bead id"),
    session: str | None = SESSION_OPTION,
) -> None:
    """
    Release a bead claimed by this session (or unclaimed).
    """
    service = LifecycleService.from_project_dir()
    try:
        released = service.release(bead, session)
    except ValueError as e:
        raise _no_session(e)

    if released:
        console.print(f"Released {bead}", highlight=False)
    else:
        console.print(f"[yellow]{bead} is claimed by another session; left as is[/yellow]")
