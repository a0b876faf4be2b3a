"""
Interphase CLI - Phase commands.

Read, record and infer lifecycle phases of beads.
"""

import typer
from rich.console import Console

from interphase.cli.errors import ExitCode, print_error, print_missing_bead_error
from interphase.core.phases import Phase
from interphase.core.services import LifecycleService

app = typer.Typer(
    name="phase",
    help="Read and record bead lifecycle phases",
    no_args_is_help=True,
)

console = Console()


@app.command()
def get(
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
    artifact: str | None = typer.Option(
        None, "--artifact", "-a", help="Artifact to fall back to (and infer the bead from)"
    ),
) -> None:
    """
    Show the current phase of a bead.

    The tracker's phase wins; the artifact's **Phase:** header is the
    fallback. Prints nothing when no phase is recorded.

    Examples:
        interphase phase get --bead Clavain-a1b
        interphase phase get --artifact docs/plans/gates.md
    """
    service = LifecycleService.from_project_dir()
    item_id = service.resolve_item_id(bead, artifact)
    if not item_id and not artifact:
        print_missing_bead_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    phase = service.get_phase(item_id, artifact)
    if phase:
        console.print(phase, highlight=False)


@app.command(name="set")
def set_phase(
    phase: str = typer.Argument(..., help="Phase to record"),
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
    reason: str | None = typer.Option(None, "--reason", "-r", help="Why the phase changed"),
) -> None:
    """
    Record a phase on a bead without running the gate.

    Example:
        interphase phase set planned --bead Clavain-a1b --reason "plan written"
    """
    if Phase.parse(phase) is None:
        valid = ", ".join(p.value for p in Phase)
        print_error(f"Unknown phase '{phase}'", reason=f"Valid phases: {valid}")
        raise typer.Exit(ExitCode.USER_ERROR)

    service = LifecycleService.from_project_dir()
    item_id = service.resolve_item_id(bead)
    if not item_id:
        print_missing_bead_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    service.set_phase(item_id, phase, reason)
    console.print(f"[green]{item_id}[/green] → {phase}", highlight=False)


@app.command()
def infer(
    bead: str | None = typer.Option(None, "--bead", "-b", help="Explicit bead id"),
    artifact: str | None = typer.Option(None, "--artifact", "-a", help="Artifact to read"),
) -> None:
    """
    Work out which bead the current run is about.

    Order: --bead, INTERPHASE_BEAD_ID, then the artifact's **Bead:** line.
    Exits 1 when no bead can be determined.
    """
    service = LifecycleService.from_project_dir()
    item_id = service.resolve_item_id(bead, artifact)
    if not item_id:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    console.print(item_id, highlight=False)
