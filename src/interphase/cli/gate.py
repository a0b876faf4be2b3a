"""
Interphase CLI - Gate commands.

Check and enforce phase gates, advance beads, and inspect the inputs the
gate engine decides on (tier and review staleness).
"""

import json

import typer
from rich.console import Console

from interphase.cli.errors import ExitCode, print_missing_bead_error
from interphase.core.gates import GateOutcome
from interphase.core.services import LifecycleService

app = typer.Typer(
    name="gate",
    help="Check and enforce phase gates",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def _require_bead(service: LifecycleService, bead: str | None, artifact: str | None) -> str:
    item_id = service.resolve_item_id(bead, artifact)
    if not item_id:
        print_missing_bead_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    return item_id


def _report(outcome: GateOutcome) -> None:
    if not outcome.message:
        return
    if outcome.blocked:
        err_console.print(f"[red]ERROR:[/red] {outcome.message}", highlight=False)
    else:
        err_console.print(f"[yellow]WARNING:[/yellow] {outcome.message}", highlight=False)


@app.command()
def check(
    target: str = typer.Argument(..., help="Target phase"),
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
    artifact: str | None = typer.Option(None, "--artifact", "-a", help="Artifact path"),
) -> None:
    """
    Test whether the transition to TARGET is valid, ignoring tiers.

    Exits 1 when the transition is not in the phase graph.
    """
    service = LifecycleService.from_project_dir()
    item_id = _require_bead(service, bead, artifact)
    if service.check_gate(item_id, target, artifact):
        console.print("pass")
        return
    console.print("blocked")
    raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def enforce(
    target: str = typer.Argument(..., help="Target phase"),
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
    artifact: str | None = typer.Option(None, "--artifact", "-a", help="Artifact path"),
    skip_reason: str | None = typer.Option(
        None,
        "--skip-reason",
        help="Audited override for a blocked gate (or INTERPHASE_SKIP_GATE)",
    ),
) -> None:
    """
    Run the tiered gate for a transition to TARGET.

    Hard-tier (P0/P1) beads block on an invalid transition; soft-tier
    beads warn and proceed. Exits 1 when the gate blocks.

    Examples:
        interphase gate enforce executing --bead Clavain-a1b -a docs/plans/gates.md
        interphase gate enforce shipping -b Clavain-a1b --skip-reason "hotfix"
    """
    service = LifecycleService.from_project_dir()
    item_id = service.resolve_item_id(bead, artifact)
    outcome = service.enforce_gate(item_id, target, artifact, skip_reason)
    _report(outcome)
    if outcome.blocked:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def advance(
    target: str = typer.Argument(..., help="Target phase"),
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
    artifact: str | None = typer.Option(None, "--artifact", "-a", help="Artifact path"),
    reason: str | None = typer.Option(None, "--reason", "-r", help="Why the phase changed"),
    gate: bool = typer.Option(True, "--gate/--no-gate", help="Enforce the gate first"),
    skip_reason: str | None = typer.Option(None, "--skip-reason", help="Audited gate override"),
) -> None:
    """
    Advance a bead to TARGET: tracker phase, artifact header, telemetry
    and sideband.

    The gate runs first unless --no-gate is given; a blocking gate exits 1
    without advancing.
    """
    service = LifecycleService.from_project_dir()
    item_id = _require_bead(service, bead, artifact)

    if gate:
        outcome = service.enforce_gate(item_id, target, artifact, skip_reason)
        _report(outcome)
        if outcome.blocked:
            raise typer.Exit(ExitCode.GENERAL_ERROR)

    service.advance_phase(item_id, target, reason, artifact)
    console.print(f"[green]{item_id}[/green] → {target}", highlight=False)


@app.command()
def tier(
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Show the enforcement tier for a bead (hard, soft or none).
    """
    service = LifecycleService.from_project_dir()
    item_id = _require_bead(service, bead, None)
    resolution = service.resolve_tier(item_id)

    if json_output:
        payload = {
            "bead": item_id,
            "tier": resolution.tier.value,
            "priority": resolution.priority,
            "error_class": resolution.error_class.value if resolution.error_class else None,
            "error_reason": resolution.error_reason or None,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    line = resolution.tier.value
    if resolution.failed:
        line += f" ({resolution.error_class.value}: {resolution.error_reason})"
    console.print(line, highlight=False)


@app.command()
def staleness(
    artifact: str = typer.Option(..., "--artifact", "-a", help="Reviewed artifact"),
    bead: str | None = typer.Option(None, "--bead", "-b", help="Bead id"),
) -> None:
    """
    Show whether the review covering an artifact is fresh, stale, none or unknown.
    """
    service = LifecycleService.from_project_dir()
    item_id = service.resolve_item_id(bead, artifact)
    report = service.check_staleness(item_id, artifact)

    line = report.status.value
    if report.error_class is not None:
        line += f" ({report.error_class.value}: {report.error_reason})"
    console.print(line, highlight=False)
