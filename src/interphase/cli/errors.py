"""
Standardized error handling and exit codes for the interphase CLI.
"""

from enum import IntEnum

from rich.console import Console

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for interphase CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or a gate that refused the transition."""

    USER_ERROR = 2
    """Invalid input or missing configuration (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Example:
        >>> print_error(
        ...     "No bead id",
        ...     reason="No --bead given and the artifact has no **Bead:** line",
        ...     solution="export INTERPHASE_BEAD_ID=Clavain-a1b",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_missing_bead_error() -> None:
    print_error(
        "No bead id",
        reason="No --bead given, INTERPHASE_BEAD_ID is unset, and the artifact has no **Bead:** line",
        solution="interphase ... --bead <id>",
    )
