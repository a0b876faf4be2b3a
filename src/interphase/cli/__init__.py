"""
Interphase CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer
from rich.console import Console

from interphase import __version__
from interphase.cli import claim, discover, gate, phase
from interphase.core.config.env import load_layered_env

PANEL_LIFECYCLE = "Phases and Gates"
PANEL_WORK = "Find and Claim Work"

app = typer.Typer(
    name="interphase",
    help="Phase tracking, gates and work discovery for beads",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Interphase - lifecycle phases and gates for beads.

    Common Workflows:
        interphase discover scan               # What to work on next
        interphase gate enforce executing -b Clavain-a1b -a docs/plans/x.md
        interphase gate advance executing -b Clavain-a1b -r "plan approved"
        interphase claim take Clavain-a1b      # Claim for this session
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    ctx.obj = {"debug": debug}


app.add_typer(phase.app, name="phase", rich_help_panel=PANEL_LIFECYCLE)
app.add_typer(gate.app, name="gate", rich_help_panel=PANEL_LIFECYCLE)
app.add_typer(discover.app, name="discover", rich_help_panel=PANEL_WORK)
app.add_typer(claim.app, name="claim", rich_help_panel=PANEL_WORK)


@app.command()
def version() -> None:
    """Show interphase version and exit."""
    console.print(f"interphase version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()
