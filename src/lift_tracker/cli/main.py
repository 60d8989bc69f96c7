"""
CLI entry point using Typer.

Provides commands for tracking a percentage-based training program:
- add-lift / edit-lift / lifts: Manage lifts and their training maxes
- plan: Show the next workout with weights and plates
- log: Log a performed set, optionally completing a cycle phase
- history: Show logged sets
- status: Show cycle progress for every lift
- new-cycle: Start the next training block
- orm: Estimate a one-rep max
"""

from typing import Annotated

import typer

from . import views
from .app import app, configure_logging

# Importing the command modules registers their commands on app
from .commands import cycles, lifts, training  # noqa: F401


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Barbell training tracker. Run without a command to see cycle status.
    """
    configure_logging(verbose)

    if ctx.invoked_subcommand is not None:
        return  # A sub-command was given; let it handle things

    views.console.print()
    views.console.print("[bold cyan]lift-tracker[/bold cyan]: barbell training tracker")
    views.console.print()
    ctx.invoke(cycles.status)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
