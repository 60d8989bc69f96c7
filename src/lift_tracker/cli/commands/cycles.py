"""Cycle commands: status, new-cycle."""

import json
from typing import Annotated

import typer

from ...core.errors import LiftTrackerError
from ...core.state import CycleStarted, reduce
from ...io.serializers import entity_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_repository


@app.command()
def status(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show which phases each lift has completed this cycle."""
    repo = get_repository(data_dir)
    try:
        state = repo.load_state()
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "cycles": [entity_to_dict(c) for c in state.cycles.values() if c.id in state.lifts],
            "block_finished": state.block_finished,
        }, indent=2))
        return

    if not state.lifts:
        views.print_info("No lifts yet. Add one with 'add-lift NAME --max WEIGHT'.")
        return

    views.print_status(state)


@app.command("new-cycle")
def new_cycle(
    increase: Annotated[
        bool,
        typer.Option("--increase/--no-increase", help="Add each lift's increment to its max"),
    ] = True,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Start even if some lifts have not finished the cycle"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Start a new training block: reset every cycle and (by default) raise maxes.
    """
    repo = get_repository(data_dir)
    try:
        state = repo.load_state()
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not state.lifts:
        views.print_error("No lifts to start a cycle for.")
        raise typer.Exit(1)

    if not state.block_finished and not force:
        views.print_error("Not every lift has finished the current cycle. Use --force to start anyway.")
        views.print_status(state)
        raise typer.Exit(1)

    if not yes:
        what = "reset all cycles and raise every max by its increment" if increase else "reset all cycles"
        if not views.confirm_action(f"This will {what}. Continue?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    try:
        cycles, lifts = repo.start_new_cycle(increase)
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    started = reduce(state, CycleStarted(cycles=cycles, lifts=lifts))

    views.print_success(f"Started a new cycle for {len(started.lifts)} lifts.")
    if increase:
        for lift in sorted(started.lifts.values(), key=lambda lift: lift.name.casefold()):
            old = state.lifts[lift.id].max
            views.console.print(
                f"  {lift.name}: {views.fmt_weight(old)} → [bold]{views.fmt_weight(lift.max)}[/bold]"
            )
    else:
        views.print_status(started)
