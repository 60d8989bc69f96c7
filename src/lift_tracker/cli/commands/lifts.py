"""Lift commands: add-lift, edit-lift, lifts."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import DEFAULT_INCREMENT, DEFAULT_ROUND
from ...core.errors import LiftTrackerError
from ...core.state import LiftSaved, reduce
from ...io.serializers import entity_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_repository


@app.command("add-lift")
def add_lift(
    name: Annotated[str, typer.Argument(help="Lift name, e.g. bench")],
    max_weight: Annotated[
        float,
        typer.Option("--max", "-m", help="Current training max"),
    ],
    increment: Annotated[
        int,
        typer.Option("--increment", "-i", help="Max increase per cycle: 5 | 10"),
    ] = DEFAULT_INCREMENT,
    round_to: Annotated[
        float,
        typer.Option("--round", "-r", help="Round prescribed weights to: 1 | 2.5 | 5"),
    ] = DEFAULT_ROUND,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Add a lift and start its cycle.

      lift-tracker add-lift bench --max 135 --increment 5 --round 5
    """
    repo = get_repository(data_dir)

    try:
        lift = repo.create_lift(name, max_weight, increment, round_to)
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(entity_to_dict(lift), indent=2))
        return

    views.print_success(f"Added {lift.name} (max {views.fmt_weight(lift.max)})")
    views.console.print(f"[dim]id: {lift.id}[/dim]")


@app.command("edit-lift")
def edit_lift(
    lift_ref: Annotated[str, typer.Argument(help="Lift name or id")],
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="New name"),
    ] = None,
    max_weight: Annotated[
        Optional[float],
        typer.Option("--max", "-m", help="New training max"),
    ] = None,
    increment: Annotated[
        Optional[int],
        typer.Option("--increment", "-i", help="Max increase per cycle: 5 | 10"),
    ] = None,
    round_to: Annotated[
        Optional[float],
        typer.Option("--round", "-r", help="Round prescribed weights to: 1 | 2.5 | 5"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Change a lift's name, max, increment or rounding."""
    changes: dict = {}
    if name is not None:
        changes["name"] = name
    if max_weight is not None:
        changes["max"] = max_weight
    if increment is not None:
        changes["increment"] = increment
    if round_to is not None:
        changes["round"] = round_to

    if not changes:
        views.print_error("Nothing to change. Pass --name, --max, --increment or --round.")
        raise typer.Exit(1)

    repo = get_repository(data_dir)
    try:
        lift = repo.find_lift(lift_ref)
        state = repo.load_state()
        updated = repo.edit_lift(lift.id, **changes)
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(entity_to_dict(updated), indent=2))
        return

    views.print_success(
        f"Updated {updated.name}: max {views.fmt_weight(updated.max)}, "
        f"+{updated.increment} per cycle, rounded to {views.fmt_weight(updated.round)}"
    )
    views.print_lifts(reduce(state, LiftSaved(updated)))


@app.command("lifts")
def list_lifts(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """List all lifts with their maxes and next phase."""
    repo = get_repository(data_dir)
    try:
        state = repo.load_state()
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([entity_to_dict(lift) for lift in state.lifts.values()], indent=2))
        return

    if not state.lifts:
        views.print_info("No lifts yet. Add one with 'add-lift NAME --max WEIGHT'.")
        return

    views.print_lifts(state)
