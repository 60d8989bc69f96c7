"""Training commands: plan, log, history, orm."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.cycle import all_complete, default_cycle, next_uncompleted
from ...core.errors import LiftTrackerError
from ...core.models import Phase, Workout, validate_set
from ...core.plan import estimate_orm, plates_to_weight, workout_for
from ...core.state import CycleSaved, LogSaved, logs_for_lift, reduce
from ...io.serializers import entity_to_dict, parse_date
from .. import views
from ..app import DataDirOption, JsonOption, app, get_repository, get_settings


def _parse_phase(raw: str) -> Phase | None:
    """Map a --phase value to a Phase; 'next' maps to None (resolved later)."""
    if raw.lower() == "next":
        return None
    try:
        return Phase(raw)
    except ValueError:
        valid = ", ".join(p.value for p in Phase)
        views.print_error(f"Phase must be one of: {valid}, next")
        raise typer.Exit(1)


def _parse_log_date(raw: str) -> datetime:
    """Accept YYYY-MM-DD or a full ISO timestamp."""
    try:
        return parse_date(raw)
    except LiftTrackerError as e:
        views.print_error(f"{e}. Expected YYYY-MM-DD or an ISO 8601 timestamp")
        raise typer.Exit(1)


@app.command()
def plan(
    lift_ref: Annotated[str, typer.Argument(help="Lift name or id")],
    workout: Annotated[
        Optional[str],
        typer.Option(
            "--workout",
            "-w",
            help="Workout to show: warmup | 5-5-5 | 3-3-3 | 5-3-1 (default: warmup + next phase)",
        ),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the weights, reps and plates for a lift's next workout.

      lift-tracker plan bench
      lift-tracker plan bench --workout 5-3-1
    """
    repo = get_repository(data_dir)
    try:
        settings = get_settings(data_dir)
        lift = repo.find_lift(lift_ref)
        state = repo.load_state()
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    cycle = state.cycle_for(lift.id) or default_cycle(lift.id)

    if workout is not None:
        names = [workout]
    elif all_complete(cycle):
        views.print_info(f"{lift.name} has finished this cycle.")
        if state.block_finished:
            views.print_info("Run 'new-cycle' to start the next block.")
        else:
            views.print_info("Pass --workout to see a specific workout anyway.")
        return
    else:
        names = [Workout.WARMUP.value, Workout.for_phase(next_uncompleted(cycle)).value]

    try:
        workouts = {name: workout_for(lift, name, settings) for name in names}
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "lift": entity_to_dict(lift),
            "bar_weight": settings.bar_weight,
            "workouts": {
                name: [
                    {"weight": m.weight, "reps": m.reps, "plates": list(m.plates)}
                    for m in movements
                ]
                for name, movements in workouts.items()
            },
        }, indent=2))
        return

    views.console.print()
    views.console.print(
        f"[bold cyan]{lift.name}[/bold cyan]  max {views.fmt_weight(lift.max)}"
        f"  [dim](bar {views.fmt_weight(settings.bar_weight)}, rounded to {views.fmt_weight(lift.round)})[/dim]"
    )
    for name, movements in workouts.items():
        percents = [spec.percent for spec in settings.template(name)]
        views.console.print(
            views.format_workout_table(name, movements, percents, settings.bar_weight)
        )

    if any(
        plates_to_weight(settings.bar_weight, m.plates) != m.weight
        for movements in workouts.values()
        for m in movements
    ):
        views.print_warning("Some weights cannot be loaded exactly with your plates; see 'Loaded'.")


@app.command("log")
def log_set(
    lift_ref: Annotated[str, typer.Argument(help="Lift name or id")],
    weight: Annotated[
        float,
        typer.Option("--weight", "-w", help="Weight lifted"),
    ],
    reps: Annotated[
        int,
        typer.Option("--reps", "-r", help="Reps performed"),
    ],
    phase: Annotated[
        Optional[str],
        typer.Option(
            "--phase",
            "-p",
            help="Mark a cycle phase done: 5-5-5 | 3-3-3 | 5-3-1 | next",
        ),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="When the set was done (YYYY-MM-DD or ISO timestamp, default: now)"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a performed set, optionally completing a cycle phase.

      lift-tracker log bench --weight 115 --reps 8 --phase next
    """
    when = _parse_log_date(date) if date is not None else None
    parsed_phase = _parse_phase(phase) if phase is not None else None

    repo = get_repository(data_dir)
    try:
        validate_set(weight, reps)
        lift = repo.find_lift(lift_ref)
        state = repo.load_state()
        if phase is not None and parsed_phase is None:
            current = state.cycle_for(lift.id) or default_cycle(lift.id)
            if all_complete(current):
                views.print_error(
                    f"{lift.name} has already finished this cycle. "
                    "Log without --phase, or run 'new-cycle'."
                )
                raise typer.Exit(1)
            parsed_phase = next_uncompleted(current)

        log, cycle = repo.log_set(lift.id, weight, reps, phase=parsed_phase, date=when)
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    state = reduce(state, LogSaved(log))
    if cycle is not None:
        state = reduce(state, CycleSaved(cycle))

    if json_out:
        print(json.dumps({
            "log": entity_to_dict(log),
            "cycle": entity_to_dict(cycle) if cycle is not None else None,
            "block_finished": state.block_finished,
        }, indent=2))
        return

    views.print_success(
        f"Logged {lift.name}: {views.fmt_weight(log.weight)} x {log.reps}"
        f"  (e1RM {log.orm})"
    )
    if log.phase is not None:
        views.print_info(f"Phase {log.phase} complete for {lift.name}.")
    if state.block_finished:
        views.print_info("Every lift has finished its cycle. Run 'new-cycle' to start the next block.")


@app.command()
def history(
    lift_ref: Annotated[
        Optional[str],
        typer.Argument(help="Only show this lift (name or id)"),
    ] = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Show only the N most recent sets"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show logged sets, newest first."""
    repo = get_repository(data_dir)
    try:
        lift_id = repo.find_lift(lift_ref).id if lift_ref is not None else None
        state = repo.load_state()
    except LiftTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    logs = logs_for_lift(state, lift_id)
    if limit is not None:
        logs = logs[:limit]

    if json_out:
        print(json.dumps([entity_to_dict(log) for log in logs], indent=2))
        return

    if not logs:
        views.print_info("No sets logged yet.")
        return

    views.print_history(state, lift_id, limit)


@app.command()
def orm(
    weight: Annotated[float, typer.Option("--weight", "-w", help="Weight lifted")],
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps performed")],
) -> None:
    """Estimate a one-rep max from a set (reps above 12 count as 12)."""
    if weight <= 0 or reps <= 0:
        views.print_error("Weight and reps must be positive")
        raise typer.Exit(1)
    views.console.print(f"Estimated 1RM: [bold]{estimate_orm(weight, reps)}[/bold]")
