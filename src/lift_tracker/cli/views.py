"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of lifts, prescriptions and logs.
"""

from rich.console import Console
from rich.table import Table

from ..core.cycle import PHASE_ORDER, all_complete, default_cycle, is_phase_complete, next_uncompleted
from ..core.models import Cycle, Lift, Log, Movement
from ..core.plan import plates_to_weight
from ..core.state import AppState, best_orm, logs_for_lift

console = Console()


def fmt_weight(weight: float) -> str:
    """Format a weight without a trailing .0 (135, 137.5)."""
    return f"{weight:g}"


def fmt_plates(plates: tuple[float, ...] | list[float]) -> str:
    """Per-side plates as '25 + 10', or 'bar' when nothing is loaded."""
    if not plates:
        return "[dim]bar[/dim]"
    return " + ".join(fmt_weight(p) for p in plates)


def _cycle_of(state: AppState, lift: Lift) -> Cycle:
    # Lifts whose cycle write never happened show as a fresh cycle
    return state.cycle_for(lift.id) or default_cycle(lift.id)


def _next_phase_cell(cycle: Cycle) -> str:
    if all_complete(cycle):
        return "[green]done[/green]"
    return str(next_uncompleted(cycle))


def format_lifts_table(state: AppState) -> Table:
    """
    Create a Rich table of all lifts.

    Args:
        state: Loaded application state

    Returns:
        Rich Table
    """
    table = Table(title="Lifts")
    table.add_column("Name", style="bold")
    table.add_column("Max", justify="right")
    table.add_column("Increment", justify="right")
    table.add_column("Round", justify="right")
    table.add_column("Best e1RM", justify="right")
    table.add_column("Next", justify="center")
    table.add_column("ID", style="dim")

    for lift in sorted(state.lifts.values(), key=lambda lift: lift.name.casefold()):
        orm = best_orm(state, lift.id)
        table.add_row(
            lift.name,
            fmt_weight(lift.max),
            f"+{lift.increment}",
            fmt_weight(lift.round),
            str(orm) if orm is not None else "-",
            _next_phase_cell(_cycle_of(state, lift)),
            lift.id,
        )

    return table


def format_workout_table(
    title: str,
    movements: list[Movement],
    percents: list[float],
    bar_weight: float,
) -> Table:
    """
    Create a Rich table for one prescribed workout.

    A "Loaded" column appears only when some set cannot be matched exactly
    with the available plates.
    """
    inexact = any(plates_to_weight(bar_weight, m.plates) != m.weight for m in movements)

    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("%", justify="right")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("Plates / side")
    if inexact:
        table.add_column("Loaded", justify="right")

    for i, (movement, percent) in enumerate(zip(movements, percents), 1):
        row = [
            str(i),
            f"{percent * 100:g}%",
            fmt_weight(movement.weight),
            str(movement.reps),
            fmt_plates(movement.plates),
        ]
        if inexact:
            row.append(fmt_weight(plates_to_weight(bar_weight, movement.plates)))
        table.add_row(*row)

    return table


def format_status_display(state: AppState) -> Table:
    """Create a Rich table showing every lift's progress through the cycle."""
    table = Table(title="Current cycle")
    table.add_column("Lift", style="bold")
    for phase in PHASE_ORDER:
        table.add_column(str(phase), justify="center")
    table.add_column("Next", justify="center")

    for lift in sorted(state.lifts.values(), key=lambda lift: lift.name.casefold()):
        cycle = _cycle_of(state, lift)
        marks = [
            "[green]✓[/green]" if is_phase_complete(cycle, phase) else "[dim]·[/dim]"
            for phase in PHASE_ORDER
        ]
        table.add_row(lift.name, *marks, _next_phase_cell(cycle))

    return table


def format_history_table(state: AppState, lift_id: str | None = None, limit: int | None = None) -> Table:
    """
    Create a Rich table of logged sets, newest first.

    Args:
        state: Loaded application state
        lift_id: Restrict to one lift
        limit: Show at most this many rows

    Returns:
        Rich Table
    """
    logs: list[Log] = logs_for_lift(state, lift_id)
    if limit is not None:
        logs = logs[:limit]

    table = Table(title="History")
    table.add_column("Date")
    table.add_column("Lift", style="bold")
    table.add_column("Phase", justify="center")
    table.add_column("Weight", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("e1RM", justify="right", style="cyan")

    for log in logs:
        table.add_row(
            log.date.strftime("%Y-%m-%d %H:%M"),
            state.lifts[log.lift_id].name,
            str(log.phase) if log.phase else "-",
            fmt_weight(log.weight),
            str(log.reps),
            str(log.orm),
        )

    return table


def print_lifts(state: AppState) -> None:
    """Print the lifts table."""
    console.print(format_lifts_table(state))


def print_status(state: AppState) -> None:
    """Print cycle progress and, when every lift is done, the rollover hint."""
    console.print(format_status_display(state))
    if state.block_finished:
        console.print()
        print_info("Every lift has finished its cycle. Run 'new-cycle' to start the next block.")


def print_history(state: AppState, lift_id: str | None = None, limit: int | None = None) -> None:
    """Print the history table."""
    console.print(format_history_table(state, lift_id, limit))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
