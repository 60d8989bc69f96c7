"""
Workout prescription: percentages of a training max → loaded barbell sets.

Pure functions only; nothing here touches storage.

Rounding
--------
  round_to_factor(w, f) = floor((w + f/2) / f) × f      (half-up, never banker's)

Plates
------
Plates are loaded in pairs, so a plate "fits" when twice its weight is no
more than the weight still to be added.  calc_plates is greedy: it keeps
taking the largest plate that fits and discards plates that no longer do.
Results are per-side and largest first.

One-rep-max estimate (Epley, reps capped)
-----------------------------------------
  orm = round_half_up(weight × (1 + min(reps, 12) / 30))
"""

import math
from collections.abc import Sequence

from .config import ORM_DIVISOR, ORM_REP_CAP
from .models import Lift, Movement, MovementSpec, Workout
from .settings import Settings


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def round_to_factor(weight: float, factor: float) -> float:
    """
    Round weight to the nearest multiple of factor, halves rounding up.

    Args:
        weight: Raw weight
        factor: Rounding granularity (e.g. 1, 2.5, 5)

    Returns:
        Nearest multiple of factor
    """
    return math.floor((weight + factor / 2) / factor) * factor


def calc_plates(plates: Sequence[float], remaining: float) -> list[float]:
    """
    Greedy per-side plate decomposition.

    Args:
        plates: Available plate weights, sorted largest first
        remaining: Weight to add to the bar (both sides together)

    Returns:
        Plates for one side, largest first.  Twice their sum never exceeds
        remaining; any shortfall is smaller than twice the smallest plate.
    """
    available = list(plates)
    per_side: list[float] = []

    while available and remaining > 0:
        largest = available[0]
        if largest * 2 > remaining:
            available.pop(0)
            continue
        per_side.append(largest)
        remaining -= largest * 2

    return per_side


def plates_to_weight(bar_weight: float, plates: Sequence[float]) -> float:
    """Total weight of a bar loaded with the given per-side plates."""
    return bar_weight + 2 * sum(plates)


def apply_template(
    max_weight: float,
    bar_weight: float,
    plates: Sequence[float],
    round_factor: float,
    template: Sequence[MovementSpec],
) -> list[Movement]:
    """
    Resolve a workout template against a training max.

    Each set's weight is its percentage of the max rounded to round_factor,
    but never less than the empty bar.

    Args:
        max_weight: Training max
        bar_weight: Empty bar weight
        plates: Available plates, largest first
        round_factor: Rounding granularity for the lift
        template: Ordered (percent, reps) entries

    Returns:
        One Movement per template entry, in template order
    """
    movements: list[Movement] = []
    for spec in template:
        target = round_to_factor(spec.percent * max_weight, round_factor)
        weight = max(target, bar_weight)
        movements.append(
            Movement(
                weight=weight,
                reps=spec.reps,
                plates=tuple(calc_plates(plates, weight - bar_weight)),
            )
        )
    return movements


def workout_for(lift: Lift, workout: Workout | str, settings: Settings) -> list[Movement]:
    """Prescribe a named workout for a lift using the configured bar and plates."""
    return apply_template(
        lift.max,
        settings.bar_weight,
        settings.plates,
        lift.round,
        settings.template(workout),
    )


def estimate_orm(weight: float, reps: int) -> int:
    """
    Estimate a one-rep max from a performed set.

    Reps above ORM_REP_CAP count as ORM_REP_CAP.

    Args:
        weight: Weight lifted
        reps: Reps performed

    Returns:
        Estimated one-rep max, rounded half-up to a whole number
    """
    capped = min(reps, ORM_REP_CAP)
    return round_half_up(weight * (ORM_DIVISOR + capped) / ORM_DIVISOR)
