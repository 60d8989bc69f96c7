"""
Data models for lift-tracker.

Lift, Cycle and Log are the persisted entities; MovementSpec and Movement
describe prescribed workouts.  Entities are frozen so every change goes
through dataclasses.replace and produces a new value.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from .config import CYCLE_INCREMENTS, WEIGHT_ROUNDS
from .errors import ValidationError

CycleIncrement = Literal[5, 10]
WeightRound = Literal[1, 2.5, 5]


class Phase(str, Enum):
    """The three workouts of a training cycle, lightest first."""

    FIVE = "5-5-5"
    THREE = "3-3-3"
    ONE = "5-3-1"

    def __str__(self) -> str:
        return self.value


class Workout(str, Enum):
    """Every named template, including the warmup that precedes each phase."""

    WARMUP = "warmup"
    FIVE = "5-5-5"
    THREE = "3-3-3"
    ONE = "5-3-1"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def for_phase(cls, phase: Phase) -> "Workout":
        return cls(phase.value)


def validate_increment(value: float) -> int:
    """Return *value* as a cycle increment, or raise ValidationError."""
    if isinstance(value, bool) or value not in CYCLE_INCREMENTS:
        raise ValidationError(
            f"Invalid increment: {value!r}. Must be one of {CYCLE_INCREMENTS}"
        )
    return int(value)


def validate_round(value: float) -> float:
    """Return *value* as a rounding factor, or raise ValidationError."""
    if isinstance(value, bool) or value not in WEIGHT_ROUNDS:
        raise ValidationError(
            f"Invalid round: {value!r}. Must be one of {WEIGHT_ROUNDS}"
        )
    return value


def _validate_positive(value: float, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value) or value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def validate_set(weight: float, reps: int) -> None:
    """Raise ValidationError unless weight is positive and reps a positive integer."""
    _validate_positive(weight, "weight")
    if isinstance(reps, bool) or not isinstance(reps, int) or reps <= 0:
        raise ValidationError(f"reps must be a positive integer, got {reps!r}")


@dataclass(frozen=True)
class Lift:
    """
    A user-defined trainable movement with its current training max.

    ``increment`` is added to ``max`` on cycle rollover; ``round`` is the
    granularity prescribed weights are rounded to.
    """

    id: str
    name: str
    max: float
    increment: CycleIncrement = 5
    round: WeightRound = 5

    def __post_init__(self) -> None:
        """Validate lift data."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError(f"Invalid lift name: {self.name!r}. Must be a non-empty string.")
        _validate_positive(self.max, "max")
        validate_increment(self.increment)
        validate_round(self.round)


@dataclass(frozen=True)
class Cycle:
    """
    Per-lift completion state for the current training block.

    ``id`` equals the owning lift's id.  Read and write the flags through
    core.cycle.is_phase_complete / with_phase rather than by attribute name.
    """

    id: str
    five: bool = False
    three: bool = False
    one: bool = False


@dataclass(frozen=True)
class Log:
    """
    One performed set.

    ``orm`` is the one-rep-max estimate computed when the set was logged; it
    is stored so historical estimates survive formula changes.
    """

    id: str
    lift_id: str
    date: datetime
    weight: float
    reps: int
    orm: int
    phase: Phase | None = None  # the cycle phase this set counted toward, if any

    def __post_init__(self) -> None:
        """Validate log data."""
        validate_set(self.weight, self.reps)
        if self.orm < 0:
            raise ValidationError(f"orm must be non-negative, got {self.orm}")


@dataclass(frozen=True)
class MovementSpec:
    """One template entry: a fraction of the training max for a number of reps."""

    percent: float
    reps: int

    def __post_init__(self) -> None:
        if not 0 < self.percent <= 1:
            raise ValidationError(f"percent must be in (0, 1], got {self.percent}")
        if self.reps <= 0:
            raise ValidationError(f"reps must be positive, got {self.reps}")


@dataclass(frozen=True)
class Movement:
    """
    A fully resolved set: bar weight, reps, and the plates to load.

    ``plates`` lists the plates for ONE side of the bar, largest first.
    """

    weight: float
    reps: int
    plates: tuple[float, ...] = ()
