"""
Cycle progression: which phase is next, and rolling over to a new block.

A cycle holds one completion flag per phase.  Phases are worked through in
PHASE_ORDER; once every lift's cycle is complete the training block is
finished and start_new_cycle resets the flags, optionally bumping each
lift's max by its increment.

All functions are pure and return new values.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .errors import CycleCompleteError
from .models import Cycle, Lift, Phase

PHASE_ORDER: tuple[Phase, ...] = (Phase.FIVE, Phase.THREE, Phase.ONE)


def default_cycle(lift_id: str) -> Cycle:
    """A fresh cycle for a lift with no phase completed."""
    return Cycle(id=lift_id, five=False, three=False, one=False)


def is_phase_complete(cycle: Cycle, phase: Phase) -> bool:
    """Return the completion flag for one phase."""
    if phase is Phase.FIVE:
        return cycle.five
    if phase is Phase.THREE:
        return cycle.three
    if phase is Phase.ONE:
        return cycle.one
    raise ValueError(f"Unknown phase: {phase!r}")


def with_phase(cycle: Cycle, phase: Phase, done: bool) -> Cycle:
    """Return a copy of cycle with one phase flag set to done."""
    if phase is Phase.FIVE:
        return replace(cycle, five=done)
    if phase is Phase.THREE:
        return replace(cycle, three=done)
    if phase is Phase.ONE:
        return replace(cycle, one=done)
    raise ValueError(f"Unknown phase: {phase!r}")


def all_complete(cycle: Cycle) -> bool:
    """True when every phase of the cycle has been logged."""
    return all(is_phase_complete(cycle, phase) for phase in PHASE_ORDER)


def next_uncompleted(cycle: Cycle) -> Phase:
    """
    Return the first phase, in PHASE_ORDER, that is not yet complete.

    Raises:
        CycleCompleteError: If every phase is complete; check all_complete first
    """
    for phase in PHASE_ORDER:
        if not is_phase_complete(cycle, phase):
            return phase
    raise CycleCompleteError(f"Cycle {cycle.id} has no uncompleted phase")


def cycle_finished(cycles: Iterable[Cycle]) -> bool:
    """
    True when every cycle in the collection is complete.

    An empty collection is not finished: with no lifts there is no block to
    roll over.
    """
    cycles = list(cycles)
    return bool(cycles) and all(all_complete(c) for c in cycles)


def log_phase(cycle: Cycle, phase: Phase) -> Cycle:
    """Mark one phase complete, leaving the others untouched."""
    return with_phase(cycle, phase, True)


def start_new_cycle(
    cycles: Sequence[Cycle],
    lifts: Sequence[Lift],
    increase_maxes: bool,
) -> tuple[list[Cycle], list[Lift]]:
    """
    Reset every cycle and optionally raise every lift's max by its increment.

    Args:
        cycles: All current cycles
        lifts: All current lifts
        increase_maxes: Add each lift's increment to its max

    Returns:
        (reset cycles, lifts) in the same order as given
    """
    new_cycles = [default_cycle(c.id) for c in cycles]
    if increase_maxes:
        new_lifts = [replace(lift, max=lift.max + lift.increment) for lift in lifts]
    else:
        new_lifts = list(lifts)
    return new_cycles, new_lifts


def missing_cycles(lifts: Iterable[Lift], cycles: Iterable[Cycle]) -> list[str]:
    """Return the ids of lifts that have no cycle."""
    have = {c.id for c in cycles}
    return [lift.id for lift in lifts if lift.id not in have]
