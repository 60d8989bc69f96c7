"""
Application state as an explicit transition function.

The shell owns a single AppState and replaces it with reduce(state, action)
after every repository call.  Nothing in the core keeps state of its own.
"""

from dataclasses import dataclass, field, replace

from .cycle import cycle_finished, default_cycle
from .models import Cycle, Lift, Log


@dataclass(frozen=True)
class AppState:
    """Everything loaded from storage, keyed by entity id."""

    lifts: dict[str, Lift] = field(default_factory=dict)
    cycles: dict[str, Cycle] = field(default_factory=dict)
    logs: dict[str, Log] = field(default_factory=dict)

    @property
    def block_finished(self) -> bool:
        """
        True when every lift has completed its cycle.

        A lift with no stored cycle counts as having a fresh one, and cycles
        of lifts that no longer exist are ignored.
        """
        return cycle_finished(
            self.cycles.get(lift_id) or default_cycle(lift_id) for lift_id in self.lifts
        )

    def cycle_for(self, lift_id: str) -> Cycle | None:
        return self.cycles.get(lift_id)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Loaded:
    lifts: list[Lift]
    cycles: list[Cycle]
    logs: list[Log]


@dataclass(frozen=True)
class LiftSaved:
    lift: Lift


@dataclass(frozen=True)
class CycleSaved:
    cycle: Cycle


@dataclass(frozen=True)
class LogSaved:
    log: Log


@dataclass(frozen=True)
class CycleStarted:
    cycles: list[Cycle]
    lifts: list[Lift]


Action = Loaded | LiftSaved | CycleSaved | LogSaved | CycleStarted


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state that results from applying action to state."""
    if isinstance(action, Loaded):
        return AppState(
            lifts={lift.id: lift for lift in action.lifts},
            cycles={c.id: c for c in action.cycles},
            logs={log.id: log for log in action.logs},
        )
    if isinstance(action, LiftSaved):
        return replace(state, lifts={**state.lifts, action.lift.id: action.lift})
    if isinstance(action, CycleSaved):
        return replace(state, cycles={**state.cycles, action.cycle.id: action.cycle})
    if isinstance(action, LogSaved):
        return replace(state, logs={**state.logs, action.log.id: action.log})
    if isinstance(action, CycleStarted):
        return replace(
            state,
            lifts={**state.lifts, **{lift.id: lift for lift in action.lifts}},
            cycles={**state.cycles, **{c.id: c for c in action.cycles}},
        )
    raise TypeError(f"Unknown action: {action!r}")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def logs_for_lift(state: AppState, lift_id: str | None = None) -> list[Log]:
    """
    Logs newest first, optionally for one lift.

    Logs whose lift no longer exists are skipped.
    """
    logs = [
        log for log in state.logs.values()
        if log.lift_id in state.lifts and (lift_id is None or log.lift_id == lift_id)
    ]
    logs.sort(key=lambda log: log.date, reverse=True)
    return logs


def best_orm(state: AppState, lift_id: str) -> int | None:
    """Highest stored one-rep-max estimate for a lift, or None if never logged."""
    return max((log.orm for log in logs_for_lift(state, lift_id)), default=None)
