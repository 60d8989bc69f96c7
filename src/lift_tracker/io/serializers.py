"""
Conversion between entities and their stored records.

A record is what sits in a table under the entity's id: every field except
``id``.  Converting back re-attaches the table key as ``id``.
"""

from datetime import datetime
from typing import Any

from ..core.cycle import PHASE_ORDER, is_phase_complete, with_phase
from ..core.errors import ValidationError
from ..core.models import Cycle, Lift, Log, Phase, validate_increment, validate_round


def _number(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a number, got {value!r}")
    return value


def parse_date(value: Any) -> datetime:
    """
    Parse a stored ISO 8601 timestamp.

    Timezone-aware values are converted to naive local time so all log dates
    compare with each other.

    Raises:
        ValidationError: If value is not an ISO 8601 string
    """
    if not isinstance(value, str):
        raise ValidationError(f"date must be an ISO 8601 string, got {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value}") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


# ---------------------------------------------------------------------------
# Lifts
# ---------------------------------------------------------------------------


def lift_to_record(lift: Lift) -> dict[str, Any]:
    """Convert Lift to its stored record."""
    return {
        "name": lift.name,
        "max": lift.max,
        "increment": lift.increment,
        "round": lift.round,
    }


def record_to_lift(entity_id: str, record: dict[str, Any]) -> Lift:
    """
    Convert a stored record to Lift.

    Raises:
        ValidationError: If a field is missing or out of range
    """
    return Lift(
        id=entity_id,
        name=record.get("name"),  # type: ignore[arg-type]
        max=_number(record, "max"),
        increment=validate_increment(_number(record, "increment")),  # type: ignore[arg-type]
        round=validate_round(_number(record, "round")),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


def _phase_flag(value: Any, phase: Phase) -> bool:
    """
    Read one phase flag.

    Older data stored a completion timestamp or null instead of a boolean:
    null counts as not done, a timestamp as done.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        parse_date(value)
        return True
    raise ValidationError(f"Invalid value for phase {phase.value}: {value!r}")


def cycle_to_record(cycle: Cycle) -> dict[str, Any]:
    """Convert Cycle to its stored record, keyed by phase name."""
    return {phase.value: is_phase_complete(cycle, phase) for phase in PHASE_ORDER}


def record_to_cycle(entity_id: str, record: dict[str, Any]) -> Cycle:
    """
    Convert a stored record to Cycle.

    Missing phase keys count as not done.

    Raises:
        ValidationError: If a phase value is neither bool, null nor a timestamp
    """
    cycle = Cycle(id=entity_id)
    for phase in PHASE_ORDER:
        cycle = with_phase(cycle, phase, _phase_flag(record.get(phase.value), phase))
    return cycle


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


def log_to_record(log: Log) -> dict[str, Any]:
    """Convert Log to its stored record. ``phase`` is written only when set."""
    record: dict[str, Any] = {
        "lift_id": log.lift_id,
        "date": log.date.isoformat(),
        "weight": log.weight,
        "reps": log.reps,
        "orm": log.orm,
    }
    if log.phase is not None:
        record["phase"] = log.phase.value
    return record


def record_to_log(entity_id: str, record: dict[str, Any]) -> Log:
    """
    Convert a stored record to Log.

    Raises:
        ValidationError: If a field is missing or invalid
    """
    lift_id = record.get("lift_id")
    if not isinstance(lift_id, str) or not lift_id:
        raise ValidationError(f"lift_id must be a non-empty string, got {lift_id!r}")

    reps = _number(record, "reps")
    if reps != int(reps):
        raise ValidationError(f"reps must be a whole number, got {reps}")

    raw_phase = record.get("phase")
    try:
        phase = Phase(raw_phase) if raw_phase is not None else None
    except ValueError as e:
        raise ValidationError(f"Invalid phase: {raw_phase!r}") from e

    return Log(
        id=entity_id,
        lift_id=lift_id,
        date=parse_date(record.get("date")),
        weight=_number(record, "weight"),
        reps=int(reps),
        orm=int(_number(record, "orm")),
        phase=phase,
    )


# ---------------------------------------------------------------------------
# Entity shape (record + id), as handed to JSON output
# ---------------------------------------------------------------------------


def entity_to_dict(entity: Lift | Cycle | Log) -> dict[str, Any]:
    """Convert an entity to its stored record with ``id`` injected first."""
    if isinstance(entity, Lift):
        record = lift_to_record(entity)
    elif isinstance(entity, Cycle):
        record = cycle_to_record(entity)
    elif isinstance(entity, Log):
        record = log_to_record(entity)
    else:
        raise TypeError(f"Not an entity: {entity!r}")
    return {"id": entity.id, **record}
