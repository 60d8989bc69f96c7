"""
Typed CRUD over the lifts, cycles and logs tables.

The repository is the only code that turns records into entities and back.
Composite operations (creating a lift with its cycle, logging a set against
a phase, rolling over a training block) are sequences of single-table
writes, not transactions: a crash part-way leaves each entity whole but the
entities out of step.  Read paths tolerate that; a missing cycle is created
when it is next needed.
"""

import logging
import os
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from ..core import cycle as cycle_engine
from ..core.config import CYCLES_TABLE, DATA_DIR_ENV, DEFAULT_DATA_DIR, LIFTS_TABLE, LOGS_TABLE
from ..core.errors import CorruptStorageError, NotFoundError, ValidationError
from ..core.models import Cycle, Lift, Log, Phase, validate_set
from ..core.plan import estimate_orm
from ..core.state import AppState, Loaded, reduce
from .blob_store import BlobStore, DirectoryBlobStore
from .serializers import (
    cycle_to_record,
    lift_to_record,
    log_to_record,
    record_to_cycle,
    record_to_lift,
    record_to_log,
)
from .table_store import Table, TableStore

logger = logging.getLogger(__name__)

Entity = Lift | Cycle | Log


class EntityKind(str, Enum):
    """The stored entity kinds; the value is the table name."""

    LIFT = LIFTS_TABLE
    CYCLE = CYCLES_TABLE
    LOG = LOGS_TABLE


@dataclass(frozen=True)
class _Codec:
    entity_type: type
    to_record: Callable[[Any], dict[str, Any]]
    from_record: Callable[[str, dict[str, Any]], Any]


_CODECS: dict[EntityKind, _Codec] = {
    EntityKind.LIFT: _Codec(Lift, lift_to_record, record_to_lift),
    EntityKind.CYCLE: _Codec(Cycle, cycle_to_record, record_to_cycle),
    EntityKind.LOG: _Codec(Log, log_to_record, record_to_log),
}


def new_id() -> str:
    """
    Generate a fresh entity id.

    Random uuid4; a collision is not checked for beyond refusing to overwrite
    an existing key.
    """
    return str(uuid.uuid4())


class Repository:
    """Entity-level access to the three tables of a TableStore."""

    def __init__(self, tables: TableStore):
        self.tables = tables

    @classmethod
    def open(cls, data_dir: str | Path) -> "Repository":
        """Repository backed by JSON files in data_dir."""
        return cls(TableStore(DirectoryBlobStore(data_dir)))

    @classmethod
    def from_blobs(cls, blobs: BlobStore) -> "Repository":
        return cls(TableStore(blobs))

    # ── Generic CRUD ────────────────────────────────────────────────────────

    def _load(self, kind: EntityKind) -> Table:
        return self.tables.load(kind.value)

    def _to_entity(self, kind: EntityKind, entity_id: str, record: dict[str, Any]) -> Any:
        try:
            return _CODECS[kind].from_record(entity_id, record)
        except ValidationError as e:
            raise CorruptStorageError(kind.value, f"record {entity_id!r}: {e}") from e

    def query_all(self, kind: EntityKind) -> list[Any]:
        """
        Load every entity of a kind.

        Order follows the stored table and is not meaningful.

        Raises:
            CorruptStorageError: If the table or one of its records is unreadable
        """
        table = self._load(kind)
        return [self._to_entity(kind, entity_id, record) for entity_id, record in table.items()]

    def get(self, kind: EntityKind, entity_id: str) -> Any:
        """
        Load one entity by id.

        Raises:
            NotFoundError: If no entity has that id
        """
        table = self._load(kind)
        if entity_id not in table:
            raise NotFoundError(kind.value, entity_id)
        return self._to_entity(kind, entity_id, table[entity_id])

    def create(self, kind: EntityKind, fields: dict[str, Any], entity_id: str | None = None) -> Any:
        """
        Create and persist a new entity.

        Args:
            kind: Entity kind
            fields: Entity fields other than id
            entity_id: Explicit id (cycles use their lift's id); a fresh one
                is generated when omitted

        Returns:
            The stored entity, including its id

        Raises:
            ValidationError: If fields are invalid or the id is already taken
        """
        codec = _CODECS[kind]
        if "id" in fields:
            raise ValidationError("id is assigned by the repository, not passed in fields")
        if entity_id is None:
            entity_id = new_id()

        try:
            entity = codec.entity_type(id=entity_id, **fields)
        except TypeError as e:
            raise ValidationError(f"Invalid {kind.value} fields: {e}") from e

        table = self._load(kind)
        if entity_id in table:
            raise ValidationError(f"{kind.value} id {entity_id!r} already exists")
        table[entity_id] = codec.to_record(entity)
        self.tables.save(kind.value, table)

        logger.info("Created %s %s", kind.value, entity_id)
        return entity

    def update(self, kind: EntityKind, entity: Entity) -> Any:
        """
        Overwrite an existing entity.

        Raises:
            NotFoundError: If the entity's id is not stored; updating an
                unknown id is a programming error
        """
        codec = _CODECS[kind]
        if not isinstance(entity, codec.entity_type):
            raise TypeError(f"Expected {codec.entity_type.__name__}, got {type(entity).__name__}")

        table = self._load(kind)
        if entity.id not in table:
            raise NotFoundError(kind.value, entity.id)
        table[entity.id] = codec.to_record(entity)
        self.tables.save(kind.value, table)

        logger.debug("Updated %s %s", kind.value, entity.id)
        return entity

    # ── Lifts ───────────────────────────────────────────────────────────────

    def create_lift(self, name: str, max: float, increment: int, round: float) -> Lift:
        """
        Create a lift and its cycle.

        The cycle is written after the lift; if that second write never
        happens the cycle is created later by ensure_cycle.
        """
        lift = self.create(
            EntityKind.LIFT,
            {"name": name.strip(), "max": max, "increment": increment, "round": round},
        )
        self.create_cycle(lift.id)
        return lift

    def edit_lift(self, lift_id: str, **changes: Any) -> Lift:
        """
        Change a lift's name, max, increment or round.

        Raises:
            NotFoundError: If the lift does not exist
            ValidationError: If a change is invalid or names another field
        """
        allowed = {"name", "max", "increment", "round"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Cannot edit lift fields: {sorted(unknown)}")

        lift: Lift = self.get(EntityKind.LIFT, lift_id)
        if isinstance(changes.get("name"), str):
            changes["name"] = changes["name"].strip()
        updated = replace(lift, **changes)
        return self.update(EntityKind.LIFT, updated)

    def find_lift(self, ref: str) -> Lift:
        """
        Look up a lift by id or by case-insensitive name.

        Raises:
            NotFoundError: If nothing matches
            ValidationError: If the name matches more than one lift
        """
        lifts: list[Lift] = self.query_all(EntityKind.LIFT)
        for lift in lifts:
            if lift.id == ref:
                return lift

        matches = [lift for lift in lifts if lift.name.casefold() == ref.strip().casefold()]
        if not matches:
            raise NotFoundError(LIFTS_TABLE, ref)
        if len(matches) > 1:
            raise ValidationError(f"More than one lift is named {ref!r}; use its id")
        return matches[0]

    # ── Cycles ──────────────────────────────────────────────────────────────

    def create_cycle(self, lift_id: str) -> Cycle:
        """Create the default cycle for a lift."""
        return self.create(EntityKind.CYCLE, {}, entity_id=lift_id)

    def ensure_cycle(self, lift_id: str) -> Cycle:
        """Return the lift's cycle, creating a default one if it is missing."""
        try:
            return self.get(EntityKind.CYCLE, lift_id)
        except NotFoundError:
            logger.warning("Lift %s has no cycle; creating one", lift_id)
            return self.create_cycle(lift_id)

    # ── Logs ────────────────────────────────────────────────────────────────

    def log_set(
        self,
        lift_id: str,
        weight: float,
        reps: int,
        phase: Phase | None = None,
        date: datetime | None = None,
    ) -> tuple[Log, Cycle | None]:
        """
        Record a performed set and, when it completes a phase, mark the phase.

        The log is written first, then the cycle.

        Args:
            lift_id: Lift the set was performed for
            weight: Weight lifted
            reps: Reps performed
            phase: Cycle phase this set completes, if any
            date: When the set was performed (default: now)

        Returns:
            (stored log, updated cycle or None when no phase was given)

        Raises:
            NotFoundError: If the lift does not exist
            ValidationError: If weight or reps are invalid
        """
        self.get(EntityKind.LIFT, lift_id)
        validate_set(weight, reps)

        log: Log = self.create(
            EntityKind.LOG,
            {
                "lift_id": lift_id,
                "date": date or datetime.now(),
                "weight": weight,
                "reps": reps,
                "orm": estimate_orm(weight, reps),
                "phase": phase,
            },
        )

        if phase is None:
            return log, None

        current = self.ensure_cycle(lift_id)
        updated = self.update(EntityKind.CYCLE, cycle_engine.log_phase(current, phase))
        return log, updated

    # ── Training blocks ─────────────────────────────────────────────────────

    def start_new_cycle(self, increase_maxes: bool) -> tuple[list[Cycle], list[Lift]]:
        """
        Reset every lift's cycle, optionally raising each max by its increment.

        Each cycle and lift is written separately; a crash part-way leaves
        some lifts rolled over and others not.

        Returns:
            (reset cycles, lifts after the transition)
        """
        lifts: list[Lift] = self.query_all(EntityKind.LIFT)
        cycles = [self.ensure_cycle(lift.id) for lift in lifts]

        new_cycles, new_lifts = cycle_engine.start_new_cycle(cycles, lifts, increase_maxes)

        for c in new_cycles:
            self.update(EntityKind.CYCLE, c)
        if increase_maxes:
            for lift in new_lifts:
                self.update(EntityKind.LIFT, lift)

        logger.info(
            "Started new cycle for %d lifts (maxes %s)",
            len(new_lifts),
            "increased" if increase_maxes else "unchanged",
        )
        return new_cycles, new_lifts

    # ── Startup ─────────────────────────────────────────────────────────────

    def load_state(self) -> AppState:
        """
        Load every table into an AppState.

        Orphans are reported, not repaired: logs for unknown lifts stay
        stored but are skipped by state queries, and lifts without a cycle
        get one the next time a phase is logged.
        """
        lifts: list[Lift] = self.query_all(EntityKind.LIFT)
        cycles: list[Cycle] = self.query_all(EntityKind.CYCLE)
        logs: list[Log] = self.query_all(EntityKind.LOG)

        for lift_id in cycle_engine.missing_cycles(lifts, cycles):
            logger.warning("Lift %s has no cycle", lift_id)
        lift_ids = {lift.id for lift in lifts}
        orphans = [log.id for log in logs if log.lift_id not in lift_ids]
        if orphans:
            logger.warning("%d logs reference missing lifts", len(orphans))

        return reduce(AppState(), Loaded(lifts=lifts, cycles=cycles, logs=logs))


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    ``$LIFT_TRACKER_DIR`` when set, otherwise ``~/.lift-tracker``.

    Returns:
        Default data directory path
    """
    env = os.environ.get(DATA_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return DEFAULT_DATA_DIR
