"""
Storage tests: blob stores, table store, serializers and the repository.

Repository tests run against MemoryBlobStore so each test can inspect the
exact blobs that were written.
"""

import json
from datetime import datetime

import pytest

from lift_tracker.core.cycle import all_complete, default_cycle
from lift_tracker.core.errors import CorruptStorageError, NotFoundError, ValidationError
from lift_tracker.core.models import Cycle, Lift, Phase
from lift_tracker.io.blob_store import DirectoryBlobStore, MemoryBlobStore
from lift_tracker.io.repository import EntityKind, Repository
from lift_tracker.io.serializers import (
    cycle_to_record,
    entity_to_dict,
    lift_to_record,
    record_to_cycle,
    record_to_lift,
    record_to_log,
)
from lift_tracker.io.table_store import TableStore


class CountingBlobStore(MemoryBlobStore):
    """MemoryBlobStore that records every write."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes: list[str] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append(key)
        super().set(key, value)


@pytest.fixture
def blobs():
    return CountingBlobStore()


@pytest.fixture
def repo(blobs):
    return Repository.from_blobs(blobs)


# =============================================================================
# BLOB STORES
# =============================================================================


class TestDirectoryBlobStore:

    def test_missing_key_returns_none(self, tmp_path):
        assert DirectoryBlobStore(tmp_path).get("lifts") is None

    def test_set_then_get(self, tmp_path):
        store = DirectoryBlobStore(tmp_path / "data")
        store.set("lifts", '{"a": {}}')

        assert store.get("lifts") == '{"a": {}}'
        assert (tmp_path / "data" / "lifts.json").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        store = DirectoryBlobStore(tmp_path)
        store.set("lifts", "{}")
        store.set("lifts", '{"b": {}}')

        assert store.get("lifts") == '{"b": {}}'
        assert [p.name for p in tmp_path.iterdir()] == ["lifts.json"]

    @pytest.mark.parametrize("key", ["", "../lifts", "a/b", "lifts table"])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        with pytest.raises(ValueError):
            DirectoryBlobStore(tmp_path).set(key, "{}")


# =============================================================================
# TABLE STORE
# =============================================================================


class TestTableStore:

    def test_absent_table_loads_empty(self, blobs):
        assert TableStore(blobs).load("lifts") == {}

    def test_save_then_load(self, blobs):
        tables = TableStore(blobs)
        table = {"a": {"name": "bench", "max": 135, "increment": 5, "round": 5}}
        tables.save("lifts", table)

        assert tables.load("lifts") == table

    def test_save_is_one_write(self, blobs):
        TableStore(blobs).save("lifts", {"a": {}, "b": {}, "c": {}})
        assert blobs.writes == ["lifts"]

    def test_invalid_json_is_corrupt(self):
        tables = TableStore(MemoryBlobStore({"lifts": "{not json"}))
        with pytest.raises(CorruptStorageError) as exc_info:
            tables.load("lifts")
        assert exc_info.value.table == "lifts"

    def test_undecodable_file_is_corrupt(self, tmp_path):
        (tmp_path / "lifts.json").write_bytes(b"\xff\xfe{}")
        with pytest.raises(CorruptStorageError) as exc_info:
            TableStore(DirectoryBlobStore(tmp_path)).load("lifts")
        assert exc_info.value.table == "lifts"

    @pytest.mark.parametrize("raw", ["[]", "null", "42", '"lifts"', '{"a": 1}'])
    def test_wrong_shape_is_corrupt(self, raw):
        with pytest.raises(CorruptStorageError):
            TableStore(MemoryBlobStore({"lifts": raw})).load("lifts")


# =============================================================================
# SERIALIZERS
# =============================================================================


class TestSerializers:

    def test_lift_record_has_no_id(self):
        lift = Lift(id="abc", name="bench", max=135, increment=5, round=2.5)
        assert lift_to_record(lift) == {"name": "bench", "max": 135, "increment": 5, "round": 2.5}
        assert record_to_lift("abc", lift_to_record(lift)) == lift

    def test_entity_dict_injects_id(self):
        lift = Lift(id="abc", name="bench", max=135)
        assert entity_to_dict(lift) == {"id": "abc", "name": "bench", "max": 135, "increment": 5, "round": 5}

    def test_cycle_record_keyed_by_phase_name(self):
        cycle = Cycle(id="abc", five=True, three=False, one=False)
        assert cycle_to_record(cycle) == {"5-5-5": True, "3-3-3": False, "5-3-1": False}
        assert record_to_cycle("abc", cycle_to_record(cycle)) == cycle

    def test_legacy_timestamp_cycle_is_migrated(self):
        record = {"5-5-5": "2019-03-01T10:00:00.000Z", "3-3-3": None, "5-3-1": None}
        cycle = record_to_cycle("abc", record)

        assert cycle == Cycle(id="abc", five=True, three=False, one=False)
        assert cycle_to_record(cycle) == {"5-5-5": True, "3-3-3": False, "5-3-1": False}

    def test_missing_phase_keys_count_as_not_done(self):
        assert record_to_cycle("abc", {}) == default_cycle("abc")

    def test_cycle_rejects_numbers(self):
        with pytest.raises(ValidationError):
            record_to_cycle("abc", {"5-5-5": 1})

    def test_lift_rejects_out_of_domain_increment(self):
        with pytest.raises(ValidationError):
            record_to_lift("abc", {"name": "bench", "max": 135, "increment": 7, "round": 5})

    def test_log_round_trip(self):
        record = {
            "lift_id": "abc",
            "date": "2024-02-03T18:30:00",
            "weight": 115,
            "reps": 5,
            "orm": 134,
            "phase": "5-5-5",
        }
        log = record_to_log("l1", record)

        assert log.date == datetime(2024, 2, 3, 18, 30)
        assert log.phase is Phase.FIVE
        assert entity_to_dict(log) == {"id": "l1", **record}

    def test_log_without_phase_omits_key(self):
        log = record_to_log(
            "l1", {"lift_id": "abc", "date": "2024-02-03", "weight": 100, "reps": 3, "orm": 110}
        )
        assert log.phase is None
        assert "phase" not in entity_to_dict(log)

    @pytest.mark.parametrize(
        "change",
        [{"date": "yesterday"}, {"reps": 2.5}, {"weight": True}, {"phase": "10-10-10"}, {"lift_id": ""}],
    )
    def test_log_rejects_bad_fields(self, change):
        record = {"lift_id": "abc", "date": "2024-02-03", "weight": 100, "reps": 3, "orm": 110}
        with pytest.raises(ValidationError):
            record_to_log("l1", {**record, **change})


# =============================================================================
# REPOSITORY
# =============================================================================


class TestRepositoryCrud:

    def test_create_then_query_round_trip(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)

        assert repo.query_all(EntityKind.LIFT) == [lift]
        assert lift.id
        assert lift.name == "bench"

    def test_ids_are_unique(self, repo):
        ids = {repo.create_lift(f"lift{i}", 100, 5, 5).id for i in range(20)}
        assert len(ids) == 20

    def test_create_lift_creates_paired_cycle(self, repo, blobs):
        lift = repo.create_lift("squat", 225, 10, 5)

        assert repo.query_all(EntityKind.CYCLE) == [default_cycle(lift.id)]
        assert blobs.writes == ["lifts", "cycles"]

    def test_stored_layout(self, repo, blobs):
        lift = repo.create_lift("bench", 135, 5, 2.5)

        assert json.loads(blobs.get("lifts")) == {
            lift.id: {"name": "bench", "max": 135, "increment": 5, "round": 2.5}
        }
        assert json.loads(blobs.get("cycles")) == {
            lift.id: {"5-5-5": False, "3-3-3": False, "5-3-1": False}
        }

    def test_invalid_input_writes_nothing(self, repo, blobs):
        with pytest.raises(ValidationError):
            repo.create_lift("bench", 135, 7, 5)
        with pytest.raises(ValidationError):
            repo.create_lift("", 135, 5, 5)
        with pytest.raises(ValidationError):
            repo.create_lift("bench", 135, 5, 3)

        assert blobs.writes == []

    def test_create_rejects_unknown_fields(self, repo):
        with pytest.raises(ValidationError):
            repo.create(EntityKind.LIFT, {"name": "bench", "max": 135, "colour": "red"})
        with pytest.raises(ValidationError):
            repo.create(EntityKind.LIFT, {"id": "mine", "name": "bench", "max": 135})

    def test_get_missing_raises_not_found(self, repo):
        with pytest.raises(NotFoundError):
            repo.get(EntityKind.LIFT, "nope")

    def test_update_missing_raises_not_found(self, repo, blobs):
        with pytest.raises(NotFoundError):
            repo.update(EntityKind.LIFT, Lift(id="nope", name="bench", max=135))
        assert blobs.writes == []

    def test_update_overwrites(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)
        repo.update(EntityKind.LIFT, Lift(id=lift.id, name="bench", max=140))

        assert repo.get(EntityKind.LIFT, lift.id).max == 140

    def test_edit_lift(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)
        updated = repo.edit_lift(lift.id, name=" Bench Press ", round=2.5)

        assert updated.name == "Bench Press"
        assert updated.round == 2.5
        assert updated.max == 135
        assert repo.get(EntityKind.LIFT, lift.id) == updated

    def test_edit_lift_rejects_invalid_values(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)
        with pytest.raises(ValidationError):
            repo.edit_lift(lift.id, increment=3)
        with pytest.raises(ValidationError):
            repo.edit_lift(lift.id, id="other")
        assert repo.get(EntityKind.LIFT, lift.id) == lift

    def test_find_lift_by_id_or_name(self, repo):
        bench = repo.create_lift("Bench", 135, 5, 5)
        repo.create_lift("Squat", 225, 10, 5)

        assert repo.find_lift(bench.id) == bench
        assert repo.find_lift("bench") == bench
        assert repo.find_lift(" BENCH ") == bench
        with pytest.raises(NotFoundError):
            repo.find_lift("deadlift")

    def test_find_lift_ambiguous_name(self, repo):
        repo.create_lift("press", 95, 5, 5)
        repo.create_lift("Press", 100, 5, 5)
        with pytest.raises(ValidationError):
            repo.find_lift("press")


class TestRepositoryCorruption:

    def test_corrupt_table_is_not_replaced(self, blobs):
        blobs.set("lifts", "{broken")
        blobs.writes.clear()
        repo = Repository.from_blobs(blobs)

        with pytest.raises(CorruptStorageError):
            repo.query_all(EntityKind.LIFT)
        with pytest.raises(CorruptStorageError):
            repo.create_lift("bench", 135, 5, 5)

        assert blobs.get("lifts") == "{broken"
        assert blobs.writes == []

    def test_invalid_stored_record_is_corrupt(self, blobs):
        blobs.set("lifts", json.dumps({"a": {"name": "bench", "max": 135, "increment": 7, "round": 5}}))
        with pytest.raises(CorruptStorageError):
            Repository.from_blobs(blobs).query_all(EntityKind.LIFT)


class TestLogSet:

    def test_log_without_phase_leaves_cycle(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)
        log, cycle = repo.log_set(lift.id, 115, 5, date=datetime(2024, 3, 1, 18, 0))

        assert cycle is None
        assert log.lift_id == lift.id
        assert log.orm == 134  # 115 × 35/30 = 134.17
        assert repo.get(EntityKind.CYCLE, lift.id) == default_cycle(lift.id)

    def test_log_with_phase_marks_cycle(self, repo, blobs):
        lift = repo.create_lift("bench", 135, 5, 5)
        blobs.writes.clear()

        log, cycle = repo.log_set(lift.id, 115, 5, phase=Phase.FIVE)

        assert log.phase is Phase.FIVE
        assert cycle == Cycle(id=lift.id, five=True)
        assert repo.get(EntityKind.CYCLE, lift.id) == cycle
        # Log first, then cycle
        assert blobs.writes == ["logs", "cycles"]

    def test_missing_cycle_is_created_on_demand(self, repo):
        # A lift whose cycle write never happened
        lift = repo.create(EntityKind.LIFT, {"name": "bench", "max": 135, "increment": 5, "round": 5})
        with pytest.raises(NotFoundError):
            repo.get(EntityKind.CYCLE, lift.id)

        _, cycle = repo.log_set(lift.id, 115, 5, phase=Phase.THREE)

        assert cycle == Cycle(id=lift.id, three=True)
        assert repo.get(EntityKind.CYCLE, lift.id) == cycle

    def test_unknown_lift(self, repo):
        with pytest.raises(NotFoundError):
            repo.log_set("nope", 100, 5)

    @pytest.mark.parametrize("weight,reps", [(0, 5), (-5, 5), (100, 0), (100, 2.5)])
    def test_invalid_set_writes_nothing(self, repo, blobs, weight, reps):
        lift = repo.create_lift("bench", 135, 5, 5)
        blobs.writes.clear()

        with pytest.raises(ValidationError):
            repo.log_set(lift.id, weight, reps, phase=Phase.FIVE)
        assert blobs.writes == []

    def test_logs_are_persisted_with_date(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)
        when = datetime(2024, 3, 1, 18, 0)
        log, _ = repo.log_set(lift.id, 100, 3, date=when)

        assert repo.query_all(EntityKind.LOG) == [log]
        assert repo.get(EntityKind.LOG, log.id).date == when


class TestStartNewCycle:

    def _finish(self, repo, lift_id):
        for phase in Phase:
            repo.log_set(lift_id, 100, 5, phase=phase)

    def test_resets_cycles_and_increases_maxes(self, repo):
        bench = repo.create_lift("bench", 135, 5, 5)
        squat = repo.create_lift("squat", 225, 10, 5)
        self._finish(repo, bench.id)
        self._finish(repo, squat.id)
        assert repo.load_state().block_finished

        cycles, lifts = repo.start_new_cycle(True)

        assert all(not all_complete(c) for c in cycles)
        assert {lift.name: lift.max for lift in repo.query_all(EntityKind.LIFT)} == {
            "bench": 140,
            "squat": 235,
        }
        assert all(not all_complete(c) for c in repo.query_all(EntityKind.CYCLE))

    def test_without_increase_keeps_maxes(self, repo):
        bench = repo.create_lift("bench", 135, 5, 5)
        self._finish(repo, bench.id)

        repo.start_new_cycle(False)

        assert repo.get(EntityKind.LIFT, bench.id).max == 135
        assert repo.get(EntityKind.CYCLE, bench.id) == default_cycle(bench.id)

    def test_repairs_missing_cycles(self, repo):
        lift = repo.create(EntityKind.LIFT, {"name": "bench", "max": 135, "increment": 5, "round": 5})

        cycles, _ = repo.start_new_cycle(True)

        assert cycles == [default_cycle(lift.id)]
        assert repo.get(EntityKind.LIFT, lift.id).max == 140


class TestLoadState:

    def test_loads_all_tables(self, repo):
        lift = repo.create_lift("bench", 135, 5, 5)
        log, _ = repo.log_set(lift.id, 100, 5, phase=Phase.FIVE)

        state = repo.load_state()

        assert state.lifts == {lift.id: lift}
        assert state.cycles[lift.id].five is True
        assert state.logs == {log.id: log}

    def test_lift_missing_cycle_keeps_block_open(self, repo):
        bench = repo.create_lift("bench", 135, 5, 5)
        for phase in Phase:
            repo.log_set(bench.id, 100, 5, phase=phase)
        # A lift whose cycle write never happened
        repo.create(EntityKind.LIFT, {"name": "squat", "max": 225, "increment": 10, "round": 5})

        assert not repo.load_state().block_finished

    def test_orphan_logs_are_tolerated(self, blobs):
        blobs.set("logs", json.dumps({
            "l1": {"lift_id": "gone", "date": "2024-01-01T10:00:00", "weight": 100, "reps": 5, "orm": 117},
        }))
        state = Repository.from_blobs(blobs).load_state()

        assert "l1" in state.logs
        assert state.lifts == {}

    def test_directory_backed_repository(self, tmp_path):
        repo = Repository.open(tmp_path)
        lift = repo.create_lift("bench", 135, 5, 5)

        reopened = Repository.open(tmp_path)
        assert reopened.load_state().lifts == {lift.id: lift}
        assert (tmp_path / "lifts.json").exists()
        assert (tmp_path / "cycles.json").exists()
