"""
Test cases for the JSON snapshot store.
"""

import json
import math

import pytest

from car_cost_calculator.data.defaults import default_input
from car_cost_calculator.errors import SnapshotNotFoundError
from car_cost_calculator.models import ModelKey
from car_cost_calculator.snapshots import SnapshotStore


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "nested" / "snapshots.json")


# ── Test 1: Empty store ───────────────────────────────────────────────────────

def test_missing_file_is_empty(store):
    assert store.list_snapshots() == []
    assert not store.path.exists()


def test_corrupt_file_is_treated_as_empty(tmp_path):
    path = tmp_path / "snapshots.json"
    path.write_text("{not json", encoding="utf-8")
    store = SnapshotStore(path)
    assert store.list_snapshots() == []


def test_save_moves_corrupt_file_aside(tmp_path):
    path = tmp_path / "snapshots.json"
    path.write_text("{not json", encoding="utf-8")
    store = SnapshotStore(path)

    store.save(default_input(), name="fresh")

    assert [s.name for s in store.list_snapshots()] == ["fresh"]
    backups = list(tmp_path.glob("snapshots.json.corrupt-*"))
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == "{not json"


def test_delete_on_corrupt_file_leaves_it_alone(tmp_path):
    path = tmp_path / "snapshots.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SnapshotNotFoundError):
        SnapshotStore(path).delete("1")
    assert path.read_text(encoding="utf-8") == "{not json"


# ── Test 2: Save and reload ───────────────────────────────────────────────────

def test_save_round_trips_input(store):
    calc = default_input().with_profile_defaults(ModelKey.G01_X3_20D)
    snapshot = store.save(calc, name="X3 option", timestamp_ms=1_700_000_000_000)

    assert snapshot.id == "1700000000000"
    assert snapshot.timestamp == 1_700_000_000_000
    loaded = SnapshotStore(store.path).get(snapshot.id)
    assert loaded.name == "X3 option"
    assert loaded.data == calc


def test_file_is_a_json_list(store):
    store.save(default_input(), name="a", timestamp_ms=1)
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert set(data[0]) == {"id", "name", "timestamp", "data"}


def test_saved_copy_is_independent(store):
    calc = default_input()
    snapshot = store.save(calc)
    assert snapshot.data == calc
    assert snapshot.data is not calc


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_inputs_survive_reload(store, value):
    good = default_input()
    odd = good.model_copy(
        update={"usage": good.usage.model_copy(update={"km_per_liter": value})}
    )
    store.save(good, name="good", timestamp_ms=1)
    store.save(odd, name="odd", timestamp_ms=2)

    loaded = SnapshotStore(store.path).list_snapshots()
    assert [s.name for s in loaded] == ["good", "odd"]
    reloaded = loaded[1].data.usage.km_per_liter
    if math.isnan(value):
        assert math.isnan(reloaded)
    else:
        assert reloaded == value


# ── Test 3: Names and ids ─────────────────────────────────────────────────────

def test_blank_names_are_numbered(store):
    first = store.save(default_input(), timestamp_ms=10)
    second = store.save(default_input(), name="   ", timestamp_ms=20)
    assert first.name == "Save 1"
    assert second.name == "Save 2"


def test_same_millisecond_gets_unique_id(store):
    a = store.save(default_input(), timestamp_ms=500)
    b = store.save(default_input(), timestamp_ms=500)
    assert a.id == "500"
    assert b.id == "501"
    assert b.timestamp == 500


def test_list_keeps_save_order(store):
    for i, name in enumerate(["one", "two", "three"]):
        store.save(default_input(), name=name, timestamp_ms=1000 + i)
    assert [s.name for s in store.list_snapshots()] == ["one", "two", "three"]


# ── Test 4: Get and delete ────────────────────────────────────────────────────

def test_get_unknown_id_raises(store):
    with pytest.raises(SnapshotNotFoundError) as exc_info:
        store.get("nope")
    assert exc_info.value.snapshot_id == "nope"


def test_delete(store):
    keep = store.save(default_input(), name="keep", timestamp_ms=1)
    drop = store.save(default_input(), name="drop", timestamp_ms=2)
    store.delete(drop.id)
    assert [s.id for s in store.list_snapshots()] == [keep.id]
    with pytest.raises(SnapshotNotFoundError):
        store.delete(drop.id)
