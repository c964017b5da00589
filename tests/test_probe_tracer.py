from __future__ import annotations

import json

from quadhash.analysis.probe import (
    _json_friendly,
    collect_probe_histogram,
    format_trace_lines,
    probe_length,
    trace_get,
    trace_insert,
)
from quadhash.core.hashers import identity_int_hash
from quadhash.core.table import QuadraticHashTable, TableConfig


def _colliding_table() -> QuadraticHashTable:
    table = QuadraticHashTable(11, primary_hash=identity_int_hash)
    for key in (0, 11, 22):  # slots 0, 1, 4
        table.insert(key, f"v{key}")
    return table


def test_trace_get_found_walks_quadratic_path() -> None:
    trace = trace_get(_colliding_table(), 22)
    assert trace["operation"] == "get"
    assert trace["found"] is True
    assert trace["terminal"] == "match"
    assert trace["home_slot"] == 0
    assert [step["slot"] for step in trace["path"]] == [0, 1, 4]
    assert trace["path"][-1]["matches"] is True
    assert trace["path"][0]["matches"] is False


def test_trace_get_absent_stops_at_empty() -> None:
    trace = trace_get(_colliding_table(), 33)
    assert trace["found"] is False
    assert trace["terminal"] == "empty"
    assert [step["slot"] for step in trace["path"]] == [0, 1, 4, 9]
    assert trace["path"][-1]["state"] == "empty"


def test_trace_get_skips_tombstone() -> None:
    table = _colliding_table()
    table.remove(11)
    trace = trace_get(table, 22)
    states = [step["state"] for step in trace["path"]]
    assert states == ["occupied", "tombstone", "occupied"]
    assert trace["found"] is True


def test_trace_get_reports_exhaustion() -> None:
    table = QuadraticHashTable(
        11, primary_hash=identity_int_hash, cfg=TableConfig(max_probe_attempts=2)
    )
    table.insert(0, "a")
    table.insert(1, "b")
    trace = trace_get(table, 11)
    assert trace["terminal"] == "exhausted"
    assert len(trace["path"]) == 2


def test_trace_insert_counts_collisions() -> None:
    trace = trace_insert(_colliding_table(), 33, "v33")
    assert trace["operation"] == "insert"
    assert trace["terminal"] == "insert"
    assert trace["collisions"] == 3
    assert [step["action"] for step in trace["path"]] == ["advance", "advance", "advance", "insert"]
    assert trace["will_rehash"] is False


def test_trace_insert_reuses_tombstone() -> None:
    table = _colliding_table()
    table.remove(0)
    trace = trace_insert(table, 33, "v33")
    assert trace["terminal"] == "reuse-tombstone"
    assert trace["collisions"] == 0
    assert trace["path"][0]["action"] == "fill"


def test_trace_insert_reports_duplicate() -> None:
    trace = trace_insert(_colliding_table(), 11, "again")
    assert trace["terminal"] == "duplicate"
    assert trace["path"][-1]["matches"] is True


def test_trace_insert_flags_upcoming_rehash() -> None:
    table = QuadraticHashTable(5, primary_hash=identity_int_hash)
    table.insert(0, "a")
    table.insert(1, "b")
    trace = trace_insert(table, 2, "c")
    assert trace["will_rehash"] is True
    assert trace["capacity"] == 5


def test_tracing_does_not_mutate_table() -> None:
    table = _colliding_table()
    before = (table.dump(), table.total_insertions, table.total_collisions)
    trace_get(table, 33)
    trace_insert(table, 33, "x")
    assert (table.dump(), table.total_insertions, table.total_collisions) == before


def test_probe_length_and_histogram() -> None:
    table = _colliding_table()
    assert probe_length(table, 0) == 1
    assert probe_length(table, 22) == 3
    assert probe_length(table, 99) is None
    assert collect_probe_histogram(table) == [[1, 1], [2, 1], [3, 1]]
    assert collect_probe_histogram(QuadraticHashTable()) == []


def test_trace_is_json_serialisable() -> None:
    table = QuadraticHashTable(11)
    table.insert(("tuple", 1), object())
    trace = trace_insert(table, "k", object())
    encoded = json.loads(json.dumps(trace))
    assert encoded["value_repr"].startswith("<object")
    assert _json_friendly({"a": 1}) == {"a": 1}


def test_format_trace_lines_includes_steps_and_export() -> None:
    trace = trace_get(_colliding_table(), 22)
    lines = format_trace_lines(trace, seeds=["a=1"], export_path="/tmp/trace.json")
    assert lines[0] == "Probe visualization GET key=22"
    assert lines[1] == "Found: True | Terminal: match"
    assert "Capacity: 11 | Home slot: 0" in lines
    assert "Seed entries: a=1" in lines
    assert "  Step 2: slot=4, state=occupied, matches=true, occupant_key=22" in lines
    assert lines[-1] == "Trace JSON written to: /tmp/trace.json"


def test_format_trace_lines_handles_empty_path() -> None:
    lines = format_trace_lines({"operation": "insert", "path": []})
    assert "  (no path recorded)" in lines
    assert lines[1].startswith("Terminal: None")
