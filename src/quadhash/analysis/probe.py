"""Probe-path tracing utilities for the quadratic-probing table."""

from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from quadhash.core.table import QuadraticHashTable, SlotState, _Entry, slot_state

ProbeTrace = Dict[str, Any]


def _json_friendly(value: Any) -> Any:
    """Return a JSON-serialisable representation of ``value``."""

    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)


def _describe_slot(table: QuadraticHashTable, idx: int, key: Any, attempt: int) -> Dict[str, Any]:
    slot = table._table[idx]  # pylint: disable=protected-access
    state = slot_state(slot)
    step: Dict[str, Any] = {"step": attempt, "slot": idx, "state": state.value}
    if isinstance(slot, _Entry):
        step.update(
            {
                "occupant_key": repr(slot.key),
                "occupant_value": repr(slot.value),
                "matches": slot.key == key,
            }
        )
    return step


def trace_get(table: QuadraticHashTable, key: Any) -> ProbeTrace:
    """Replay the key-search probe for ``key`` without touching the table."""

    strategy = table.strategy
    limit = table.cfg.max_probe_attempts
    path: List[Dict[str, Any]] = []
    found = False
    terminal = "exhausted"
    for attempt in range(limit):
        idx = strategy.probe(key, attempt)
        step = _describe_slot(table, idx, key, attempt)
        path.append(step)
        if step["state"] == SlotState.EMPTY.value:
            terminal = "empty"
            break
        if step.get("matches"):
            terminal = "match"
            found = True
            break
    return {
        "operation": "get",
        "key_repr": repr(key),
        "found": found,
        "terminal": terminal,
        "capacity": table.capacity,
        "home_slot": strategy.home(key),
        "path": path,
    }


def trace_insert(table: QuadraticHashTable, key: Any, value: Any) -> ProbeTrace:
    """Replay the free-slot probe an insert of ``key`` would run.

    A key that is already live reports ``terminal="duplicate"`` with the search
    path that found it. ``will_rehash`` tells whether the insert would push the
    table over its load-factor ceiling.
    """

    search = trace_get(table, key)
    base: ProbeTrace = {
        "operation": "insert",
        "key_repr": repr(key),
        "value_repr": _json_friendly(value),
        "capacity": table.capacity,
        "home_slot": search["home_slot"],
    }
    if search["found"]:
        base.update({"terminal": "duplicate", "collisions": 0, "will_rehash": False})
        base["path"] = search["path"]
        return base

    strategy = table.strategy
    limit = table.cfg.max_probe_attempts
    path: List[Dict[str, Any]] = []
    terminal = "exhausted"
    collisions = 0
    for attempt in range(limit):
        idx = strategy.probe(key, attempt)
        step = _describe_slot(table, idx, key, attempt)
        if step["state"] == SlotState.OCCUPIED.value:
            step["action"] = "advance"
            path.append(step)
            continue
        if step["state"] == SlotState.TOMBSTONE.value:
            step["action"] = "fill"
            terminal = "reuse-tombstone"
        else:
            step["action"] = "insert"
            terminal = "insert"
        path.append(step)
        collisions = attempt
        break
    else:
        collisions = limit

    size_after = len(table) + (0 if terminal == "exhausted" else 1)
    base.update(
        {
            "terminal": terminal,
            "collisions": collisions,
            "will_rehash": 100 * size_after > table.cfg.load_factor_max * table.capacity,
            "path": path,
        }
    )
    return base


def probe_length(table: QuadraticHashTable, key: Any) -> Optional[int]:
    """Number of probes needed to reach the live slot of ``key`` (None when absent)."""

    strategy = table.strategy
    for attempt in range(table.cfg.max_probe_attempts):
        slot = table._table[strategy.probe(key, attempt)]  # pylint: disable=protected-access
        if slot is None:
            return None
        if isinstance(slot, _Entry) and slot.key == key:
            return attempt + 1
    return None


def collect_probe_histogram(table: QuadraticHashTable) -> List[List[int]]:
    """Return ``[[probes, count], ...]`` over live keys, sorted by probe count."""

    histogram: Dict[int, int] = defaultdict(int)
    for key, _ in table.items():
        length = probe_length(table, key)
        if length is not None:
            histogram[length] += 1
    return [[length, count] for length, count in sorted(histogram.items())]


def format_trace_lines(
    trace: Dict[str, Any],
    *,
    seeds: Optional[Sequence[str]] = None,
    export_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Return a human-friendly rendering of a probe trace."""

    lines: List[str] = []
    operation = trace.get("operation", "?")
    lines.append(f"Probe visualization {operation.upper()} key={trace.get('key_repr', '?')}")
    if operation == "get":
        lines.append(f"Found: {trace.get('found')} | Terminal: {trace.get('terminal')}")
    else:
        lines.append(
            f"Terminal: {trace.get('terminal')} | Collisions: {trace.get('collisions')}"
            f" | Rehash after insert: {trace.get('will_rehash')}"
        )
    lines.append(f"Capacity: {trace.get('capacity')} | Home slot: {trace.get('home_slot')}")
    if seeds:
        lines.append("Seed entries: " + ", ".join(seeds))
    lines.append("Steps:")
    path = trace.get("path")
    if not isinstance(path, list) or not path:
        lines.append("  (no path recorded)")
    else:
        for item in path:
            if not isinstance(item, dict):
                lines.append(f"  {item!r}")
                continue
            attrs: List[str] = []
            for key in ("slot", "state", "action", "matches", "occupant_key"):
                if key in item and item[key] is not None:
                    value = item[key]
                    if isinstance(value, bool):
                        value = str(value).lower()
                    attrs.append(f"{key}={value}")
            lines.append(f"  Step {item.get('step', '?')}: " + ", ".join(attrs))
    if export_path:
        lines.append(f"Trace JSON written to: {export_path}")
    return lines


__all__ = [
    "collect_probe_histogram",
    "format_trace_lines",
    "probe_length",
    "trace_get",
    "trace_insert",
]
