"""Collision statistics snapshots and their JSON contract."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from importlib import resources
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator

from quadhash.analysis.probe import collect_probe_histogram
from quadhash.contracts.error import EmptyStatisticsError
from quadhash.core.table import QuadraticHashTable

from .constants import STATS_SCHEMA, STATS_SCHEMA_RESOURCE


@dataclass(frozen=True)
class TableStats:
    capacity: int
    size: int
    tombstones: int
    load_factor: float
    tombstone_ratio: float
    total_insertions: int
    total_collisions: int
    collision_rate: Optional[float]
    rehashes: int
    compactions: int
    max_probe_length: int


def collect_stats(
    table: QuadraticHashTable, histogram: Optional[List[List[int]]] = None
) -> TableStats:
    """Snapshot the table counters; pass ``histogram`` to reuse one already collected."""

    try:
        rate: Optional[float] = table.collision_rate()
    except EmptyStatisticsError:
        rate = None
    if histogram is None:
        histogram = collect_probe_histogram(table)
    return TableStats(
        capacity=table.capacity,
        size=len(table),
        tombstones=table.tombstones,
        load_factor=table.load_factor(),
        tombstone_ratio=table.tombstone_ratio(),
        total_insertions=table.total_insertions,
        total_collisions=table.total_collisions,
        collision_rate=rate,
        rehashes=table.rehashes,
        compactions=table.compactions,
        max_probe_length=histogram[-1][0] if histogram else 0,
    )


def stats_payload(
    stats: TableStats,
    *,
    probe_histogram: Optional[List[List[int]]] = None,
    ops: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"schema": STATS_SCHEMA}
    payload.update(asdict(stats))
    if probe_histogram is not None:
        payload["probe_histogram"] = probe_histogram
    if ops is not None:
        payload["ops"] = dict(ops)
    return payload


def load_stats_schema() -> Dict[str, Any]:
    schema_resource = resources.files("quadhash.contracts") / STATS_SCHEMA_RESOURCE
    with schema_resource.open(encoding="utf-8") as stream:
        return json.load(stream)


def validate_stats_payload(payload: Any) -> List[str]:
    """Return human-readable schema violations (empty when the payload is valid)."""

    validator = Draft202012Validator(load_stats_schema())
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.path))
    problems = [f"{err.message} @ {list(err.path)}" for err in errors]
    if not problems and isinstance(payload, dict):
        size, capacity = payload["size"], payload["capacity"]
        if size > capacity:
            problems.append(f"size {size} exceeds capacity {capacity}")
    return problems


__all__ = [
    "TableStats",
    "collect_stats",
    "load_stats_schema",
    "stats_payload",
    "validate_stats_payload",
]
