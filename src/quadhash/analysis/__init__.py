"""Analysis helpers for quadhash tables."""

from .probe import (
    collect_probe_histogram,
    format_trace_lines,
    probe_length,
    trace_get,
    trace_insert,
)

__all__ = [
    "collect_probe_histogram",
    "format_trace_lines",
    "probe_length",
    "trace_get",
    "trace_insert",
]
