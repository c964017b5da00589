"""Shared constants for quadhash statistics payloads."""

from __future__ import annotations

SCHEMA_VERSION = "v1"

STATS_SCHEMA = f"table.stats.{SCHEMA_VERSION}"
STATS_SCHEMA_RESOURCE = "stats_schema.json"

__all__ = ["SCHEMA_VERSION", "STATS_SCHEMA", "STATS_SCHEMA_RESOURCE"]
