from .constants import SCHEMA_VERSION, STATS_SCHEMA
from .stats import (
    TableStats,
    collect_stats,
    load_stats_schema,
    stats_payload,
    validate_stats_payload,
)

__all__ = [
    "SCHEMA_VERSION",
    "STATS_SCHEMA",
    "TableStats",
    "collect_stats",
    "load_stats_schema",
    "stats_payload",
    "validate_stats_payload",
]
