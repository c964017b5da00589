"""Open-addressing hash table with quadratic probing and prime capacities."""

from . import analysis, contracts, core, metrics
from .core import HashStrategy, QuadraticHashTable, TableConfig, next_prime

__all__ = [
    "HashStrategy",
    "QuadraticHashTable",
    "TableConfig",
    "analysis",
    "contracts",
    "core",
    "metrics",
    "next_prime",
]
