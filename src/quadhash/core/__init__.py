from .hashers import (
    PRIMARY_HASHES,
    HashStrategy,
    builtin_hash,
    djb2_string_hash,
    identity_int_hash,
    mix_int_hash,
    poly_string_hash,
    resolve_primary_hash,
)
from .primes import is_prime, next_prime
from .table import (
    DEFAULT_INITIAL_CAPACITY,
    LOAD_FACTOR_MAX,
    MAX_PROBE_ATTEMPTS,
    MAX_TOMBSTONE_RATIO,
    QuadraticHashTable,
    SlotState,
    TableConfig,
    slot_state,
)

__all__ = [
    "DEFAULT_INITIAL_CAPACITY",
    "LOAD_FACTOR_MAX",
    "MAX_PROBE_ATTEMPTS",
    "MAX_TOMBSTONE_RATIO",
    "PRIMARY_HASHES",
    "HashStrategy",
    "QuadraticHashTable",
    "SlotState",
    "TableConfig",
    "builtin_hash",
    "djb2_string_hash",
    "identity_int_hash",
    "is_prime",
    "mix_int_hash",
    "next_prime",
    "poly_string_hash",
    "resolve_primary_hash",
    "slot_state",
]
