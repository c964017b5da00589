"""Primary hash functions and the quadratic probe strategy."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict

from quadhash.contracts.error import BadInputError

PrimaryHash = Callable[[Any], int]

_MASK_64: int = (1 << 64) - 1
_LARGE_PRIME: int = 1_000_003
_POSITION_PRIMES: tuple[int, ...] = (
    11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71, 73, 79,
)
_MIX_MULTIPLIER: int = 0x45D9F3B


def poly_string_hash(key: str) -> int:
    """Prime-weighted character sum scaled by a large prime."""

    total = 0
    for pos, ch in enumerate(key):
        total += _POSITION_PRIMES[pos % len(_POSITION_PRIMES)] * ord(ch)
    return (total * _LARGE_PRIME) & _MASK_64


def djb2_string_hash(key: str) -> int:
    total = 5381
    for ch in key:
        total = ((total * 33) ^ ord(ch)) & _MASK_64
    return total


def identity_int_hash(key: int) -> int:
    return key & _MASK_64


def mix_int_hash(key: int) -> int:
    x = key & _MASK_64
    x = (((x >> 16) ^ x) * _MIX_MULTIPLIER) & _MASK_64
    x = (((x >> 16) ^ x) * _MIX_MULTIPLIER) & _MASK_64
    return (x >> 16) ^ x


def builtin_hash(key: Any) -> int:
    """Python's ``hash`` folded to a non-negative 64-bit value.

    String hashes are salted per process (``PYTHONHASHSEED``), so probe
    sequences are repeatable within one run only.
    """

    return hash(key) & _MASK_64


PRIMARY_HASHES: Dict[str, PrimaryHash] = {
    "poly-string": poly_string_hash,
    "djb2": djb2_string_hash,
    "identity": identity_int_hash,
    "mix-int": mix_int_hash,
    "builtin": builtin_hash,
}


def resolve_primary_hash(name: str) -> PrimaryHash:
    try:
        return PRIMARY_HASHES[name]
    except KeyError as exc:
        choices = ", ".join(sorted(PRIMARY_HASHES))
        raise BadInputError(f"Unknown hasher '{name}'", hint=f"Choose one of: {choices}") from exc


@dataclass(frozen=True)
class HashStrategy:
    """Quadratic probe sequence ``(h(key) + attempt**2) mod capacity``.

    The modulus is part of the value: a table that changes capacity builds a
    new strategy with :meth:`with_capacity` instead of mutating this one.
    """

    primary_hash: PrimaryHash
    capacity: int

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be >= 1")

    def home(self, key: Any) -> int:
        return self.probe(key, 0)

    def probe(self, key: Any, attempt: int) -> int:
        return (self.primary_hash(key) + attempt * attempt) % self.capacity

    def with_capacity(self, capacity: int) -> "HashStrategy":
        return replace(self, capacity=capacity)


__all__ = [
    "HashStrategy",
    "PRIMARY_HASHES",
    "PrimaryHash",
    "builtin_hash",
    "djb2_string_hash",
    "identity_int_hash",
    "mix_int_hash",
    "poly_string_hash",
    "resolve_primary_hash",
]
