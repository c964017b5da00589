"""Open-addressing hash table with quadratic probing and prime capacities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional, Tuple, cast

from quadhash.contracts.checks import assertion, precondition
from quadhash.contracts.error import (
    DuplicateKeyError,
    EmptyStatisticsError,
    KeyNotFoundError,
    ProbeExhaustedError,
)

from .hashers import HashStrategy, PrimaryHash, builtin_hash
from .primes import next_prime

logger = logging.getLogger("quadhash")

DEFAULT_INITIAL_CAPACITY: int = 100
LOAD_FACTOR_MAX: int = 50
MAX_PROBE_ATTEMPTS: int = 10_000
MAX_TOMBSTONE_RATIO: float = 0.25


class SlotState(str, Enum):
    EMPTY = "empty"
    OCCUPIED = "occupied"
    TOMBSTONE = "tombstone"


class _Tombstone:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<tombstone>"


_TOMBSTONE = _Tombstone()


@dataclass
class _Entry:
    key: Any
    value: Any


def slot_state(slot: Optional[Any]) -> SlotState:
    if slot is None:
        return SlotState.EMPTY
    if slot is _TOMBSTONE:
        return SlotState.TOMBSTONE
    return SlotState.OCCUPIED


@dataclass
class TableConfig:
    """Tuning knobs for :class:`QuadraticHashTable`.

    ``load_factor_max`` is a percentage: an insert that leaves more than that
    share of slots occupied triggers a rehash into ``next_prime(2 * capacity)``.
    """

    load_factor_max: int = LOAD_FACTOR_MAX
    max_probe_attempts: int = MAX_PROBE_ATTEMPTS
    max_tombstone_ratio: float = MAX_TOMBSTONE_RATIO
    on_rehash: Optional[Callable[[int, int], None]] = None
    on_compaction: Optional[Callable[[int], None]] = None


_State = Tuple[HashStrategy, List[Optional[Any]], int, int, int, int, int, int]


class QuadraticHashTable:
    """Hash table resolving collisions by quadratic probing.

    Slots are ``None`` (never written), an ``_Entry`` (live) or the tombstone
    sentinel (removed). Key searches skip tombstones and stop at the first
    empty slot; inserts take the first slot that is not live.

    ``total_insertions`` and ``total_collisions`` count every placement,
    including the re-insertions performed by :meth:`rehash` and
    :meth:`compact`.
    """

    __slots__ = (
        "cfg",
        "_strategy",
        "_table",
        "_size",
        "_tombstones",
        "_insertions",
        "_collisions",
        "_rehashes",
        "_compactions",
    )

    def __init__(
        self,
        initial_capacity: int = DEFAULT_INITIAL_CAPACITY,
        primary_hash: PrimaryHash = builtin_hash,
        cfg: Optional[TableConfig] = None,
    ) -> None:
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be >= 1")
        self.cfg = cfg or TableConfig()
        if not 1 <= self.cfg.load_factor_max <= 100:
            raise ValueError("load_factor_max must be within [1, 100]")
        if self.cfg.max_probe_attempts < 1:
            raise ValueError("max_probe_attempts must be >= 1")
        capacity = next_prime(initial_capacity)
        self._strategy = HashStrategy(primary_hash, capacity)
        self._table: List[Optional[Any]] = [None] * capacity
        self._size = 0
        self._tombstones = 0
        self._insertions = 0
        self._collisions = 0
        self._rehashes = 0
        self._compactions = 0

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: Any) -> bool:
        return self.contains(key)

    def __str__(self) -> str:
        return self.dump()

    def __repr__(self) -> str:
        return f"QuadraticHashTable(size={self._size}, capacity={self.capacity})"

    @property
    def capacity(self) -> int:
        return self._strategy.capacity

    @property
    def strategy(self) -> HashStrategy:
        return self._strategy

    @property
    def tombstones(self) -> int:
        return self._tombstones

    @property
    def total_insertions(self) -> int:
        return self._insertions

    @property
    def total_collisions(self) -> int:
        return self._collisions

    @property
    def rehashes(self) -> int:
        return self._rehashes

    @property
    def compactions(self) -> int:
        return self._compactions

    def size(self) -> int:
        return self._size

    def load_factor(self) -> float:
        return self._size / self.capacity

    def tombstone_ratio(self) -> float:
        return self._tombstones / self.capacity

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------
    def _find_free_slot(self, key: Any) -> Tuple[int, int]:
        """Return ``(index, collisions)`` for the first non-live slot of ``key``."""

        strategy = self._strategy
        limit = self.cfg.max_probe_attempts
        attempt = 0
        idx = strategy.probe(key, attempt)
        while isinstance(self._table[idx], _Entry):
            attempt += 1
            assertion(
                attempt < limit,
                ProbeExhaustedError,
                f"No free slot for {key!r} after {limit} probe attempts (capacity={self.capacity})",
            )
            idx = strategy.probe(key, attempt)
        return idx, attempt

    def _find_key_slot(self, key: Any) -> Optional[int]:
        strategy = self._strategy
        limit = self.cfg.max_probe_attempts
        attempt = 0
        while True:
            idx = strategy.probe(key, attempt)
            slot = self._table[idx]
            if slot is None:
                return None
            if isinstance(slot, _Entry) and slot.key == key:
                return idx
            attempt += 1
            assertion(
                attempt < limit,
                ProbeExhaustedError,
                f"Search for {key!r} exceeded {limit} probe attempts (capacity={self.capacity})",
            )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def insert(self, key: Any, value: Any) -> None:
        precondition(not self.contains(key), DuplicateKeyError, f"Key already present: {key!r}")
        idx, collisions = self._find_free_slot(key)
        previous = self._table[idx]
        self._table[idx] = _Entry(key, value)
        self._size += 1
        if previous is _TOMBSTONE:
            self._tombstones -= 1
        self._insertions += 1
        self._collisions += collisions
        try:
            self._maintenance()
        except Exception:
            # The rebuild already restored its own snapshot; undo the write.
            self._table[idx] = previous
            self._size -= 1
            if previous is _TOMBSTONE:
                self._tombstones += 1
            self._insertions -= 1
            self._collisions -= collisions
            raise

    def remove(self, key: Any) -> None:
        idx = self._find_key_slot(key)
        precondition(idx is not None, KeyNotFoundError, f"Key not found: {key!r}")
        self._table[cast(int, idx)] = _TOMBSTONE
        self._size -= 1
        self._tombstones += 1

    def contains(self, key: Any) -> bool:
        return self._find_key_slot(key) is not None

    def get(self, key: Any) -> Any:
        idx = self._find_key_slot(key)
        precondition(idx is not None, KeyNotFoundError, f"Key not found: {key!r}")
        return cast(_Entry, self._table[cast(int, idx)]).value

    def clear(self) -> None:
        self._table = [None] * self.capacity
        self._size = 0
        self._tombstones = 0

    def collision_rate(self) -> float:
        """Mean number of extra probe attempts per insertion."""

        precondition(
            self._insertions > 0,
            EmptyStatisticsError,
            "Collision rate is undefined before the first insertion",
        )
        return self._collisions / self._insertions

    def rehash(self) -> None:
        """Grow to ``next_prime(2 * capacity)`` in a single rebuild.

        Doubling repeats until the live entries fit under the load-factor
        ceiling, so the re-insertions never trigger a nested rehash.
        """

        old_capacity = self.capacity
        new_capacity = next_prime(2 * old_capacity)
        while 100 * self._size > self.cfg.load_factor_max * new_capacity:
            new_capacity = next_prime(2 * new_capacity)
        self._rebuild(new_capacity)
        self._rehashes += 1
        logger.info("Rehash: capacity %d -> %d (size=%d)", old_capacity, new_capacity, self._size)
        if self.cfg.on_rehash:
            try:
                self.cfg.on_rehash(old_capacity, new_capacity)
            except Exception:  # pragma: no cover
                logger.exception("on_rehash callback failed")

    def compact(self) -> None:
        """Rebuild at the current capacity, turning every tombstone back into an empty slot."""

        dropped = self._tombstones
        self._rebuild(self.capacity)
        self._compactions += 1
        logger.info("Compaction: dropped %d tombstones (capacity=%d)", dropped, self.capacity)
        if self.cfg.on_compaction:
            try:
                self.cfg.on_compaction(self.capacity)
            except Exception:  # pragma: no cover
                logger.exception("on_compaction callback failed")

    def items(self) -> Iterator[Tuple[Any, Any]]:
        for slot in self._table:
            if isinstance(slot, _Entry):
                yield slot.key, slot.value

    def slot_states(self) -> List[SlotState]:
        return [slot_state(slot) for slot in self._table]

    def dump(self) -> str:
        parts = [f"({key},{value})," for key, value in self.items()]
        return "{" + "".join(parts) + "}"

    # ------------------------------------------------------------------
    # Resizing
    # ------------------------------------------------------------------
    def _maintenance(self) -> None:
        ceiling = self.cfg.load_factor_max * self.capacity
        if 100 * self._size > ceiling:
            self.rehash()
        elif (
            100 * (self._size + self._tombstones) > ceiling
            or self.tombstone_ratio() > self.cfg.max_tombstone_ratio
        ):
            # Live plus tombstone slots stay within the ceiling so every probe
            # cycle keeps at least one empty slot to stop a key search.
            self.compact()

    def _capture(self) -> _State:
        return (
            self._strategy,
            self._table,
            self._size,
            self._tombstones,
            self._insertions,
            self._collisions,
            self._rehashes,
            self._compactions,
        )

    def _restore(self, state: _State) -> None:
        (
            self._strategy,
            self._table,
            self._size,
            self._tombstones,
            self._insertions,
            self._collisions,
            self._rehashes,
            self._compactions,
        ) = state

    def _rebuild(self, new_capacity: int) -> None:
        entries = list(self.items())
        saved = self._capture()
        try:
            self._table = [None] * new_capacity
            self._size = 0
            self._tombstones = 0
            self._strategy = self._strategy.with_capacity(new_capacity)
            for key, value in entries:
                self.insert(key, value)
        except Exception:
            self._restore(saved)
            logger.warning(
                "Rebuild to capacity %d failed; kept capacity %d", new_capacity, self.capacity
            )
            raise


__all__ = [
    "DEFAULT_INITIAL_CAPACITY",
    "LOAD_FACTOR_MAX",
    "MAX_PROBE_ATTEMPTS",
    "MAX_TOMBSTONE_RATIO",
    "QuadraticHashTable",
    "SlotState",
    "TableConfig",
    "slot_state",
]
