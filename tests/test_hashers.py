from __future__ import annotations

import dataclasses

import pytest

from quadhash.contracts.error import BadInputError
from quadhash.core.hashers import (
    PRIMARY_HASHES,
    HashStrategy,
    builtin_hash,
    djb2_string_hash,
    identity_int_hash,
    mix_int_hash,
    poly_string_hash,
    resolve_primary_hash,
)


def test_poly_string_hash_weights_positions() -> None:
    assert poly_string_hash("") == 0
    assert poly_string_hash("a") == 11 * 97 * 1_000_003
    assert poly_string_hash("ab") == (11 * 97 + 13 * 98) * 1_000_003
    # Position weights make anagrams distinct.
    assert poly_string_hash("ab") != poly_string_hash("ba")


def test_djb2_string_hash_known_values() -> None:
    assert djb2_string_hash("") == 5381
    assert djb2_string_hash("a") == 177604


def test_int_hashes_are_non_negative_words() -> None:
    assert identity_int_hash(42) == 42
    assert identity_int_hash(-1) == (1 << 64) - 1
    assert mix_int_hash(0) == 0
    for value in (-5, 1, 7, 123456789, -(1 << 70)):
        mixed = mix_int_hash(value)
        assert 0 <= mixed < (1 << 64)
        assert mixed == mix_int_hash(value)
    assert mix_int_hash(1) != 1


def test_builtin_hash_is_masked() -> None:
    assert builtin_hash(-1) >= 0
    assert builtin_hash((1, "x")) == builtin_hash((1, "x"))


def test_registry_resolves_names() -> None:
    assert set(PRIMARY_HASHES) == {"poly-string", "djb2", "identity", "mix-int", "builtin"}
    assert resolve_primary_hash("djb2") is djb2_string_hash
    with pytest.raises(BadInputError) as excinfo:
        resolve_primary_hash("sha256")
    assert excinfo.value.hint is not None and "poly-string" in excinfo.value.hint


def test_strategy_probes_quadratically() -> None:
    strategy = HashStrategy(identity_int_hash, 11)
    assert [strategy.probe(3, attempt) for attempt in range(4)] == [3, 4, 7, 1]
    assert strategy.home(25) == 3


def test_strategy_indices_stay_in_range() -> None:
    strategy = HashStrategy(poly_string_hash, 101)
    for attempt in range(300):
        assert 0 <= strategy.probe("pomme", attempt) < 101


def test_with_capacity_returns_new_strategy() -> None:
    strategy = HashStrategy(identity_int_hash, 11)
    bigger = strategy.with_capacity(23)
    assert bigger is not strategy
    assert strategy.capacity == 11
    assert bigger.capacity == 23
    assert bigger.primary_hash is identity_int_hash
    assert bigger.probe(30, 0) == 7
    with pytest.raises(dataclasses.FrozenInstanceError):
        strategy.capacity = 13  # type: ignore[misc]


def test_strategy_rejects_empty_capacity() -> None:
    with pytest.raises(ValueError):
        HashStrategy(identity_int_hash, 0)
