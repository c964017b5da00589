"""Prime sizing for open-addressing tables."""

from __future__ import annotations

import math


def is_prime(value: int) -> bool:
    if value <= 1:
        return False
    if value == 2:
        return True
    if value % 2 == 0:
        return False
    upper = math.isqrt(value) + 1
    divisor = 3
    while divisor <= upper:
        if value % divisor == 0:
            return False
        divisor += 2
    return True


def next_prime(value: int) -> int:
    """Return the first odd prime at or after ``value``.

    Even inputs are bumped to the next odd candidate first, so ``next_prime(2)``
    is 3. Candidates then advance by two until one passes trial division.
    """

    candidate = value + 1 if value % 2 == 0 else value
    while not is_prime(candidate):
        candidate += 2
    return candidate


__all__ = ["is_prime", "next_prime"]
