"""
Utility functions for dreamflows.
"""

import math
import random
from typing import Any, Protocol, Sequence


# =========================
# Randomness policies
# =========================


class RandomPolicy(Protocol):
    """Protocol for custom randomness policies."""

    def accept(self, p: float, *, rng: random.Random) -> bool: ...
    def choice(self, seq: Sequence[Any], *, rng: random.Random) -> Any: ...


class DefaultRandomPolicy:
    """Default randomness policy using Python's random module."""

    def accept(self, p: float, *, rng: random.Random) -> bool:
        p = clamp(float(p), 0.0, 1.0)
        return rng.random() < p

    def choice(self, seq: Sequence[Any], *, rng: random.Random) -> Any:
        return rng.choice(list(seq))


# =========================
# Math helpers
# =========================


def clamp(value, min_val, max_val):
    """Clamp a value between min and max."""
    return max(min_val, min(max_val, value))


def db_to_linear(db: float) -> float:
    """Convert decibels to linear gain."""
    return 10.0 ** (db / 20.0)


def lcm(*values: int) -> int:
    """Least common multiple of the given periods."""
    out = 1
    for v in values:
        out = abs(out * int(v)) // math.gcd(out, int(v))
    return out


def pairwise_coprime(values: Sequence[int]) -> bool:
    """True if every pair of values shares no common factor."""
    vals = [int(v) for v in values]
    for i, a in enumerate(vals):
        for b in vals[i + 1 :]:
            if math.gcd(a, b) != 1:
                return False
    return True
