"""
Seeded random number generator for Snake Arena.

A linear congruential generator with fixed constants, so a seed always
produces the same food placements and benchmark scores stay comparable
between runs. Each game owns its own instance.
"""

from __future__ import annotations

import math


LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MODULUS = 2 ** 31


class SeededRandom:
    """
    Linear congruential generator.

    seed' = (seed * 1103515245 + 12345) mod 2^31

    Attributes:
        state: Current internal seed.
    """

    def __init__(self, seed: int):
        self.state = int(seed)

    def next(self) -> float:
        """Advance and return a float in [0, 1)."""
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS

    def next_int(self, low: int, high: int) -> int:
        """Return an integer in [low, high] (both inclusive)."""
        return math.floor(self.next() * (high - low + 1)) + low

    def __repr__(self) -> str:
        return f"SeededRandom(state={self.state})"
