"""
Seeded pseudo-random number generator.

Mulberry32 over a 32-bit state derived from a string seed. Two generators
built from the same seed produce the same stream forever, which is what
makes every simulation run reproducible. Never use the `random` module or
wall-clock time inside simulation code.
"""

import math

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def hash_seed(seed: str) -> int:
    """Reduce a seed string to a non-negative 32-bit integer.

    Rolling `hash * 31 + code_unit` over the UTF-16 code units of the string,
    wrapped to a signed 32-bit value after every step, absolute value taken.
    """
    encoded = seed.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + code_unit) & _MASK32
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class SeededRNG:
    """Deterministic random stream. Period 2^32, not cryptographically secure."""

    __slots__ = ("_state",)

    def __init__(self, seed: str):
        self._state = hash_seed(seed) & _MASK32

    def next(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state + _INCREMENT) & _MASK32
        s = self._state
        t = ((s ^ (s >> 15)) * (s | 1)) & _MASK32
        t = ((t + (((t ^ (t >> 7)) * (t | 61)) & _MASK32)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_int(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends inclusive."""
        return math.floor(self.next() * (high - low + 1)) + low

    def next_float(self, low: float, high: float) -> float:
        """Float in [low, high)."""
        return self.next() * (high - low) + low

    def chance(self, p: float) -> bool:
        """True with probability p."""
        return self.next() < p

    def clone(self) -> "SeededRNG":
        """Independent generator that continues from the current position."""
        cloned = SeededRNG.__new__(SeededRNG)
        cloned._state = self._state
        return cloned
