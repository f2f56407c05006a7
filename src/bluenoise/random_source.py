"""
Deterministic 32-bit pseudo-random source (xoshiro128**).

The generator is tiny and only ever drives a handful of draws per optimizer
tick, so it is written with plain Python integers rather than compiled.
Seeding expands a single integer into the 128-bit state with splitmix64,
which can never produce the forbidden all-zero state.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from .errors import InvalidArgument

MASK32 = 0xFFFFFFFF
MASK64 = 0xFFFFFFFFFFFFFFFF

DEFAULT_SEED = 0


def _rotl(x: int, k: int) -> int:
    return ((x << k) | (x >> (32 - k))) & MASK32


def splitmix64(x: int) -> Tuple[int, int]:
    """Advance a splitmix64 state; returns (new_state, output)."""
    x = (x + 0x9E3779B97F4A7C15) & MASK64
    z = x
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK64
    return x, z ^ (z >> 31)


class RandomSource:
    """xoshiro128** generator producing uniform unsigned 32-bit integers."""

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self.seed = int(seed)
        sm = self.seed & MASK64
        words = []
        for _ in range(4):
            sm, out = splitmix64(sm)
            words.append(out & MASK32)
        self._s = words

    @classmethod
    def from_state(cls, state: Iterable[int]) -> "RandomSource":
        """Rebuild a generator from four raw 32-bit state words."""
        words = [int(w) & MASK32 for w in state]
        if len(words) != 4:
            raise InvalidArgument(f"state must have 4 words, got {len(words)}")
        if not any(words):
            raise InvalidArgument("xoshiro128** state must not be all zero")
        rng = cls.__new__(cls)
        rng.seed = None
        rng._s = words
        return rng

    @property
    def state(self) -> Tuple[int, int, int, int]:
        return tuple(self._s)

    def next_u32(self) -> int:
        s = self._s
        result = (_rotl((s[1] * 5) & MASK32, 7) * 9) & MASK32
        t = (s[1] << 9) & MASK32

        s[2] ^= s[0]
        s[3] ^= s[1]
        s[1] ^= s[2]
        s[0] ^= s[3]
        s[2] ^= t
        s[3] = _rotl(s[3], 11)
        return result

    def uniform_int(self, n: int) -> int:
        """
        Draw an integer in [0, n) as ``next_u32() % n``.

        The modulo bias for ranges that are not powers of two is accepted.
        """
        if n <= 0:
            raise InvalidArgument(f"range must be positive, got {n}")
        return self.next_u32() % n


__all__ = ["RandomSource", "splitmix64", "DEFAULT_SEED"]
