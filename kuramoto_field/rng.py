# kuramoto_field/rng.py
from __future__ import annotations
from typing import Optional, Union

import numpy as np


class RandomSource:
    """
    Injectable source of uniform and normal variates.

    Normal draws use the Box-Muller transform on top of the generator's
    uniform stream:  z = sqrt(-2 ln u1) * cos(2 pi u2),  u1 in (0, 1].
    Seed it for reproducible runs; every stochastic component takes one
    explicitly instead of touching global random state.
    """
    __slots__ = ("seed", "_gen")

    def __init__(self, seed: Optional[int] = None):
        self.seed = None if seed is None else int(seed)
        self._gen = np.random.default_rng(self.seed)

    # ----- scalars -----
    def next_uniform(self) -> float:
        """Uniform in [0, 1)."""
        return float(self._gen.random())

    def next_normal(self, mean: float = 0.0, std: float = 1.0) -> float:
        u1 = 1.0 - self._gen.random()   # (0, 1], keeps log finite
        u2 = self._gen.random()
        z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
        return float(z * std + mean)

    def integer(self, high: int) -> int:
        """Uniform integer in [0, high)."""
        return int(self.next_uniform() * int(high))

    # ----- vectors -----
    def uniform(self, size, low: float = 0.0, high: float = 1.0) -> np.ndarray:
        return low + (high - low) * self._gen.random(size)

    def normal(self, size, mean: float = 0.0, std: float = 1.0) -> np.ndarray:
        u1 = 1.0 - self._gen.random(size)
        u2 = self._gen.random(size)
        z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
        return z * std + mean


def as_source(rng: Union[None, int, RandomSource]) -> RandomSource:
    """Accept a RandomSource, a seed, or None (fresh unseeded source)."""
    if isinstance(rng, RandomSource):
        return rng
    return RandomSource(rng)
