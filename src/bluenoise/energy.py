"""
Pairwise spatial-plus-intensity energy of a value grid.

For two distinct cells i and j with toroidal displacement (dx, dy):

    contribution = exp(-(dx^2 + dy^2) / sigma - sqrt(|v_i - v_j|))

which is the product of a Gaussian spatial falloff and an intensity
similarity term. The total energy sums every unordered pair exactly once
(j < i). Cells of similar value sitting close together raise the energy,
so lowering it spreads similar values apart.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numba import njit

from .errors import InvalidArgument
from .metric import toroidal_delta

SIGMA = 2.1


###############################################################################
# Compiled kernels
###############################################################################


@njit(cache=True)
def pair_energy(values: np.ndarray, n: int, i: int, j: int, sigma: float) -> float:
    dx, dy = toroidal_delta(i, j, n)
    dv = abs(np.int64(values[i]) - np.int64(values[j]))
    return math.exp(-(dx * dx + dy * dy) / sigma - math.sqrt(dv))


@njit(cache=True, nogil=True)
def row_energy(values: np.ndarray, n: int, i: int, sigma: float) -> float:
    """Sum of contributions between cell i and every cell j < i."""
    local = 0.0
    for j in range(i):
        local += pair_energy(values, n, i, j, sigma)
    return local


@njit(cache=True)
def sequential_energy(values: np.ndarray, n: int, sigma: float = SIGMA) -> float:
    """Single-threaded reference sum over all unordered pairs."""
    total = 0.0
    for i in range(values.size):
        total += row_energy(values, n, i, sigma)
    return total


###############################################################################
# Model
###############################################################################


class EnergyModel:
    """Binds the falloff constant to a reducer that evaluates the full sum."""

    def __init__(self, sigma: float = SIGMA, reducer=None) -> None:
        if not sigma > 0.0:
            raise InvalidArgument(f"sigma must be positive, got {sigma}")
        if reducer is None:
            from .reducer import ParallelReducer

            reducer = ParallelReducer()
        self.sigma = float(sigma)
        self.reducer = reducer

    def pair(self, grid, i: int, j: int) -> float:
        """Contribution of a single pair of distinct cells."""
        if i == j:
            raise InvalidArgument("a cell does not pair with itself")
        grid.get(i)  # bounds
        grid.get(j)
        return pair_energy(grid.values, grid.size, int(i), int(j), self.sigma)

    def total(self, grid, reducer: Optional[object] = None) -> float:
        reducer = reducer or self.reducer
        return reducer.energy(grid.values, grid.size, self.sigma)


__all__ = ["SIGMA", "pair_energy", "row_energy", "sequential_energy", "EnergyModel"]
