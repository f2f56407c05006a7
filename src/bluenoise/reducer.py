"""
Fork-join evaluation of the O(M^2) pairwise energy sum (M = N * N).

The outer cell index is split across workers. Each worker accumulates a
private partial sum over its rows, and the partials are combined once every
worker has finished. No shared accumulator or lock is touched while rows are
being summed, and no thread state survives a call.

Backends:
    "numba"      -- ``prange`` loop with a reduction variable; Numba keeps a
                    partial per thread and combines them at the join.
    "threads"    -- a ThreadPoolExecutor over a ``nogil`` kernel. Row i costs
                    i pair evaluations, so rows are dealt out round-robin to
                    balance load; partials are merged pairwise (tree).
    "sequential" -- single-threaded reference.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import numba
import numpy as np
from numba import njit, prange

from .energy import SIGMA, row_energy, sequential_energy
from .errors import InvalidArgument

BACKENDS = ("numba", "threads", "sequential")


###############################################################################
# Kernels
###############################################################################


@njit(cache=True, parallel=True)
def _energy_prange(values: np.ndarray, n: int, sigma: float) -> float:
    total = 0.0
    for i in prange(values.size):
        total += row_energy(values, n, i, sigma)
    return total


@njit(cache=True, nogil=True)
def _strided_energy(values: np.ndarray, n: int, sigma: float, start: int, stride: int) -> float:
    """Partial sum over rows start, start + stride, start + 2 * stride, ..."""
    local = 0.0
    for i in range(start, values.size, stride):
        local += row_energy(values, n, i, sigma)
    return local


def tree_sum(partials: Sequence[float]) -> float:
    """Combine partial sums pairwise, level by level."""
    level = [float(p) for p in partials]
    if not level:
        return 0.0
    while len(level) > 1:
        merged = [level[k] + level[k + 1] for k in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            merged.append(level[-1])
        level = merged
    return level[0]


###############################################################################
# Reducer
###############################################################################


class ParallelReducer:
    """Evaluates the total pairwise energy of a flat value array."""

    def __init__(self, workers: Optional[int] = None, backend: str = "numba") -> None:
        if backend not in BACKENDS:
            raise InvalidArgument(f"Unknown backend: {backend}. Choose from: {', '.join(BACKENDS)}")
        if workers is None:
            workers = os.cpu_count() or 1
        if workers <= 0:
            raise InvalidArgument(f"workers must be positive, got {workers}")
        self.workers = int(workers)
        self.backend = backend

    def energy(self, values: np.ndarray, n: int, sigma: float = SIGMA) -> float:
        values = np.asarray(values)
        if values.size != n * n:
            raise InvalidArgument(f"expected {n * n} values for a {n}x{n} grid, got {values.size}")
        if values.size == 0:
            return 0.0

        if self.backend == "sequential":
            return float(sequential_energy(values, n, sigma))
        if self.backend == "threads":
            return self._energy_threads(values, n, sigma)
        return self._energy_numba(values, n, sigma)

    def _energy_numba(self, values: np.ndarray, n: int, sigma: float) -> float:
        previous = numba.get_num_threads()
        numba.set_num_threads(min(self.workers, numba.config.NUMBA_NUM_THREADS))
        try:
            return float(_energy_prange(values, n, sigma))
        finally:
            numba.set_num_threads(previous)

    def _energy_threads(self, values: np.ndarray, n: int, sigma: float) -> float:
        workers = min(self.workers, values.size)
        if workers == 1:
            return float(_strided_energy(values, n, sigma, 0, 1))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_strided_energy, values, n, sigma, start, workers)
                for start in range(workers)
            ]
            partials = [f.result() for f in futures]
        return tree_sum(partials)


__all__ = ["BACKENDS", "ParallelReducer", "tree_sum"]
