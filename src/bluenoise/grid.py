"""
Value grid holding the N x N byte samples of a dither mask, plus the sample
buffers the grid is exported into.

Cells are stored flat in row-major order, ``i = y * N + x``. After
allocation the grid is only ever mutated by swapping two cells, so the
multiset of values it holds never changes.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .errors import IndexOutOfRange, InvalidArgument
from .random_source import DEFAULT_SEED, RandomSource


###############################################################################
# Sample buffers
###############################################################################


class SampleBuffer:
    """
    Caller-owned image buffer that exports write into.

    ``pixels`` has shape (height, width) for single-channel buffers and
    (height, width, channels) otherwise.
    """

    def __init__(self, channels: int = 1, dtype=np.uint8) -> None:
        if channels <= 0:
            raise InvalidArgument(f"channels must be positive, got {channels}")
        self.channels = channels
        self.dtype = np.dtype(dtype)
        self.pixels = np.zeros(self._shape(0, 0), dtype=self.dtype)

    @classmethod
    def mono(cls) -> "SampleBuffer":
        return cls(channels=1, dtype=np.uint8)

    @classmethod
    def rgba(cls) -> "SampleBuffer":
        return cls(channels=4, dtype=np.float32)

    def _shape(self, width: int, height: int) -> Tuple[int, ...]:
        if self.channels == 1:
            return (height, width)
        return (height, width, self.channels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def allocate(self, width: int, height: int, channels: Optional[int] = None, dtype=None) -> None:
        """
        Resize to width x height, optionally switching channel count and dtype.

        Existing storage is kept if both the shape and the dtype already match.
        """
        if channels is not None:
            if channels <= 0:
                raise InvalidArgument(f"channels must be positive, got {channels}")
            self.channels = channels
        if dtype is not None:
            self.dtype = np.dtype(dtype)
        shape = self._shape(width, height)
        if self.pixels.shape != shape or self.pixels.dtype != self.dtype:
            self.pixels = np.zeros(shape, dtype=self.dtype)

    def __getitem__(self, xy: Tuple[int, int]):
        x, y = xy
        return self.pixels[y, x]


###############################################################################
# Value grid
###############################################################################


class ValueGrid:
    """Square grid of byte samples with bounds-checked access and swaps."""

    def __init__(self) -> None:
        self.size = 0
        self._values = np.zeros(0, dtype=np.uint8)

    @classmethod
    def from_values(cls, values) -> "ValueGrid":
        """Build a grid from an explicit square (N, N) array of bytes."""
        arr = np.asarray(values)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] == 0:
            raise InvalidArgument(f"values must be a non-empty square array, got {arr.shape}")
        if not np.issubdtype(arr.dtype, np.integer):
            raise InvalidArgument(f"values must be integers, got dtype {arr.dtype}")
        if arr.min() < 0 or arr.max() > 255:
            raise InvalidArgument("values must lie in 0..255")
        grid = cls()
        grid.size = int(arr.shape[0])
        grid._values = arr.astype(np.uint8).ravel().copy()
        return grid

    def allocate(self, n: int, rng: Optional[RandomSource] = None) -> None:
        """
        Reset the grid to n x n cells of independent uniform random bytes.

        Raises InvalidArgument for n <= 0; the current grid is left untouched
        in that case.
        """
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise InvalidArgument(f"grid size must be an integer, got {n!r}")
        if n <= 0:
            raise InvalidArgument(f"grid size must be positive, got {n}")
        rng = rng or RandomSource(DEFAULT_SEED)

        n = int(n)
        values = np.empty(n * n, dtype=np.uint8)
        for i in range(values.size):
            values[i] = rng.next_u32() % 256

        self.size = n
        self._values = values

    # ------------------------------------------------------------------ access
    def __len__(self) -> int:
        return self._values.size

    @property
    def values(self) -> np.ndarray:
        """Read-only flat view of the samples."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    def as_array(self) -> np.ndarray:
        """Copy of the samples as an (N, N) array indexed [y, x]."""
        return self._values.reshape(self.size, self.size).copy()

    def _check(self, i: int) -> int:
        i = int(i)
        if not 0 <= i < self._values.size:
            raise IndexOutOfRange(f"index {i} outside [0, {self._values.size})")
        return i

    def get(self, i: int) -> int:
        return int(self._values[self._check(i)])

    def get_xy(self, x: int, y: int) -> int:
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise IndexOutOfRange(f"cell ({x}, {y}) outside {self.size}x{self.size} grid")
        return int(self._values[y * self.size + x])

    def set(self, i: int, value: int) -> None:
        i = self._check(i)
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidArgument(f"value must be an integer, got {value!r}")
        if not 0 <= value <= 255:
            raise InvalidArgument(f"value {value} outside 0..255")
        self._values[i] = value

    def swap(self, a: int, b: int) -> None:
        a = self._check(a)
        b = self._check(b)
        if a == b:
            return
        values = self._values
        values[a], values[b] = values[b], values[a]

    def histogram(self) -> np.ndarray:
        """Count of each byte value; invariant under swaps."""
        return np.bincount(self._values, minlength=256)

    # ------------------------------------------------------------------ export
    def export_mono(self, buffer: Optional[SampleBuffer] = None) -> SampleBuffer:
        """Copy samples verbatim into an N x N single-channel byte buffer."""
        buffer = buffer if buffer is not None else SampleBuffer.mono()
        buffer.allocate(self.size, self.size, channels=1, dtype=np.uint8)
        buffer.pixels[...] = self._values.reshape(self.size, self.size)
        return buffer

    def export_rgba(self, buffer: Optional[SampleBuffer] = None) -> SampleBuffer:
        """
        Copy samples into an N x N RGBA float buffer.

        R, G and B receive the raw byte value (0..255, not normalized); A is 1.
        """
        buffer = buffer if buffer is not None else SampleBuffer.rgba()
        buffer.allocate(self.size, self.size, channels=4, dtype=np.float32)
        plane = self._values.reshape(self.size, self.size).astype(np.float32)
        buffer.pixels[..., 0] = plane
        buffer.pixels[..., 1] = plane
        buffer.pixels[..., 2] = plane
        buffer.pixels[..., 3] = 1.0
        return buffer


__all__ = ["SampleBuffer", "ValueGrid"]
