"""Exception types raised by the blue-noise mask library."""

from __future__ import annotations


class BlueNoiseError(Exception):
    """Base class for all library errors."""


class InvalidArgument(BlueNoiseError, ValueError):
    """A precondition on an argument (size, range, sigma, ...) was violated."""


class IndexOutOfRange(BlueNoiseError, IndexError):
    """A flat grid index fell outside [0, N*N)."""


__all__ = ["BlueNoiseError", "InvalidArgument", "IndexOutOfRange"]
