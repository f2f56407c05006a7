"""
Blue-Noise Mask Library

Builds blue-noise dither masks by greedy swap optimization of a pairwise
spatial-plus-intensity energy on a toroidal grid:
- ValueGrid: N x N byte samples with swap-only mutation and exports
- EnergyModel / ParallelReducer: fork-join evaluation of the pairwise energy
- BlueNoiseOptimizer: one tick of randomized swap trials per step()
"""

from .errors import BlueNoiseError, IndexOutOfRange, InvalidArgument
from .random_source import RandomSource
from .grid import SampleBuffer, ValueGrid
from .energy import SIGMA, EnergyModel, sequential_energy
from .reducer import ParallelReducer
from .optimizer import (
    BlueNoiseOptimizer,
    ImprovementEvent,
    OptimizerConfig,
    StepReport,
    TrialState,
)
from . import utils

__all__ = [
    # Core
    "BlueNoiseOptimizer",
    "ValueGrid",
    "SampleBuffer",
    "EnergyModel",
    "ParallelReducer",
    "RandomSource",
    "sequential_energy",
    "SIGMA",
    # Configuration and events
    "OptimizerConfig",
    "ImprovementEvent",
    "StepReport",
    "TrialState",
    # Errors
    "BlueNoiseError",
    "InvalidArgument",
    "IndexOutOfRange",
    # Utilities
    "utils",
]
