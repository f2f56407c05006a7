"""
Greedy swap optimizer for blue-noise dither masks.

One call to ``step()`` is one tick of the generator:

1.  **Baseline:** evaluate the energy of the current grid.
2.  **Trials:** draw ``trials_per_step`` random index pairs. A pair with
    a == b is skipped (the slot is consumed, nothing is redrawn). Otherwise
    the two cells are swapped and the grid is re-evaluated.
3.  **Decision:** a swap that strictly lowers the energy is committed and
    becomes the new baseline; anything else is reverted by swapping back.

No uphill move is ever accepted, so the energy after a tick is never higher
than before it. Trials run strictly one after another; only the energy sum
inside each evaluation runs in parallel.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .energy import SIGMA, EnergyModel
from .errors import InvalidArgument
from .grid import SampleBuffer, ValueGrid
from .random_source import DEFAULT_SEED, RandomSource
from .reducer import ParallelReducer

TRIALS_PER_STEP = 16


class TrialState(enum.Enum):
    IDLE = "idle"
    PROPOSED = "proposed"
    COMMITTED = "committed"
    REVERTED = "reverted"


@dataclass(frozen=True)
class ImprovementEvent:
    """Emitted for every committed swap."""

    energy_before: float
    energy_after: float
    a: int
    b: int


@dataclass
class StepReport:
    energy_before: float
    energy_after: float
    accepted: int = 0
    rejected: int = 0
    skipped: int = 0
    evaluations: int = 0


@dataclass
class OptimizerConfig:
    """Knobs for the mask generator. ``size`` is the grid dimension N."""

    size: int = 64
    trials_per_step: int = TRIALS_PER_STEP
    sigma: float = SIGMA
    seed: int = DEFAULT_SEED
    backend: str = "numba"
    workers: Optional[int] = None
    verbose: bool = True

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "OptimizerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise InvalidArgument(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BlueNoiseOptimizer:
    """
    Owns the value grid, the trial random stream and the energy model.

    The random stream is consumed only on the calling thread; the reducer's
    workers only ever read the grid.
    """

    def __init__(self, config: OptimizerConfig | None = None) -> None:
        self.config = config or OptimizerConfig()
        if self.config.trials_per_step < 0:
            raise InvalidArgument(
                f"trials_per_step must be >= 0, got {self.config.trials_per_step}"
            )
        self.reducer = ParallelReducer(workers=self.config.workers, backend=self.config.backend)
        self.model = EnergyModel(sigma=self.config.sigma, reducer=self.reducer)
        self.random = RandomSource(self.config.seed)

        self.grid: Optional[ValueGrid] = None
        self.state = TrialState.IDLE
        self.evaluations = 0
        self.ticks = 0
        self.history: List[ImprovementEvent] = []
        self._listeners: List[Callable[[ImprovementEvent], None]] = []

    # ------------------------------------------------------------------ setup
    def allocate(self, size: int | None = None) -> None:
        """
        Create (or reset) the grid with fresh random bytes.

        The initial fill uses its own generator seeded from the config, so it
        does not consume the trial stream.
        """
        size = self.config.size if size is None else size
        grid = ValueGrid()
        grid.allocate(size, RandomSource(self.config.seed))
        self.grid = grid
        self.config.size = grid.size
        self.state = TrialState.IDLE
        if self.config.verbose:
            print(f"Allocated {grid.size}x{grid.size} mask (seed={self.config.seed})")

    def load(self, values) -> None:
        """Adopt an explicit (N, N) array as the current grid."""
        self.grid = ValueGrid.from_values(values)
        self.config.size = self.grid.size
        self.state = TrialState.IDLE

    def add_listener(self, callback: Callable[[ImprovementEvent], None]) -> None:
        self._listeners.append(callback)

    def _require_grid(self) -> ValueGrid:
        if self.grid is None:
            raise RuntimeError("Grid has not been allocated. Call allocate() first.")
        return self.grid

    # ------------------------------------------------------------------ queries
    def energy(self) -> float:
        grid = self._require_grid()
        self.evaluations += 1
        return self.model.total(grid)

    def sample(self, x: int, y: int) -> int:
        return self._require_grid().get_xy(x, y)

    def export_mono(self, buffer: Optional[SampleBuffer] = None) -> SampleBuffer:
        return self._require_grid().export_mono(buffer)

    def export_rgba(self, buffer: Optional[SampleBuffer] = None) -> SampleBuffer:
        return self._require_grid().export_rgba(buffer)

    def as_array(self) -> np.ndarray:
        return self._require_grid().as_array()

    # ------------------------------------------------------------------ ticks
    def _emit(self, event: ImprovementEvent) -> None:
        self.history.append(event)
        if self.config.verbose:
            print(f"flipped {event.energy_before:f} -> {event.energy_after:f} ({event.a}, {event.b})")
        for callback in self._listeners:
            callback(event)

    def step(self) -> StepReport:
        """Run one tick of randomized swap trials."""
        grid = self._require_grid()
        m = len(grid)
        start_evals = self.evaluations

        current = self.energy()
        report = StepReport(energy_before=current, energy_after=current)

        for _ in range(self.config.trials_per_step):
            a = self.random.uniform_int(m)
            b = self.random.uniform_int(m)
            if a == b:
                report.skipped += 1
                continue

            grid.swap(a, b)
            self.state = TrialState.PROPOSED
            new = self.energy()
            if new < current:
                self.state = TrialState.COMMITTED
                report.accepted += 1
                self._emit(ImprovementEvent(current, new, a, b))
                current = new
            else:
                grid.swap(a, b)
                self.state = TrialState.REVERTED
                report.rejected += 1
            self.state = TrialState.IDLE

        report.energy_after = current
        report.evaluations = self.evaluations - start_evals
        self.ticks += 1
        return report

    def run(self, steps: int) -> List[StepReport]:
        """Perform ``steps`` ticks back to back."""
        if steps < 0:
            raise InvalidArgument(f"steps must be >= 0, got {steps}")
        return [self.step() for _ in range(steps)]


__all__ = [
    "TRIALS_PER_STEP",
    "TrialState",
    "ImprovementEvent",
    "StepReport",
    "OptimizerConfig",
    "BlueNoiseOptimizer",
]
