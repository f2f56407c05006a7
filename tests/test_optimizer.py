"""
Unit tests for the greedy swap optimizer.
"""

import numpy as np
import pytest

from bluenoise import (
    BlueNoiseOptimizer,
    ImprovementEvent,
    InvalidArgument,
    OptimizerConfig,
    RandomSource,
    TrialState,
    sequential_energy,
)


def _optimizer(size=8, **kwargs):
    kwargs.setdefault("verbose", False)
    opt = BlueNoiseOptimizer(OptimizerConfig(size=size, **kwargs))
    opt.allocate()
    return opt


def _clustered(n=8):
    """Top half all 0, bottom half all 255: almost any cross swap helps."""
    arr = np.zeros((n, n), dtype=np.uint8)
    arr[n // 2:, :] = 255
    return arr


def test_multiset_is_invariant():
    opt = _optimizer(8, seed=3)
    before = opt.grid.histogram().copy()
    opt.run(4)
    assert np.array_equal(opt.grid.histogram(), before)


def test_energy_never_increases():
    opt = _optimizer(8, seed=4)
    previous = opt.energy()
    for _ in range(4):
        report = opt.step()
        assert report.energy_after <= report.energy_before
        now = opt.energy()
        assert now <= previous
        assert abs(now - report.energy_after) < 1e-12
        previous = now


def test_reported_energy_matches_sequential_sum():
    opt = _optimizer(8, seed=5, backend="threads", workers=3)
    report = opt.step()
    expected = sequential_energy(opt.grid.values, 8, opt.config.sigma)
    assert abs(report.energy_after - expected) < 1e-9


def test_bounded_evaluation_count():
    opt = _optimizer(8, seed=6)
    for _ in range(3):
        start = opt.evaluations
        report = opt.step()
        assert opt.evaluations - start == report.evaluations
        assert report.evaluations <= 16 + 1
        assert report.evaluations == 1 + report.accepted + report.rejected
        assert report.accepted + report.rejected + report.skipped == 16


def test_trials_per_step_is_configurable():
    opt = _optimizer(8, seed=6, trials_per_step=3)
    report = opt.step()
    assert report.accepted + report.rejected + report.skipped == 3
    assert report.evaluations <= 4

    idle = _optimizer(8, trials_per_step=0)
    before = idle.as_array()
    report = idle.step()
    assert report.evaluations == 1
    assert np.array_equal(idle.as_array(), before)

    with pytest.raises(InvalidArgument):
        BlueNoiseOptimizer(OptimizerConfig(trials_per_step=-1))


def test_single_cell_grid_is_unchanged():
    opt = _optimizer(1)
    before = opt.as_array()
    report = opt.step()
    assert report.skipped == 16
    assert report.accepted == 0
    assert report.evaluations == 1
    assert report.energy_after == 0.0
    assert np.array_equal(opt.as_array(), before)


def test_clustered_grid_improves_and_emits_events():
    opt = BlueNoiseOptimizer(OptimizerConfig(seed=1, verbose=False))
    opt.load(_clustered(8))
    seen = []
    opt.add_listener(seen.append)
    reports = opt.run(3)

    accepted = sum(r.accepted for r in reports)
    assert accepted > 0
    assert seen == opt.history
    assert len(seen) == accepted
    for event in seen:
        assert isinstance(event, ImprovementEvent)
        assert event.energy_after < event.energy_before
        assert event.a != event.b
        assert 0 <= event.a < 64 and 0 <= event.b < 64
    # within a tick each commit starts from the previous commit's energy
    first = seen[: reports[0].accepted]
    for prev, nxt in zip(first, first[1:]):
        assert nxt.energy_before == prev.energy_after
    assert reports[-1].energy_after < reports[0].energy_before


def test_listener_sees_committed_state():
    opt = BlueNoiseOptimizer(OptimizerConfig(seed=1, verbose=False))
    opt.load(_clustered(8))
    states = []
    opt.add_listener(lambda event: states.append(opt.state))
    opt.run(2)
    assert states and all(s is TrialState.COMMITTED for s in states)
    assert opt.state is TrialState.IDLE


def test_rejected_trials_restore_grid_exactly():
    # all-equal grid: every swap leaves the energy unchanged, so every trial reverts
    opt = BlueNoiseOptimizer(OptimizerConfig(seed=2, backend="sequential", verbose=False))
    arr = np.full((4, 4), 128, dtype=np.uint8)
    opt.load(arr)
    report = opt.step()
    assert report.accepted == 0
    assert np.array_equal(opt.as_array(), arr)


def test_trial_indices_follow_random_stream():
    opt = BlueNoiseOptimizer(OptimizerConfig(seed=9, verbose=False))
    opt.load(_clustered(8))
    opt.step()
    rng = RandomSource(9)
    pairs = [(rng.next_u32() % 64, rng.next_u32() % 64) for _ in range(16)]
    for event in opt.history:
        assert (event.a, event.b) in pairs


def test_same_seed_is_deterministic():
    a = _optimizer(8, seed=12)
    b = _optimizer(8, seed=12)
    a.run(2)
    b.run(2)
    assert np.array_equal(a.as_array(), b.as_array())
    assert [(e.a, e.b) for e in a.history] == [(e.a, e.b) for e in b.history]


def test_step_before_allocate():
    opt = BlueNoiseOptimizer(OptimizerConfig(verbose=False))
    with pytest.raises(RuntimeError):
        opt.step()
    with pytest.raises(RuntimeError):
        opt.energy()


def test_failed_allocate_keeps_previous_grid():
    opt = _optimizer(4)
    before = opt.as_array()
    with pytest.raises(InvalidArgument):
        opt.allocate(0)
    with pytest.raises(InvalidArgument):
        opt.allocate(-5)
    assert np.array_equal(opt.as_array(), before)
    assert opt.config.size == 4


def test_exports_and_sample_access():
    opt = _optimizer(4)
    mono = opt.export_mono()
    rgba = opt.export_rgba()
    assert mono.pixels.shape == (4, 4)
    assert rgba.pixels.shape == (4, 4, 4)
    assert opt.sample(3, 1) == mono.pixels[1, 3] == rgba.pixels[1, 3, 0]


def test_verbose_prints_flips(capsys):
    opt = BlueNoiseOptimizer(OptimizerConfig(seed=1, verbose=True))
    opt.load(_clustered(8))
    report = opt.step()
    out = capsys.readouterr().out
    assert out.count("flipped ") == report.accepted


def test_config_from_dict():
    config = OptimizerConfig.from_dict({"size": 16, "trials_per_step": 4, "seed": 7})
    assert (config.size, config.trials_per_step, config.seed) == (16, 4, 7)
    assert config.to_dict()["sigma"] == 2.1
    with pytest.raises(InvalidArgument):
        OptimizerConfig.from_dict({"temperature": 1.0})


def test_trial_draws_use_uniform_int():
    calls = []
    opt = _optimizer(4, seed=13, trials_per_step=5)
    original = opt.random.uniform_int

    def spy(n):
        calls.append(n)
        return original(n)

    opt.random.uniform_int = spy
    opt.step()
    assert calls == [16] * 10
