"""
Unit tests for the xoshiro128** random source.
"""

import pytest

from bluenoise import InvalidArgument, RandomSource


def test_known_answer_from_state():
    """First outputs for state (1, 2, 3, 4), worked out by hand."""
    rng = RandomSource.from_state((1, 2, 3, 4))
    assert rng.next_u32() == 11520
    assert rng.next_u32() == 0
    assert rng.next_u32() == 5927040


def test_same_seed_same_stream():
    a = RandomSource(1234)
    b = RandomSource(1234)
    assert [a.next_u32() for _ in range(50)] == [b.next_u32() for _ in range(50)]


def test_different_seeds_differ():
    a = RandomSource(1)
    b = RandomSource(2)
    assert [a.next_u32() for _ in range(8)] != [b.next_u32() for _ in range(8)]


def test_outputs_are_32_bit():
    rng = RandomSource(7)
    draws = [rng.next_u32() for _ in range(1000)]
    assert all(0 <= d < 2**32 for d in draws)
    # a decent generator sets the top bit about half the time
    high = sum(d >> 31 for d in draws)
    assert 400 < high < 600


def test_state_roundtrip_resumes_stream():
    rng = RandomSource(99)
    for _ in range(10):
        rng.next_u32()
    clone = RandomSource.from_state(rng.state)
    assert [rng.next_u32() for _ in range(20)] == [clone.next_u32() for _ in range(20)]


def test_seeded_state_is_never_zero():
    for seed in range(32):
        assert any(RandomSource(seed).state)


def test_uniform_int_range():
    rng = RandomSource(3)
    draws = [rng.uniform_int(10) for _ in range(500)]
    assert min(draws) >= 0 and max(draws) <= 9
    assert set(draws) == set(range(10))


def test_uniform_int_is_modulo_of_next_u32():
    a = RandomSource(5)
    b = RandomSource(5)
    for _ in range(20):
        assert a.uniform_int(37) == b.next_u32() % 37


def test_invalid_arguments():
    with pytest.raises(InvalidArgument):
        RandomSource(0).uniform_int(0)
    with pytest.raises(InvalidArgument):
        RandomSource.from_state((0, 0, 0, 0))
    with pytest.raises(InvalidArgument):
        RandomSource.from_state((1, 2, 3))
