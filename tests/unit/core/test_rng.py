"""Unit tests for the deterministic random number generator."""

from __future__ import annotations

import math

import pytest

from liftlab.core.rng import (
    LCGRandom,
    SeededRNG,
    create_seeded_rng,
    normal_random,
    poisson_spawn,
    reference_rng,
    rng_from_string,
    select_weighted,
    timestamped_rng,
    weighted_floor_selection,
)

MOD = 2**32


def _lcg_next(state: int) -> int:
    return (1664525 * state + 1013904223) % MOD


class CountingRNG:
    """Wraps a generator and counts draws."""

    def __init__(self, inner):
        self._inner = inner
        self.draws = 0

    @property
    def seed(self):
        return self._inner.seed

    def next_float(self):
        self.draws += 1
        return self._inner.next_float()


# =============================================================================
# LCGRandom
# =============================================================================


class TestLCGRandom:
    def test_first_value_follows_recurrence(self):
        rng = LCGRandom(42)
        assert rng.next_float() == _lcg_next(42) / MOD

    def test_sequence_follows_recurrence(self):
        rng = LCGRandom(7)
        state = 7
        for _ in range(20):
            state = _lcg_next(state)
            assert rng.next_float() == state / MOD
        assert rng.seed == state

    def test_same_seed_same_sequence(self):
        a = create_seeded_rng(2024)
        b = create_seeded_rng(2024)
        assert [a.next_float() for _ in range(100)] == [b.next_float() for _ in range(100)]

    def test_different_seeds_differ(self):
        a = create_seeded_rng(1)
        b = create_seeded_rng(2)
        assert [a.next_float() for _ in range(5)] != [b.next_float() for _ in range(5)]

    @pytest.mark.parametrize("seed,expected", [(0, 1), (-5, 5), (5, 5)])
    def test_seed_normalization(self, seed, expected):
        assert LCGRandom(seed).seed == expected

    def test_float_range(self):
        rng = create_seeded_rng(3)
        values = [rng.next_float() for _ in range(1000)]
        assert all(0.0 <= v < 1.0 for v in values)

    def test_next_int_bounds(self):
        rng = create_seeded_rng(11)
        values = [rng.next_int(3, 8) for _ in range(1000)]
        assert min(values) == 3
        assert max(values) == 7

    def test_next_int_max(self):
        rng = create_seeded_rng(11)
        assert all(0 <= rng.next_int_max(4) < 4 for _ in range(200))

    @pytest.mark.parametrize("low,high", [(5, 5), (6, 2)])
    def test_next_int_invalid_range(self, low, high):
        with pytest.raises(ValueError, match="Invalid range"):
            create_seeded_rng(1).next_int(low, high)

    def test_next_float_range(self):
        rng = create_seeded_rng(9)
        assert all(2.5 <= rng.next_float_range(2.5, 3.0) < 3.0 for _ in range(200))
        with pytest.raises(ValueError):
            rng.next_float_range(1.0, 1.0)

    def test_next_boolean_extremes(self):
        rng = create_seeded_rng(5)
        assert not any(rng.next_boolean(0.0) for _ in range(100))
        assert all(rng.next_boolean(1.0) for _ in range(100))

    @pytest.mark.parametrize("p", [-0.1, 1.5])
    def test_next_boolean_invalid_probability(self, p):
        with pytest.raises(ValueError, match="Probability"):
            create_seeded_rng(5).next_boolean(p)

    def test_choice(self):
        rng = create_seeded_rng(8)
        items = ["a", "b", "c"]
        picks = {rng.choice(items) for _ in range(100)}
        assert picks == set(items)

    def test_choice_empty(self):
        with pytest.raises(ValueError, match="empty"):
            create_seeded_rng(8).choice([])

    def test_shuffle_in_place_permutation(self):
        rng = create_seeded_rng(8)
        items = list(range(20))
        result = rng.shuffle(items)
        assert result is items
        assert sorted(items) == list(range(20))
        assert items != list(range(20))

    def test_shuffle_deterministic(self):
        a = create_seeded_rng(99).shuffle(list(range(10)))
        b = create_seeded_rng(99).shuffle(list(range(10)))
        assert a == b

    def test_satisfies_protocol(self):
        assert isinstance(LCGRandom(1), SeededRNG)


class TestFactories:
    def test_reference_rng_seed(self):
        assert reference_rng().seed == 12345

    def test_timestamped_rng_is_usable(self):
        assert 0.0 <= timestamped_rng().next_float() < 1.0

    def test_rng_from_string_is_stable(self):
        a = rng_from_string("lobby")
        b = rng_from_string("lobby")
        assert a.seed == b.seed
        assert a.next_float() == b.next_float()

    def test_rng_from_string_hash(self):
        # "ab" -> 97 * 31 + 98
        assert rng_from_string("ab").seed == 97 * 31 + 98

    def test_rng_from_empty_string(self):
        assert rng_from_string("").seed == 1


# =============================================================================
# Distributions
# =============================================================================


class TestPoissonSpawn:
    def test_zero_rate_returns_zero_without_drawing(self):
        rng = CountingRNG(create_seeded_rng(1))
        assert poisson_spawn(rng, 0.0, 1.0) == 0
        assert rng.draws == 0

    def test_zero_interval_returns_zero(self):
        assert poisson_spawn(create_seeded_rng(1), 10.0, 0.0) == 0

    def test_small_lambda_mean(self):
        rng = create_seeded_rng(17)
        samples = [poisson_spawn(rng, 3.0, 1.0) for _ in range(5000)]
        assert all(s >= 0 for s in samples)
        assert sum(samples) / len(samples) == pytest.approx(3.0, rel=0.1)

    def test_large_lambda_uses_normal_approximation(self):
        rng = CountingRNG(create_seeded_rng(17))
        poisson_spawn(rng, 50.0, 1.0)
        # Box-Muller takes exactly two uniforms
        assert rng.draws == 2

    def test_large_lambda_mean(self):
        rng = create_seeded_rng(23)
        samples = [poisson_spawn(rng, 40.0, 1.0) for _ in range(3000)]
        assert all(s >= 0 for s in samples)
        assert sum(samples) / len(samples) == pytest.approx(40.0, rel=0.05)

    def test_deterministic(self):
        a = [poisson_spawn(create_seeded_rng(4), 5.0, 0.5) for _ in range(3)]
        b = [poisson_spawn(create_seeded_rng(4), 5.0, 0.5) for _ in range(3)]
        assert a == b


class TestNormalRandom:
    def test_moments(self):
        rng = create_seeded_rng(31)
        samples = [normal_random(rng, 10.0, 2.0) for _ in range(5000)]
        mean = sum(samples) / len(samples)
        var = sum((s - mean) ** 2 for s in samples) / len(samples)
        assert mean == pytest.approx(10.0, abs=0.15)
        assert math.sqrt(var) == pytest.approx(2.0, rel=0.1)


class TestWeightedFloorSelection:
    def test_in_range(self):
        rng = create_seeded_rng(2)
        assert all(0 <= weighted_floor_selection(rng, 6) < 6 for _ in range(500))

    def test_ground_floor_favoured(self):
        rng = create_seeded_rng(2)
        picks = [weighted_floor_selection(rng, 10, ground_floor_weight=5.0) for _ in range(4000)]
        ground = picks.count(0)
        middle = picks.count(5)
        assert ground > 2 * middle

    def test_invalid_floor_count(self):
        with pytest.raises(ValueError):
            weighted_floor_selection(create_seeded_rng(1), 0)


class FixedRNG:
    def __init__(self, value):
        self.value = value

    @property
    def seed(self):
        return 0

    def next_float(self):
        return self.value


class TestSelectWeighted:
    @pytest.mark.parametrize("draw,expected", [(0.1, 0), (0.5, 1), (0.74, 1), (0.99, 2)])
    def test_index_follows_cumulative_weight(self, draw, expected):
        assert select_weighted(FixedRNG(draw), [1.0, 2.0, 1.0]) == expected

    def test_one_draw_per_pick(self):
        rng = CountingRNG(create_seeded_rng(3))
        select_weighted(rng, [1.0, 1.0, 1.0, 1.0])
        assert rng.draws == 1
