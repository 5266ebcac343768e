import math

import numpy as np
import pytest

from coin_numerics import (
    density_stats,
    floor_and_normalize,
    gaussian_proposal,
    interpolate_density,
    log_normalize,
    log_posterior,
    metropolis_step,
    normalize,
    reflect,
)
from grid_posterior import grid_log_posterior, ObservationCounts


def test_normalize_sums_to_one():
    result = normalize([1.0, 3.0])
    np.testing.assert_allclose(result, [0.25, 0.75])


def test_normalize_zero_sum_is_none():
    assert normalize(np.zeros(5)) is None
    assert normalize([np.nan, 1.0]) is None


def test_floor_and_normalize_keeps_epsilon_and_unit_mass():
    raw = np.zeros(200)
    raw[100] = 40.0
    result = floor_and_normalize(raw, 1e-6)
    assert result.sum() == pytest.approx(1.0, abs=1e-9)
    assert result.min() >= 1e-6
    assert result[100] > 0.99


def test_floor_and_normalize_without_mass_is_uniform():
    result = floor_and_normalize(np.zeros(4), 1e-6)
    np.testing.assert_allclose(result, 0.25)


def test_log_normalize_survives_large_logs():
    result = log_normalize([-5000.0, -5001.0, -1e6])
    assert result.sum() == pytest.approx(1.0)
    assert result[0] == pytest.approx(1.0 / (1.0 + math.exp(-1.0)))
    assert result[2] == 0.0


def test_log_normalize_degenerate():
    assert log_normalize([-np.inf, -np.inf]) is None
    assert log_normalize([0.0, np.nan]) is None


@pytest.mark.parametrize('v, expected', [
    (-3.7, 0.3),
    (4.2, 0.2),
    (-0.25, 0.25),
    (1.25, 0.75),
    (2.0, 0.0),
    (-1.0, 1.0),
])
def test_reflect_far_outside(v, expected):
    assert reflect(v) == pytest.approx(expected)


def test_reflect_is_identity_inside_unit_interval():
    for v in np.linspace(0.0, 1.0, 101):
        assert reflect(v) == v
        assert reflect(reflect(v)) == v


def test_reflect_always_lands_in_unit_interval(rng):
    for v in rng.normal(0.0, 50.0, size=1000):
        assert 0.0 <= reflect(v) <= 1.0


def test_reflect_rejects_non_finite():
    with pytest.raises(ValueError):
        reflect(np.inf)


def test_gaussian_proposal_stays_in_support(rng):
    for _ in range(500):
        assert 0.0 <= gaussian_proposal(0.99, 0.5, rng) <= 1.0


def test_interpolate_density_matches_cells_at_midpoints(domain, rng):
    density = rng.random(domain.n)
    for i in (0, 17, 100, domain.n - 1):
        assert interpolate_density(domain.values[i], density) == pytest.approx(density[i])


def test_interpolate_density_between_cells(domain):
    density = np.arange(domain.n, dtype=float)
    x = (domain.values[10] + domain.values[11]) / 2
    assert interpolate_density(x, density) == pytest.approx(10.5)
    # outside the outer midpoints the end cells are used
    assert interpolate_density(0.001, density) == 0.0
    assert interpolate_density(0.999, density) == domain.n - 1


def test_log_posterior_outside_support():
    density = np.full(10, 0.1)
    assert log_posterior(0.0, density, 1, 1) == -math.inf
    assert log_posterior(1.0, density, 1, 1) == -math.inf
    assert log_posterior(-0.2, density, 0, 0) == -math.inf


def test_log_posterior_nonpositive_prior():
    density = np.zeros(10)
    assert log_posterior(0.5, density, 0, 0) == -math.inf


def test_log_posterior_matches_grid_at_midpoints(domain, rng):
    prior = normalize(rng.random(domain.n) + 0.1)
    counts = ObservationCounts(12, 5)
    grid = grid_log_posterior(prior, counts, domain)
    for i in (0, 50, 123, domain.n - 1):
        assert log_posterior(domain.values[i], prior, counts.heads, counts.tails) == pytest.approx(grid[i])


def test_metropolis_step_never_accepts_impossible_proposal(rng):
    def log_target(x):
        return -math.inf if x > 0.5 else 0.0

    x, log_px = 0.4, 0.0
    for _ in range(500):
        x, log_px, _ = metropolis_step(x, log_px, log_target, 0.3, rng)
        assert x <= 0.5


def test_metropolis_step_always_accepts_uphill(rng):
    x, log_px, accepted = metropolis_step(0.5, -math.inf, lambda x: 0.0, 0.1, rng)
    assert accepted
    assert log_px == 0.0


def test_density_stats(domain):
    density = np.zeros(domain.n)
    density[[20, 40]] = 1.0
    mean, std, mode = density_stats(domain, density)
    assert mean == pytest.approx((domain.values[20] + domain.values[40]) / 2)
    assert std == pytest.approx((domain.values[40] - domain.values[20]) / 2)
    assert mode == domain.values[20]
    assert density_stats(domain, np.zeros(domain.n)) is None
