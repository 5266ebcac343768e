import numpy as np
import pytest

from bayesian_coin import BeliefEngine
from coin_config import MODE_BATCH, MODE_GRID, MODE_INCREMENTAL
from coin_priors import BetaPrior, NormalPrior, UniformPrior
from metropolis import SamplerConfiguration


@pytest.fixture
def engine(rng):
    config = SamplerConfiguration(step_size=0.1, initial_guess=0.5, sample_count=2000)
    engine = BeliefEngine(config=config, rng=rng)
    engine.set_prior(UniformPrior())
    return engine


def test_new_engine_has_no_prior(rng):
    engine = BeliefEngine(rng=rng)
    assert not engine.has_prior
    assert engine.posterior is None
    assert engine.observe(heads=3) is None
    assert engine.counts.total == 0
    assert engine.advance_chain(5).steps == 0


def test_unknown_mode_is_rejected(rng, engine):
    with pytest.raises(ValueError):
        BeliefEngine(mode='gibbs', rng=rng)
    with pytest.raises(ValueError):
        engine.set_mode('gibbs')
    assert engine.mode == MODE_GRID


def test_set_prior_starts_new_epoch(engine):
    engine.observe(heads=4, tails=1)
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(10)

    density = engine.set_prior(BetaPrior(params={'alpha': 2, 'beta': 5}))
    assert engine.counts.total == 0
    np.testing.assert_array_equal(engine.posterior, density)
    assert not engine.chain.is_warm


def test_invalid_prior_keeps_previous_state(engine):
    engine.observe(heads=2, tails=2)
    prior = engine.prior.copy()
    with pytest.raises(ValueError):
        engine.set_prior(NormalPrior(params={'std': -1}))
    np.testing.assert_array_equal(engine.prior, prior)
    assert engine.counts.total == 4


def test_set_prior_from_sketch(engine):
    density = engine.set_prior([(0.2, 0.5), (0.4, 0.9)])
    assert density.sum() == pytest.approx(1.0)
    assert engine.stats('prior')[0] == pytest.approx(0.3, abs=0.02)


def test_observe_updates_grid_posterior(engine):
    engine.observe(heads=8, tails=2)
    mean, _, mode = engine.stats('posterior')
    assert mean == pytest.approx(9 / 12, abs=0.01)
    assert mode == pytest.approx(0.8, abs=0.01)
    assert engine.metropolis is None


def test_record_flip_array(engine):
    engine.record(np.array([1, 1, 0]))
    assert (engine.counts.heads, engine.counts.tails) == (2, 1)


def test_reset_observations_restores_prior(engine):
    engine.set_prior(BetaPrior(params={'alpha': 2, 'beta': 2}))
    engine.observe(heads=10)
    engine.reset_observations()
    assert engine.counts.total == 0
    np.testing.assert_array_equal(engine.posterior, engine.prior)


def test_clear_drops_prior(engine):
    engine.observe(heads=1)
    engine.clear()
    assert not engine.has_prior
    assert engine.posterior is None
    assert engine.counts.total == 0


def test_batch_mode_reruns_sampler_on_new_data(engine):
    engine.set_mode(MODE_BATCH)
    assert engine.metropolis is None

    engine.observe(heads=6, tails=4)
    first = engine.metropolis
    assert first.sum() == pytest.approx(1.0)

    engine.observe(heads=1)
    assert engine.metropolis is not first
    assert engine.batch.acceptance_rate is not None


def test_grid_mode_does_not_sample(engine):
    engine.observe(heads=5, tails=5)
    assert engine.metropolis is None
    assert not engine.chain.is_warm


def test_step_size_change_resets_chain(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(20)
    engine.configure(step_size=0.2)
    assert not engine.chain.is_warm
    assert engine.chain.config.step_size == 0.2


def test_initial_guess_change_resets_chain(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(20)
    engine.configure(initial_guess=0.3)
    assert engine.advance_chain(0).position == 0.3


def test_sample_count_change_keeps_chain(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(20)
    engine.configure(sample_count=5000)
    assert engine.chain.state.steps == 20
    assert engine.batch.config.sample_count == 5000


def test_invalid_configuration_leaves_settings(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(20)
    with pytest.raises(ValueError):
        engine.configure(step_size=0.0)
    with pytest.raises(ValueError):
        engine.configure(initial_guess=1.0)
    assert engine.config.step_size == 0.1
    assert engine.chain.state.steps == 20


def test_mode_switch_resets_chain(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(20)
    engine.set_mode(MODE_GRID)
    assert not engine.chain.is_warm
    assert engine.chain.state.steps == 0


def test_chain_survives_new_flips(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(10)
    engine.observe(heads=3)
    snapshot = engine.advance_chain(10)
    assert snapshot.steps == 20
    assert snapshot.histogram.sum() == 20


def test_reset_chain(engine):
    engine.set_mode(MODE_INCREMENTAL)
    engine.advance_chain(10)
    engine.reset_chain()
    snapshot = engine.chain.state.snapshot()
    assert snapshot.steps == 0
    assert snapshot.trail == []
    assert snapshot.histogram.sum() == 0
    assert snapshot.position is None


def test_stats_rejects_unknown_density(engine):
    with pytest.raises(ValueError):
        engine.stats('likelihood')
    assert engine.stats('metropolis') is None
