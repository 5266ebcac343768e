import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pytest

from bayesian_coin import BeliefEngine
from coin_config import MODE_BATCH, MODE_INCREMENTAL
from metropolis import SamplerConfiguration
from utils import mk_prior


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


def test_plot_empty_engine(rng):
    from plotting import plot_beliefs

    ax = plot_beliefs(BeliefEngine(rng=rng))
    assert ax.get_xlim() == (0.0, 1.0)
    assert ax.get_legend() is None


def test_plot_batch_beliefs(rng):
    from plotting import plot_beliefs

    engine = BeliefEngine(config=SamplerConfiguration(sample_count=1000), mode=MODE_BATCH, rng=rng)
    engine.set_prior(mk_prior('beta', alpha=2, beta=2))
    engine.observe(heads=3, tails=1)

    ax = plot_beliefs(engine, true_prob=0.6)
    labels = [text.get_text() for text in ax.get_legend().get_texts()]
    assert set(labels) == {'Prior', 'Metropolis', 'Posterior', 'true p = 0.60'}
    assert ax.get_title() == 'Flips: 4   H: 3   T: 1'


def test_plot_chain_trail(rng):
    from plotting import plot_beliefs

    engine = BeliefEngine(mode=MODE_INCREMENTAL, rng=rng)
    engine.set_prior(mk_prior('uniform'))
    engine.advance_chain(25)

    fig, ax = plt.subplots()
    assert plot_beliefs(engine, ax=ax) is ax
    labels = [text.get_text() for text in ax.get_legend().get_texts()]
    assert 'Chain trail' in labels
