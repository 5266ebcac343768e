import numpy as np
import pytest

from coin_priors import DiscretizedDomain
from grid_posterior import ObservationCounts


@pytest.fixture
def domain():
    return DiscretizedDomain()


@pytest.fixture
def uniform(domain):
    return domain.uniform()


@pytest.fixture
def rng():
    """Seeded generator so sampler tests are reproducible."""
    return np.random.default_rng(20240601)


@pytest.fixture
def counts():
    return ObservationCounts(heads=7, tails=3)
