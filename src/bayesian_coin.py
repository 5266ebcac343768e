import logging

import numpy as np

from coin_config import (
    EPSILON,
    GRID_SIZE,
    MODE_BATCH,
    MODE_GRID,
    SAMPLING_MODES,
    TRAIL_LENGTH,
)
from coin_numerics import density_stats
from coin_priors import DiscretizedDomain, Prior, build_prior
from grid_posterior import GridPosteriorEngine, ObservationCounts
from metropolis import BatchMetropolisSampler, IncrementalChainStepper, SamplerConfiguration

logger = logging.getLogger(__name__)


class BeliefEngine:
    """
    Bayesian belief about a coin's bias, updated flip by flip.

    Owns the prior, the observation counts, the grid posterior and both
    Metropolis samplers, and applies the lifecycle rules between them:

    - a new prior resets the counts and the chain;
    - every data change recomputes the grid posterior, and in batch mode
      reruns the batch sampler;
    - changing step size or initial guess, switching mode, or an explicit
      reset sends the chain back to cold.

    All samplers draw from one numpy Generator, used in sequence.

    Attributes:
        domain: DiscretizedDomain the densities live on.
        prior: Current prior density, or None.
        counts: ObservationCounts of the current data epoch.
        mode: One of 'grid', 'batch', 'incremental'.
        metropolis: Last batch histogram, or None.
    """

    def __init__(self, config=None, mode=MODE_GRID, grid_size=GRID_SIZE, epsilon=EPSILON,
                 trail_length=TRAIL_LENGTH, rng=None):
        if mode not in SAMPLING_MODES:
            raise ValueError(f'unknown sampling mode {mode!r}, expected one of {SAMPLING_MODES}')

        self.domain = DiscretizedDomain(grid_size, epsilon)
        self.config = config if config is not None else SamplerConfiguration()
        self.mode = mode
        self.rng = rng if rng is not None else np.random.default_rng()

        self.prior = None
        self.counts = ObservationCounts()
        self.grid = GridPosteriorEngine(self.domain)
        self.batch = BatchMetropolisSampler(self.config, self.domain, rng=self.rng)
        self.chain = IncrementalChainStepper(self.config, self.domain, rng=self.rng,
                                             trail_length=trail_length)
        self.metropolis = None

    @property
    def has_prior(self):
        return self.prior is not None

    @property
    def posterior(self):
        return self.grid.posterior

    # Prior lifecycle

    def set_prior(self, request):
        """
        Build and install a new prior from a Prior instance or sketch points.

        Starts a new data epoch: counts are cleared, the posterior equals the
        prior and the chain goes cold. Validation errors leave the previous
        state untouched.
        """
        density = build_prior(request, self.domain)

        self.prior = density
        self.counts.reset()
        self.grid.reset(density)
        self.metropolis = None
        self.chain.reset()
        logger.info('New prior: %s', request if isinstance(request, Prior) else 'sketch')
        return density

    def clear(self):
        """Forget the prior and all data."""
        self.prior = None
        self.counts.reset()
        self.grid.reset()
        self.metropolis = None
        self.chain.reset()
        logger.info('Engine cleared')

    def reset_observations(self):
        """Drop the observed flips; the posterior goes back to the prior."""
        self.counts.reset()
        self.grid.reset(self.prior)
        self.metropolis = None
        logger.info('Observations cleared')

    # Data

    def observe(self, heads=0, tails=0):
        """
        Add observed flips and update the posterior estimates.

        Ignored while no prior exists.

        Returns:
            The grid posterior, or None without a prior.
        """
        if not self.has_prior:
            logger.debug('Ignoring %d heads / %d tails: no prior yet', heads, tails)
            return None

        self.counts.add(heads, tails)
        self._refresh()
        return self.posterior

    def record(self, flips):
        """Add an array of outcomes (1 heads, 0 tails)."""
        if not self.has_prior:
            logger.debug('Ignoring %d flips: no prior yet', np.size(flips))
            return None

        self.counts.record(flips)
        self._refresh()
        return self.posterior

    def _refresh(self):
        self.update_grid_posterior()
        if self.mode == MODE_BATCH:
            self.run_batch_sampler()

    def update_grid_posterior(self):
        if not self.has_prior:
            return None
        return self.grid.update(self.prior, self.counts)

    # Samplers

    def configure(self, step_size=None, initial_guess=None, sample_count=None):
        """
        Change sampler settings. A new step size or initial guess resets the chain.
        """
        config = self.config.replace(step_size=step_size, initial_guess=initial_guess,
                                     sample_count=sample_count)
        if config == self.config:
            return self.config

        chain_changed = (config.step_size != self.config.step_size
                         or config.initial_guess != self.config.initial_guess)
        self.config = config
        self.batch.config = config
        if chain_changed:
            self.chain.reset(config)
        else:
            self.chain.config = config
        logger.info('Sampler settings changed to %r', config)

        if self.mode == MODE_BATCH and self.has_prior and self.counts.total > 0:
            self.run_batch_sampler()
        return config

    def set_mode(self, mode):
        if mode not in SAMPLING_MODES:
            raise ValueError(f'unknown sampling mode {mode!r}, expected one of {SAMPLING_MODES}')
        if mode == self.mode:
            return

        self.mode = mode
        self.metropolis = None
        self.chain.reset()
        logger.info('Sampling mode set to %s', mode)

        if mode == MODE_BATCH and self.has_prior and self.counts.total > 0:
            self.run_batch_sampler()

    def run_batch_sampler(self):
        """Fresh batch estimate for the current prior and counts."""
        if not self.has_prior:
            return None
        self.metropolis = self.batch.run(self.prior, self.counts)
        return self.metropolis

    def advance_chain(self, n_steps=1):
        """
        Advance the incremental chain; a no-op without a prior.

        Returns:
            ChainSnapshot(histogram, trail, position, steps).
        """
        return self.chain.advance(n_steps, self.prior, self.counts)

    def reset_chain(self):
        self.chain.reset()

    @property
    def chain_density(self):
        return self.chain.density()

    # Summaries

    def stats(self, which='posterior'):
        """(mean, std, mode) of 'prior', 'posterior', 'metropolis' or 'chain'."""
        densities = {
            'prior': self.prior,
            'posterior': self.posterior,
            'metropolis': self.metropolis,
            'chain': self.chain_density,
        }
        if which not in densities:
            raise ValueError(f'unknown density {which!r}, expected one of {tuple(densities)}')

        density = densities[which]
        if density is None:
            return None
        return density_stats(self.domain, density)

