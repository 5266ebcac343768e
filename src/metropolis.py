from collections import deque, namedtuple
import logging
import math

import numpy as np

from coin_config import (
    BURN_IN_FRACTION,
    DEFAULT_INITIAL_GUESS,
    DEFAULT_SAMPLE_COUNT,
    DEFAULT_STEP_SIZE,
    TRAIL_LENGTH,
)
from coin_numerics import log_posterior, metropolis_step, normalize

logger = logging.getLogger(__name__)


class SamplerConfiguration:
    """
    Validated settings shared by the batch sampler and the incremental chain.

    Args:
        step_size: Standard deviation of the Gaussian proposal, > 0.
        initial_guess: Starting position, strictly inside (0, 1).
        sample_count: Total steps of a batch run, a positive integer.
        burn_in_fraction: Leading share of a batch run to discard, in [0, 1).

    Raises:
        ValueError: If any setting is out of range. Nothing is clamped.
    """

    def __init__(self, step_size=DEFAULT_STEP_SIZE, initial_guess=DEFAULT_INITIAL_GUESS,
                 sample_count=DEFAULT_SAMPLE_COUNT, burn_in_fraction=BURN_IN_FRACTION):
        if not (math.isfinite(step_size) and step_size > 0):
            raise ValueError(f'step size must be positive, got {step_size}')
        if not 0.0 < initial_guess < 1.0:
            raise ValueError(f'initial guess must lie strictly inside (0, 1), got {initial_guess}')
        if isinstance(sample_count, bool) or int(sample_count) != sample_count or sample_count <= 0:
            raise ValueError(f'sample count must be a positive integer, got {sample_count}')
        if not 0.0 <= burn_in_fraction < 1.0:
            raise ValueError(f'burn-in fraction must lie in [0, 1), got {burn_in_fraction}')

        self.step_size = float(step_size)
        self.initial_guess = float(initial_guess)
        self.sample_count = int(sample_count)
        self.burn_in_fraction = float(burn_in_fraction)

    @property
    def burn_in(self):
        return int(self.burn_in_fraction * self.sample_count)

    def replace(self, **changes):
        """Validated copy with some settings changed."""
        settings = {
            'step_size': self.step_size,
            'initial_guess': self.initial_guess,
            'sample_count': self.sample_count,
            'burn_in_fraction': self.burn_in_fraction,
        }
        settings.update({k: v for k, v in changes.items() if v is not None})
        return SamplerConfiguration(**settings)

    def __eq__(self, other):
        if not isinstance(other, SamplerConfiguration):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return (f'SamplerConfiguration(step_size={self.step_size}, initial_guess={self.initial_guess}, '
                f'sample_count={self.sample_count}, burn_in_fraction={self.burn_in_fraction})')


def _log_target(prior, counts):
    heads, tails = counts.heads, counts.tails
    return lambda x: log_posterior(x, prior, heads, tails)


class BatchMetropolisSampler:
    """
    Metropolis chain restarted from the initial guess on every run.

    The first `config.burn_in` samples are discarded; the rest are binned on
    the domain and returned as a normalized histogram.

    Attributes:
        acceptance_rate: Share of accepted proposals in the last run.
    """

    def __init__(self, config, domain, rng=None):
        self.config = config
        self.domain = domain
        self.rng = rng if rng is not None else np.random.default_rng()
        self.acceptance_rate = None

    def run(self, prior, counts):
        config = self.config
        log_target = _log_target(prior, counts)

        x = config.initial_guess
        log_px = log_target(x)
        histogram = np.zeros(self.domain.n)
        accepted = 0

        for i in range(config.sample_count):
            x, log_px, moved = metropolis_step(x, log_px, log_target, config.step_size, self.rng)
            accepted += moved
            if i >= config.burn_in:
                histogram[self.domain.index_of(x)] += 1

        self.acceptance_rate = accepted / config.sample_count
        logger.debug('Batch Metropolis run: %d samples, %d burn-in, acceptance %.3f',
                     config.sample_count, config.burn_in, self.acceptance_rate)

        # burn_in < sample_count, so at least one sample is binned
        return normalize(histogram)


def run_batch_sampler(prior, counts, config, domain, rng=None):
    """Histogram approximation of the posterior from a fresh Metropolis chain."""
    return BatchMetropolisSampler(config, domain, rng=rng).run(prior, counts)


ChainSnapshot = namedtuple('ChainSnapshot', ['histogram', 'trail', 'position', 'steps'])


class ChainState:
    """
    Mutable state of the incremental chain.

    A cold chain has no position. Once warm it carries its position, the log
    target there, a bounded trail of recent positions and a histogram of every
    visited cell since it was last reset.
    """

    def __init__(self, n_cells, trail_length=TRAIL_LENGTH):
        self.position = None
        self.log_post = None
        self.steps = 0
        self.accepted = 0
        self.trail = deque(maxlen=trail_length)
        self.histogram = np.zeros(n_cells, dtype=np.int64)

    @property
    def is_warm(self):
        return self.position is not None

    @property
    def acceptance_rate(self):
        if self.steps == 0:
            return None
        return self.accepted / self.steps

    def snapshot(self):
        return ChainSnapshot(
            histogram=self.histogram.copy(),
            trail=list(self.trail),
            position=self.position,
            steps=self.steps,
        )


class IncrementalChainStepper:
    """
    Single persistent Metropolis walker advanced a few steps at a time.

    Every step after warm-up is recorded in the histogram; there is no burn-in
    so the early transient stays visible. Observed data may change between
    calls, so the log target at the current position is recomputed with the
    current counts at the start of every advance.
    """

    def __init__(self, config, domain, rng=None, trail_length=TRAIL_LENGTH):
        self.config = config
        self.domain = domain
        self.rng = rng if rng is not None else np.random.default_rng()
        self.trail_length = trail_length
        self.state = ChainState(domain.n, trail_length)

    @property
    def is_warm(self):
        return self.state.is_warm

    def reset(self, config=None):
        """Back to cold, optionally with new settings."""
        if config is not None:
            self.config = config
        self.state = ChainState(self.domain.n, self.trail_length)
        logger.debug('Chain reset')

    def advance(self, n_steps, prior, counts):
        """
        Take n_steps Metropolis steps against the current prior and counts.

        A missing prior makes this a no-op.

        Returns:
            ChainSnapshot with copies of the histogram and trail.
        """
        if isinstance(n_steps, bool) or int(n_steps) != n_steps or n_steps < 0:
            raise ValueError(f'number of steps must be a non-negative integer, got {n_steps}')
        if prior is None:
            return self.state.snapshot()

        state = self.state
        log_target = _log_target(prior, counts)

        if not state.is_warm:
            state.position = self.config.initial_guess
            logger.debug('Chain warmed up at %.4f', state.position)

        # flips may have arrived since the last call
        state.log_post = log_target(state.position)

        for _ in range(int(n_steps)):
            state.position, state.log_post, moved = metropolis_step(
                state.position, state.log_post, log_target, self.config.step_size, self.rng
            )
            state.accepted += moved
            state.trail.append(state.position)
            state.steps += 1
            state.histogram[self.domain.index_of(state.position)] += 1

        return state.snapshot()

    def density(self):
        """Normalized histogram of the chain, or None while it is empty."""
        return normalize(self.state.histogram)
