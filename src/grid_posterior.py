import logging

import numpy as np

from coin_numerics import log_normalize

logger = logging.getLogger(__name__)


class ObservationCounts:
    """
    Heads and tails seen in the current data epoch.

    Counts only grow until reset(); a new prior or an explicit clear starts a
    new epoch.
    """

    def __init__(self, heads=0, tails=0):
        self.heads = 0
        self.tails = 0
        self.add(heads, tails)

    @property
    def total(self):
        return self.heads + self.tails

    def add(self, heads=0, tails=0):
        for name, value in (('heads', heads), ('tails', tails)):
            if isinstance(value, bool) or int(value) != value or value < 0:
                raise ValueError(f'{name} must be a non-negative integer, got {value!r}')
        self.heads += int(heads)
        self.tails += int(tails)

    def record(self, flips):
        """
        Add an array of flip outcomes (1 for heads, 0 for tails).
        """
        flips = np.asarray(flips)
        ones = int(np.sum(flips == 1))
        zeros = int(np.sum(flips == 0))
        if ones + zeros != flips.size:
            raise ValueError('flips must only contain 0 (tails) and 1 (heads)')
        self.add(ones, zeros)

    def reset(self):
        self.heads = 0
        self.tails = 0

    def copy(self):
        return ObservationCounts(self.heads, self.tails)

    def __eq__(self, other):
        if not isinstance(other, ObservationCounts):
            return NotImplemented
        return (self.heads, self.tails) == (other.heads, other.tails)

    def __repr__(self):
        return f'ObservationCounts(heads={self.heads}, tails={self.tails})'


def grid_log_posterior(prior, counts, domain):
    """Unnormalized log-posterior at every cell midpoint."""
    x = domain.values
    with np.errstate(divide='ignore'):
        log_prior = np.log(np.asarray(prior, dtype=float))
    return log_prior + counts.heads * np.log(x) + counts.tails * np.log(1.0 - x)


def update_grid_posterior(prior, counts, domain):
    """
    Exact posterior over the grid, or None if normalization degenerates.
    """
    return log_normalize(grid_log_posterior(prior, counts, domain))


class GridPosteriorEngine:
    """
    Grid approximation of the posterior for a discretized prior.

    Recomputes from the prior and the full counts on every update (O(n)). If
    the update cannot be normalized, the previous posterior is kept and
    `degenerate` is set until the next successful update.

    Attributes:
        posterior: Latest posterior density, or None before the first prior.
        degenerate: True if the last update was skipped.
    """

    def __init__(self, domain):
        self.domain = domain
        self.posterior = None
        self.degenerate = False

    def reset(self, prior=None):
        """Start over from the prior (posterior equals prior with no data)."""
        self.posterior = None if prior is None else np.array(prior, dtype=float)
        self.degenerate = False

    def update(self, prior, counts):
        posterior = update_grid_posterior(prior, counts, self.domain)
        if posterior is None:
            self.degenerate = True
            logger.warning('Grid posterior normalization degenerated at %s; keeping previous posterior', counts)
            return self.posterior

        self.degenerate = False
        self.posterior = posterior
        return posterior
