from abc import ABC, abstractmethod
import logging
import math

import numpy as np

from scipy.stats import beta as beta_dist
from scipy.stats import expon
from scipy.stats import norm

from coin_config import EPSILON, GRID_SIZE, PRIOR_DEFAULTS
from coin_numerics import floor_and_normalize

logger = logging.getLogger(__name__)


class DiscretizedDomain:
    """
    Fixed partition of (0, 1) into n equal cells.

    Cell i is represented by its midpoint (i + 0.5)/n, so no cell value is
    ever exactly 0 or 1. The midpoint array is read-only.
    """

    def __init__(self, n=GRID_SIZE, epsilon=EPSILON):
        if int(n) != n or n < 2:
            raise ValueError(f'grid size must be an integer >= 2, got {n}')
        if not 0.0 < epsilon < 1.0 / n:
            raise ValueError(f'epsilon must lie in (0, 1/{n}), got {epsilon}')

        self.n = int(n)
        self.epsilon = epsilon
        self._values = (np.arange(self.n) + 0.5) / self.n
        self._values.setflags(write=False)

    @property
    def values(self):
        return self._values

    def __len__(self):
        return self.n

    def index_of(self, x):
        """Index of the cell containing x, clamped to the domain."""
        idx = int(math.floor(x * self.n))
        return min(max(idx, 0), self.n - 1)

    def uniform(self):
        return np.full(self.n, 1.0 / self.n)


class Prior(ABC):
    """
    Abstract base class for priors over the coin bias.

    Subclasses keep their hyperparameters in a params dict that starts from
    the family defaults and is updated with the caller's values, validate them
    on construction, and know how to produce raw (unnormalized) heights on a
    discretized domain.
    """

    family = None

    def __init__(self, params=None):
        self._params = {**PRIOR_DEFAULTS.get(self.family, {})}
        if params is not None:
            self._params.update(params)
        self._validate()

    @property
    def params(self):
        return {**self._params}

    def _validate(self):
        """Raise ValueError on hyperparameters that cannot define a density."""
        pass

    @abstractmethod
    def heights(self, domain):
        """Raw non-negative density heights at every cell of the domain."""
        pass

    def density(self, domain):
        """Floored and normalized density over the domain."""
        raw = np.asarray(self.heights(domain), dtype=float)
        if raw.shape != (domain.n,) or not np.all(np.isfinite(raw)):
            raise ValueError(f'{type(self).__name__} produced an invalid density')

        density = floor_and_normalize(raw, domain.epsilon)
        logger.debug('Built %s prior with params %s', type(self).__name__, self._params)
        return density

    def __repr__(self):
        return f'{type(self).__name__}({self._params})'


def _require_finite(params, *names):
    for name in names:
        value = params[name]
        try:
            ok = not isinstance(value, bool) and math.isfinite(float(value))
        except (TypeError, ValueError):
            ok = False
        if not ok:
            raise ValueError(f'{name} must be a finite number, got {value!r}')
        params[name] = float(value)


def _require_positive(params, *names):
    _require_finite(params, *names)
    for name in names:
        if params[name] <= 0:
            raise ValueError(f'{name} must be positive, got {params[name]!r}')


class UniformPrior(Prior):
    """Flat prior: every bias equally likely."""

    family = 'uniform'

    def heights(self, domain):
        return np.ones(domain.n)


class NormalPrior(Prior):
    """
    Normal density with 'mean' and 'std', restricted to (0, 1).

    The mean may lie outside the unit interval; only the part of the bell
    inside (0, 1) is kept.
    """

    family = 'normal'

    def _validate(self):
        _require_finite(self._params, 'mean')
        _require_positive(self._params, 'std')

    def heights(self, domain):
        return norm.pdf(domain.values, loc=self._params['mean'], scale=self._params['std'])


class BetaPrior(Prior):
    """Beta density with shape parameters 'alpha' and 'beta'."""

    family = 'beta'

    def _validate(self):
        _require_positive(self._params, 'alpha', 'beta')

    def heights(self, domain):
        return beta_dist.pdf(domain.values, self._params['alpha'], self._params['beta'])


class ExponentialPrior(Prior):
    """Exponential density with 'rate', favouring small biases."""

    family = 'exponential'

    def _validate(self):
        _require_positive(self._params, 'rate')

    def heights(self, domain):
        return expon.pdf(domain.values, scale=1.0 / self._params['rate'])


class EnergyTrapPrior(Prior):
    """
    Double-well Boltzmann density exp(-depth * E(x)).

    E(x) = ((x - left)(x - right))^2 / ((right - left)/2)^4 is zero at both
    wells and one halfway between them, so 'depth' is the height of the
    barrier a random walk has to cross to move from one well to the other.
    """

    family = 'energy_trap'

    def _validate(self):
        _require_finite(self._params, 'left', 'right')
        _require_positive(self._params, 'depth')
        left, right = self._params['left'], self._params['right']
        if not 0.0 <= left < right <= 1.0:
            raise ValueError(f'energy trap wells need 0 <= left < right <= 1, got left={left}, right={right}')

    def heights(self, domain):
        left, right = self._params['left'], self._params['right']
        half_width = (right - left) / 2.0
        x = domain.values
        energy = ((x - left) * (x - right)) ** 2 / half_width ** 4
        return np.exp(-self._params['depth'] * energy)


class SketchPrior(Prior):
    """
    Prior from a freehand sketch of (x, y) points in the unit square.

    Each point sets the height of the cell it falls in (the last point wins).
    Gaps between touched cells are filled by linear interpolation, cells
    outside the drawn extent get epsilon, and an empty sketch means uniform.
    """

    family = 'sketch'

    def __init__(self, points=None):
        super().__init__(params={'points': points if points is not None else []})

    def _validate(self):
        points = np.asarray(self._params['points'], dtype=float)
        if points.size == 0:
            points = points.reshape(0, 2)
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(f'sketch points must be (x, y) pairs, got shape {points.shape}')
        if not np.all(np.isfinite(points)):
            raise ValueError('sketch points must be finite')
        # Pointer positions past the canvas edge land on the edge
        self._points = np.clip(points, 0.0, 1.0)

    def touched(self, domain):
        """Heights and mask of the cells the sketch touched."""
        drawn = np.zeros(domain.n)
        mask = np.zeros(domain.n, dtype=bool)
        for x, y in self._points:
            idx = domain.index_of(x)
            drawn[idx] = y
            mask[idx] = True
        return drawn, mask

    def heights(self, domain):
        drawn, mask = self.touched(domain)
        if not mask.any():
            return np.ones(domain.n)

        touched = np.flatnonzero(mask)
        first, last = touched[0], touched[-1]

        heights = np.full(domain.n, domain.epsilon)
        span = np.arange(first, last + 1)
        heights[first:last + 1] = np.interp(span, touched, drawn[touched])
        return np.maximum(heights, domain.epsilon)

    def __repr__(self):
        return f'SketchPrior({len(self._points)} points)'


PRIOR_FAMILIES = {
    'uniform': UniformPrior,
    'normal': NormalPrior,
    'beta': BetaPrior,
    'exponential': ExponentialPrior,
    'energy_trap': EnergyTrapPrior,
}


def build_prior(request, domain):
    """
    Turn a prior request into a normalized density over the domain.

    Args:
        request: A Prior instance, or a sequence of (x, y) sketch points.
        domain: DiscretizedDomain to evaluate on.

    Returns:
        np.ndarray summing to one with every entry >= domain.epsilon.
    """
    if not isinstance(request, Prior):
        request = SketchPrior(points=request)
    return request.density(domain)
