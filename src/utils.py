import re

import numpy as np
import pandas as pd

from coin_priors import PRIOR_FAMILIES, SketchPrior


def mk_prior(family, **params):
    """
    Factory for the parametric prior families.

    Args:
        family: One of 'uniform', 'normal', 'beta', 'exponential', 'energy_trap'.
        **params: Hyperparameters overriding the family defaults, e.g.
                  mk_prior('beta', alpha=2, beta=5).

    Returns:
        Prior: The validated prior.

    Raises:
        ValueError: If the family is unknown or a hyperparameter is invalid.
    """
    if family not in PRIOR_FAMILIES:
        raise ValueError(f'unknown prior family {family!r}, expected one of {tuple(PRIOR_FAMILIES)}')
    return PRIOR_FAMILIES[family](params=params)


_NUMBER = r'(-?[\d.]+(?:e[+-]?\d+)?)'
_PATH_POINT = re.compile(r'[ML]\s*' + _NUMBER + r'\s*,\s*' + _NUMBER, re.IGNORECASE)


def parse_sketch_path(path):
    """
    Extract (x, y) points from an SVG path drawn with plotly's 'drawopenpath'.

    Plotly reports freehand strokes in data coordinates as 'M x,y L x,y ...'.

    Returns:
        list of (x, y) float tuples, in drawing order.
    """
    if not path:
        return []
    return [(float(x), float(y)) for x, y in _PATH_POINT.findall(path)]


def sketch_from_shapes(shapes):
    """SketchPrior from the shapes list of a plotly relayoutData event."""
    points = []
    for shape in shapes or []:
        points.extend(parse_sketch_path(shape.get('path')))
    return SketchPrior(points=points)


def belief_frame(engine):
    """
    DataFrame of the engine's densities, one row per grid cell.

    Densities are scaled by the number of cells so they read as probability
    densities over (0, 1). Missing densities are left out.
    """
    n = engine.domain.n
    columns = {'pi': engine.domain.values}
    for name, density in (
        ('prior', engine.prior),
        ('posterior', engine.posterior),
        ('metropolis', engine.metropolis),
        ('chain', engine.chain_density),
    ):
        if density is not None:
            columns[name] = np.asarray(density, dtype=float) * n
    return pd.DataFrame(columns)
