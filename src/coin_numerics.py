import math

import numpy as np


def normalize(values):
    """
    Scale non-negative values so they sum to one.

    Returns None when the sum is zero, negative or not finite, so callers can
    keep their previous state instead of dividing by zero.
    """
    values = np.asarray(values, dtype=float)
    total = values.sum()
    if not np.isfinite(total) or total <= 0.0:
        return None
    return values / total


def floor_and_normalize(values, epsilon):
    """
    Normalize raw density heights and floor every cell at epsilon.

    The floor is applied in probability space, p = eps + (1 - n*eps) * raw/sum(raw),
    so the result sums to one and no cell drops below epsilon after scaling.
    A raw array without positive mass becomes uniform.
    """
    values = np.maximum(np.asarray(values, dtype=float), 0.0)
    n = values.shape[0]
    if n * epsilon >= 1.0:
        raise ValueError(f'epsilon={epsilon} is too large for {n} cells')

    probs = normalize(values)
    if probs is None:
        probs = np.full(n, 1.0 / n)

    return epsilon + (1.0 - n * epsilon) * probs


def log_normalize(log_values):
    """
    Exponentiate and normalize log-weights with max-subtraction.

    Returns None if the weights are degenerate (all -inf, or any nan/+inf).
    """
    log_values = np.asarray(log_values, dtype=float)
    log_max = np.max(log_values)
    if not np.isfinite(log_max) or np.isnan(log_values).any():
        return None

    return normalize(np.exp(log_values - log_max))


def reflect(v):
    """
    Fold a real number back into [0, 1] by mirroring at both boundaries.

    Equivalent to repeating v = -v while v < 0 and v = 2 - v while v > 1,
    done in one step with the period-2 fold. Values in [0, 1] are returned
    unchanged.
    """
    v = float(v)
    if not math.isfinite(v):
        raise ValueError(f'cannot reflect non-finite value {v}')
    if 0.0 <= v <= 1.0:
        return v

    v = math.fmod(abs(v), 2.0)
    if v > 1.0:
        v = 2.0 - v
    return v


def gaussian_proposal(x, step_size, rng):
    """Symmetric random-walk proposal: reflect(x + step_size * N(0, 1))."""
    return reflect(x + step_size * rng.standard_normal())


def interpolate_density(x, density):
    """
    Linearly interpolate a discretized density at a continuous point.

    Cell i sits at (i + 0.5)/n; points left of the first midpoint or right of
    the last one take the value of the end cell.
    """
    n = len(density)
    u = x * n - 0.5
    if u <= 0.0:
        return float(density[0])
    if u >= n - 1:
        return float(density[n - 1])

    i = int(u)
    w = u - i
    return (1.0 - w) * float(density[i]) + w * float(density[i + 1])


def log_posterior(x, prior, heads, tails):
    """
    Unnormalized log-posterior of the coin bias at x.

    Returns -inf outside the open interval (0, 1) and wherever the
    interpolated prior is not positive. At cell midpoints this equals the
    log-posterior used by the grid engine.
    """
    if x <= 0.0 or x >= 1.0:
        return -math.inf

    p = interpolate_density(x, prior)
    if p <= 0.0:
        return -math.inf

    return math.log(p) + heads * math.log(x) + tails * math.log(1.0 - x)


def metropolis_step(x, log_px, log_target, step_size, rng):
    """
    One Metropolis step with a reflected Gaussian proposal.

    Args:
        x: Current position.
        log_px: Log target at x.
        log_target: Callable returning the unnormalized log target.
        step_size: Standard deviation of the proposal.
        rng: numpy Generator.

    Returns:
        (position, log target at position, accepted)
    """
    proposal = gaussian_proposal(x, step_size, rng)
    log_proposal = log_target(proposal)

    # -inf at the proposal never passes; nan (both -inf) never passes either
    log_alpha = log_proposal - log_px
    u = 1.0 - rng.random()  # (0, 1]
    if math.log(u) < log_alpha:
        return proposal, log_proposal, True
    return x, log_px, False


def density_stats(domain, density):
    """
    Return (mean, std, mode) of a discretized density over the domain.

    The density is renormalized first; returns None if it has no mass.
    """
    probs = normalize(density)
    if probs is None:
        return None

    values = domain.values
    mean = float(np.dot(values, probs))
    var = float(np.dot((values - mean) ** 2, probs))
    mode = float(values[int(np.argmax(probs))])
    return mean, math.sqrt(var), mode
