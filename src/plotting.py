import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns


def plot_beliefs(engine, true_prob=None, ax=None, show_trail=True):
    """
    Draw the engine's current beliefs on a matplotlib axes.

    Prior as a filled area, grid posterior as a line, Metropolis histogram
    (batch or chain, whichever exists) as bars, the chain trail as a rug along
    the bottom and the true p(head) as a dashed vertical line. Densities are
    scaled to probability densities over (0, 1).

    Args:
        engine: BeliefEngine to draw.
        true_prob: Optional true probability of heads.
        ax: Axes to draw on; a new figure is created if None.
        show_trail: Draw the incremental chain trail.

    Returns:
        The matplotlib Axes.
    """
    sns.set_theme(style='whitegrid')
    palette = sns.color_palette()
    if ax is None:
        _, ax = plt.subplots(figsize=(9, 5))

    x = engine.domain.values
    n = engine.domain.n

    if engine.prior is not None:
        prior = engine.prior * n
        ax.fill_between(x, prior, color=palette[0], alpha=0.25)
        ax.plot(x, prior, color=palette[0], lw=1.8, label='Prior')

    histogram = engine.metropolis if engine.metropolis is not None else engine.chain_density
    if histogram is not None:
        ax.bar(x, histogram * n, width=1.0 / n, color=palette[2], alpha=0.5, label='Metropolis')

    if engine.posterior is not None and engine.counts.total > 0:
        ax.plot(x, engine.posterior * n, color=palette[3], lw=2.5, label='Posterior')

    trail = list(engine.chain.state.trail)
    if show_trail and trail:
        ax.plot(trail, np.zeros(len(trail)), '|', color=palette[1], ms=14, alpha=0.6, label='Chain trail')
        ax.plot([engine.chain.state.position], [0.0], 'o', color=palette[1])

    if true_prob is not None:
        ax.axvline(true_prob, color=palette[2], ls='--', lw=2, label=f'true p = {true_prob:.2f}')

    ax.set_xlim(0, 1)
    ax.set_xlabel('π (probability of heads)')
    ax.set_ylabel('Density')
    heads, tails = engine.counts.heads, engine.counts.tails
    ax.set_title(f'Flips: {heads + tails}   H: {heads}   T: {tails}')
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc='upper right')
    return ax
