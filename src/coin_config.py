"""
Defaults for the coin-belief engine and the explorer app.
"""

APP_NAME: str = "draw-a-prior"

# Discretization
GRID_SIZE: int = 200
EPSILON: float = 1e-6

# Metropolis samplers
TRAIL_LENGTH: int = 80
BURN_IN_FRACTION: float = 0.2
DEFAULT_STEP_SIZE: float = 0.05
DEFAULT_INITIAL_GUESS: float = 0.5
DEFAULT_SAMPLE_COUNT: int = 10000

STEP_SIZE_CHOICES = (0.0001, 0.001, 0.05, 0.1, 0.2)
SAMPLE_COUNT_CHOICES = (5000, 10000, 50000)

MODE_GRID: str = "grid"
MODE_BATCH: str = "batch"
MODE_INCREMENTAL: str = "incremental"
SAMPLING_MODES = (MODE_GRID, MODE_BATCH, MODE_INCREMENTAL)

# Parametric prior families and their default hyperparameters
PRIOR_DEFAULTS = {
    'uniform': {},
    'normal': {'mean': 0.5, 'std': 0.1},
    'beta': {'alpha': 2.0, 'beta': 2.0},
    'exponential': {'rate': 5.0},
    'energy_trap': {'left': 0.25, 'right': 0.75, 'depth': 8.0},
}

# Explorer app
HOST: str = "localhost"
PORT: int = 8050
TICK_INTERVAL_MS: int = 100
STEPS_PER_TICK: int = 1
LOG_LEVEL: str = "INFO"
