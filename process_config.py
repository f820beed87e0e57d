"""
Settings for the compound process histogram explorer.

Reference horizons, sidebar control ranges and the cost bounds applied
before a simulation is allowed to run.
"""

from typing import NamedTuple, Tuple


class SliderRange(NamedTuple):
    min_value: float
    max_value: float
    default: float
    step: float


# Horizons at which S(t) is sampled on every run
TIME_HORIZONS: Tuple[int, ...] = (10, 100, 1000, 10000)

LAMBDA_RANGE = SliderRange(0.1, 5.0, 1.0, 0.1)
MU_RANGE = SliderRange(0.1, 5.0, 1.0, 0.1)
SAMPLE_COUNT_RANGE = SliderRange(1000, 50000, 10000, 1000)
MAX_SEED = 2**31 - 1

# Histogram display
HISTOGRAM_BINS = 50
DISPLAY_QUANTILE = 0.99
GRID_COLUMNS = 2

# Cost bounds
MAX_SAMPLE_COUNT = 1_000_000
MAX_DIRECT_CLAIM_DRAWS = 20_000_000

SAMPLERS = ("gamma", "direct")
DEFAULT_SAMPLER = "gamma"
