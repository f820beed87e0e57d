"""
Monte Carlo engine for the compound Poisson process S(t).

S(t) is the total of N(t) claims, where N(t) ~ Poisson(lambda * t) and each
claim is Exponential with rate mu. The engine draws i.i.d. realizations of
S(t) and compares them with the closed-form moments.
"""

import logging
import math
import time
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Dict, Iterable, List, Sequence, Union

import numpy as np
from scipy import stats

from process_config import (
    DEFAULT_SAMPLER,
    MAX_DIRECT_CLAIM_DRAWS,
    MAX_SAMPLE_COUNT,
    SAMPLERS,
    TIME_HORIZONS,
)

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator]


class InvalidParameter(ValueError):
    """Raised when a request cannot be simulated as given."""


class SimulationTooExpensive(InvalidParameter):
    """Raised when a request would need more draws than the cost bounds allow."""


# --- Validation ---

def _check_positive(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidParameter(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidParameter(f"{name} must be finite and > 0, got {value}")
    return value


def _check_sample_count(sample_count) -> int:
    if isinstance(sample_count, bool) or not isinstance(sample_count, Integral):
        raise InvalidParameter(f"sample_count must be an integer, got {sample_count!r}")
    sample_count = int(sample_count)
    if sample_count < 1:
        raise InvalidParameter(f"sample_count must be >= 1, got {sample_count}")
    if sample_count > MAX_SAMPLE_COUNT:
        raise SimulationTooExpensive(
            f"sample_count {sample_count} exceeds the limit of {MAX_SAMPLE_COUNT}"
        )
    return sample_count


def _check_method(method: str) -> str:
    if method not in SAMPLERS:
        raise InvalidParameter(
            f"Unknown sampler {method!r}; expected one of {', '.join(SAMPLERS)}"
        )
    return method


def _check_cost(time_horizon: float, lambda_: float, sample_count: int, method: str) -> None:
    # The gamma sampler is one draw per trial; only the direct loop scales with lambda * t
    if method != "direct":
        return
    expected_draws = sample_count * lambda_ * time_horizon
    if expected_draws > MAX_DIRECT_CLAIM_DRAWS:
        raise SimulationTooExpensive(
            f"Direct sampling would need about {expected_draws:,.0f} claim draws "
            f"(limit {MAX_DIRECT_CLAIM_DRAWS:,}); lower sample_count or t, "
            f"or use the gamma sampler"
        )


# --- Data model ---

@dataclass(frozen=True)
class ProcessParameters:
    """Arrival rate lambda and claim-size rate mu, both strictly positive."""

    lambda_: float
    mu: float

    def __post_init__(self):
        object.__setattr__(self, "lambda_", _check_positive("lambda", self.lambda_))
        object.__setattr__(self, "mu", _check_positive("mu", self.mu))


@dataclass(frozen=True)
class SimulationRequest:
    time_horizon: float
    parameters: ProcessParameters
    sample_count: int

    def __post_init__(self):
        object.__setattr__(self, "time_horizon", _check_positive("time_horizon", self.time_horizon))
        object.__setattr__(self, "sample_count", _check_sample_count(self.sample_count))


@dataclass(frozen=True)
class TheoreticalMoments:
    mean: float
    variance: float


@dataclass(frozen=True)
class SummaryStatistics:
    """Theoretical and simulated moments of S(t) at one horizon."""

    time_horizon: float
    theoretical_mean: float
    simulated_mean: float
    theoretical_variance: float
    simulated_variance: float
    prob_zero: float

    def as_row(self) -> Dict[str, float]:
        """Row of the distribution statistics table."""
        return {
            "Time": self.time_horizon,
            "Theoretical_Mean": self.theoretical_mean,
            "Simulated_Mean": self.simulated_mean,
            "Theoretical_Variance": self.theoretical_variance,
            "Simulated_Variance": self.simulated_variance,
            "P(S(t)=0)": self.prob_zero,
        }


# --- Simulation Core ---

def _aggregate_direct(event_counts: np.ndarray, mu: float, rng: np.random.Generator) -> np.ndarray:
    """Sums event_count exponential claims trial by trial."""
    totals = np.zeros(event_counts.size)
    for i, n_events in enumerate(event_counts):
        if n_events > 0:
            claims = stats.expon.rvs(scale=1 / mu, size=int(n_events), random_state=rng)
            totals[i] = claims.sum()
    return totals


def _aggregate_gamma(event_counts: np.ndarray, mu: float, rng: np.random.Generator) -> np.ndarray:
    """Draws each non-zero total as Gamma(event_count, 1/mu), the law of a sum of exponentials."""
    totals = np.zeros(event_counts.size)
    has_claims = event_counts > 0
    if has_claims.any():
        totals[has_claims] = stats.gamma.rvs(
            a=event_counts[has_claims], scale=1 / mu, random_state=rng
        )
    return totals


_AGGREGATORS = {
    "direct": _aggregate_direct,
    "gamma": _aggregate_gamma,
}


def simulate(
    time_horizon: float,
    lambda_: float,
    mu: float,
    sample_count: int,
    seed: SeedLike = None,
    method: str = DEFAULT_SAMPLER,
) -> np.ndarray:
    """
    Draw sample_count independent realizations of S(time_horizon).

    Args:
        time_horizon: Length of the observation window [0, t]
        lambda_: Poisson arrival rate
        mu: Rate of the exponential claim sizes (mean claim 1/mu)
        sample_count: Number of independent trials
        seed: None for fresh entropy, an int, or a Generator to draw from
        method: "gamma" (default) or "direct", the per-trial sum of claims.
                Both produce samples from the same distribution.

    Returns:
        1-D float array of length sample_count. Trials without arrivals are exactly 0.

    Raises:
        InvalidParameter: on non-positive inputs or an unknown method
        SimulationTooExpensive: when the cost bounds are exceeded
    """
    request = SimulationRequest(
        time_horizon=time_horizon,
        parameters=ProcessParameters(lambda_=lambda_, mu=mu),
        sample_count=sample_count,
    )
    return simulate_request(request, seed=seed, method=method)


def simulate_request(
    request: SimulationRequest,
    seed: SeedLike = None,
    method: str = DEFAULT_SAMPLER,
) -> np.ndarray:
    """Runs a validated SimulationRequest."""
    method = _check_method(method)
    t = request.time_horizon
    lam = request.parameters.lambda_
    mu = request.parameters.mu
    n = request.sample_count
    _check_cost(t, lam, n, method)

    rng = np.random.default_rng(seed)
    start = time.time()

    # Number of arrivals in [0, t] for every trial
    event_counts = stats.poisson.rvs(mu=lam * t, size=n, random_state=rng)
    results = _AGGREGATORS[method](np.asarray(event_counts), mu, rng)

    logger.info(
        "Simulated S(t) at t=%g: lambda=%g, mu=%g, n=%d, sampler=%s in %.2fs",
        t, lam, mu, n, method, time.time() - start,
    )
    return results


def run_horizons(
    parameters: ProcessParameters,
    sample_count: int,
    time_horizons: Iterable[float] = TIME_HORIZONS,
    seed: SeedLike = None,
    method: str = DEFAULT_SAMPLER,
) -> Dict[float, np.ndarray]:
    """
    Simulate S(t) at each horizon, in order, from one shared generator.

    Every request is validated before the first draw, so an invalid horizon
    fails the whole run instead of leaving a partial result.
    """
    requests = [
        SimulationRequest(time_horizon=t, parameters=parameters, sample_count=sample_count)
        for t in time_horizons
    ]
    method = _check_method(method)
    for request in requests:
        _check_cost(request.time_horizon, parameters.lambda_, request.sample_count, method)

    rng = np.random.default_rng(seed)
    samples = {}
    for request in requests:
        samples[request.time_horizon] = simulate_request(request, seed=rng, method=method)
    logger.debug("Completed run over %d horizons", len(samples))
    return samples


# --- Statistics ---

def theoretical_moments(time_horizon: float, lambda_: float, mu: float) -> TheoreticalMoments:
    """E[S(t)] = lambda*t/mu and Var[S(t)] = 2*lambda*t/mu^2."""
    t = _check_positive("time_horizon", time_horizon)
    params = ProcessParameters(lambda_=lambda_, mu=mu)
    return TheoreticalMoments(
        mean=params.lambda_ * t / params.mu,
        variance=2 * params.lambda_ * t / params.mu ** 2,
    )


def summarize(
    sample: Sequence[float],
    moments: TheoreticalMoments,
    time_horizon: float,
) -> SummaryStatistics:
    """Sample mean, unbiased sample variance and P(S(t)=0) next to the theory."""
    values = np.asarray(sample, dtype=float)
    if values.size == 0:
        raise InvalidParameter("Cannot summarize an empty sample")

    # ddof=1 is undefined for a single draw
    variance = float(np.var(values, ddof=1)) if values.size > 1 else float("nan")
    return SummaryStatistics(
        time_horizon=_check_positive("time_horizon", time_horizon),
        theoretical_mean=moments.mean,
        simulated_mean=float(np.mean(values)),
        theoretical_variance=moments.variance,
        simulated_variance=variance,
        prob_zero=float(np.mean(values == 0)),
    )


def summarize_horizons(
    samples: Dict[float, np.ndarray],
    parameters: ProcessParameters,
) -> List[SummaryStatistics]:
    """One SummaryStatistics per horizon, in the order of samples."""
    return [
        summarize(sample, theoretical_moments(t, parameters.lambda_, parameters.mu), time_horizon=t)
        for t, sample in samples.items()
    ]
