"""
Monte Carlo Simulator

Compounds a deterministic monthly impact into a distribution of
12-month outcomes.

Each trial perturbs the impact by a uniform delta in [-20%, +20%] of
|impact| and projects a final balance:

    final = start_balance + 12 * (impact + delta)

Percentiles index the ascending-sorted finals at floor(N * q). This is
not an interpolated order statistic; it is kept exactly because reported
bands (and their sensitivity to N) must match across versions.

Randomness comes from a numpy Generator. Pass a seed (or configure one)
for reproducible runs; the default is unseeded.
"""

import math
from typing import Optional, Sequence

import numpy as np

from futurefund.config import get_settings
from futurefund.models.scenario import (
    MonteCarloResult,
    MonteCarloStatistics,
    MonteCarloTrial,
    Percentiles,
)


VARIATION_SPREAD = 0.4  # (u - 0.5) * 0.4 spans +/-20%
HORIZON_MONTHS = 12

QUANTILES = {
    "p05": 0.05,
    "p25": 0.25,
    "p50": 0.50,
    "p75": 0.75,
    "p95": 0.95,
}


def floor_percentiles(sorted_values: Sequence[float]) -> Percentiles:
    """Percentile band by floor(N * q) indexing into ascending values."""
    n = len(sorted_values)
    if n == 0:
        raise ValueError("Cannot compute percentiles of an empty sample")
    return Percentiles(**{
        name: float(sorted_values[min(n - 1, math.floor(n * q))])
        for name, q in QUANTILES.items()
    })


class MonteCarloSimulator:
    """Runs N independent trials around a monthly impact."""

    def __init__(
        self,
        default_trials: Optional[int] = None,
        max_trials: Optional[int] = None,
        seed: Optional[int] = None,
    ):
        analysis = get_settings().analysis
        self.default_trials = default_trials or analysis.monte_carlo_default_trials
        self.max_trials = max_trials or analysis.monte_carlo_max_trials
        self.seed = seed if seed is not None else analysis.monte_carlo_seed

    def trial_count(self, requested: Optional[int] = None) -> int:
        """Requested trials (or the default), capped at max_trials."""
        return max(1, min(requested or self.default_trials, self.max_trials))

    def simulate(
        self,
        monthly_impact: float,
        start_balance: float,
        trials: Optional[int] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> MonteCarloResult:
        """
        Run the trials.

        Args:
            monthly_impact: Deterministic combined monthly impact
            start_balance: Balance the projection starts from
            trials: Requested trial count (capped)
            seed: Overrides the simulator seed for this run
            rng: Generator to draw from; built from the seed when absent
        """
        n = self.trial_count(trials)
        run_seed = seed if seed is not None else self.seed
        if rng is None:
            rng = np.random.default_rng(run_seed)

        variations = (rng.random(n) - 0.5) * VARIATION_SPREAD * abs(monthly_impact)
        impacts = monthly_impact + variations
        finals = start_balance + impacts * HORIZON_MONTHS

        trials_out = [
            MonteCarloTrial(
                monthly_impact=float(impact),
                final_balance=float(final),
                variation=float(variation),
            )
            for impact, final, variation in zip(impacts, finals, variations)
        ]

        statistics = MonteCarloStatistics(
            mean=float(finals.mean()),
            min=float(finals.min()),
            max=float(finals.max()),
            count=n,
        )

        return MonteCarloResult(
            trials=trials_out,
            statistics=statistics,
            percentiles=floor_percentiles(np.sort(finals)),
            simulation_count=n,
            seed=run_seed,
        )
