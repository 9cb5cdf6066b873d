"""
Tests for the Monte Carlo simulator.
"""

import numpy as np
import pytest

from futurefund.analysis import MonteCarloSimulator, floor_percentiles


@pytest.fixture
def simulator():
    return MonteCarloSimulator(default_trials=100, max_trials=100)


class TestTrialCount:
    """Tests for the requested/default/max trial rules."""

    def test_default(self, simulator):
        assert simulator.trial_count() == 100

    def test_capped_at_max(self, simulator):
        assert simulator.trial_count(10_000) == 100

    def test_fewer_than_default(self, simulator):
        assert simulator.trial_count(5) == 5

    def test_max_can_be_raised(self):
        assert MonteCarloSimulator(default_trials=100, max_trials=1_000).trial_count(500) == 500


class TestSimulation:
    """Tests for trial generation and statistics."""

    def test_seeded_runs_are_reproducible(self, simulator):
        first = simulator.simulate(-500, 10_000, seed=7)
        second = simulator.simulate(-500, 10_000, seed=7)
        assert [t.final_balance for t in first.trials] == [t.final_balance for t in second.trials]
        assert first.seed == 7

    def test_variation_stays_within_twenty_percent(self, simulator):
        result = simulator.simulate(-1_000, 5_000, seed=1)
        for trial in result.trials:
            assert abs(trial.variation) <= 200
            assert trial.final_balance == pytest.approx(5_000 + 12 * trial.monthly_impact)

    def test_percentiles_are_ordered_and_bounded(self, simulator):
        """Test p05 <= ... <= p95 and all within [min, max]."""
        result = simulator.simulate(750, 20_000, seed=3)
        p = result.percentiles
        stats = result.statistics

        assert p.p05 <= p.p25 <= p.p50 <= p.p75 <= p.p95
        assert stats.min <= p.p05
        assert p.p95 <= stats.max
        assert stats.count == result.simulation_count == 100

    def test_zero_impact_has_no_spread(self, simulator):
        result = simulator.simulate(0, 1_234, seed=0)
        assert result.statistics.min == result.statistics.max == 1_234

    def test_injected_generator_is_used(self, simulator):
        rng_a = np.random.default_rng(11)
        rng_b = np.random.default_rng(11)
        a = simulator.simulate(-300, 0, trials=10, rng=rng_a)
        b = simulator.simulate(-300, 0, trials=10, rng=rng_b)
        assert a.statistics == b.statistics
        assert a.simulation_count == 10


class TestFloorPercentiles:
    """Tests for floor(N * q) indexing."""

    def test_ten_values(self):
        p = floor_percentiles(list(range(10)))
        assert (p.p05, p.p25, p.p50, p.p75, p.p95) == (0, 2, 5, 7, 9)

    def test_single_value(self):
        p = floor_percentiles([42.0])
        assert p.p05 == p.p95 == 42.0

    def test_empty_sample_rejected(self):
        with pytest.raises(ValueError):
            floor_percentiles([])
