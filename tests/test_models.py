"""
Tests for the pydantic models.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from futurefund.models import (
    DateRange,
    PipelineInput,
    PipelineResult,
    RankingConstraints,
    ResultMetadata,
    Scenario,
    ScenarioType,
    ValidationIssue,
    Percentiles,
)
from futurefund.models.scenario import check_exhaustive


class TestScenario:
    """Tests for Scenario parameter access."""

    def test_amount_reads_numbers(self):
        scenario = Scenario(parameters={"a": 10, "b": "12.5", "c": "abc", "d": None, "e": True})
        assert scenario.amount("a") == 10
        assert scenario.amount("b") == 12.5
        assert scenario.amount("c") == 0
        assert scenario.amount("d", 7) == 7
        assert scenario.amount("e") == 0
        assert scenario.amount("missing") == 0

    def test_has_ignores_none(self):
        scenario = Scenario(parameters={"a": 0, "b": None})
        assert scenario.has("a")
        assert not scenario.has("b")

    def test_with_parameters_copies(self, debt_scenario):
        updated = debt_scenario.with_parameters(monthly_payment=900)
        assert updated.amount("monthly_payment") == 900
        assert debt_scenario.amount("monthly_payment") == 600
        assert updated.id == debt_scenario.id

    def test_frozen(self, debt_scenario):
        with pytest.raises(ValidationError):
            debt_scenario.name = "changed"

    def test_type_from_string(self):
        assert Scenario(type="job_change").type == ScenarioType.JOB_CHANGE

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Scenario(type="lottery_win")


class TestExhaustiveTables:
    """Tests for the type-keyed table check."""

    def test_missing_type_fails(self):
        with pytest.raises(RuntimeError, match="custom"):
            check_exhaustive({t: 1 for t in ScenarioType if t != ScenarioType.CUSTOM}, "table")

    def test_complete_table_passes(self):
        table = {t: 1 for t in ScenarioType}
        assert check_exhaustive(table, "table") is table


class TestSmallModels:
    """Tests for validators on the smaller models."""

    def test_percentiles_must_be_ordered(self):
        with pytest.raises(ValidationError):
            Percentiles(p05=1, p25=0, p50=2, p75=3, p95=4)

    def test_date_range_order(self):
        DateRange(start=date(2026, 1, 1), end=date(2026, 1, 1))
        with pytest.raises(ValidationError):
            DateRange(start=date(2026, 2, 1), end=date(2026, 1, 1))

    def test_issue_severity(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="missing", message="m", severity="fatal")

    def test_constraints_from_flags(self):
        constraints = RankingConstraints.from_flags(["Needs Liquidity", "returns", "unknown"])
        assert constraints.needs_liquidity
        assert constraints.prioritize_returns
        assert not constraints.risk_averse
        assert not constraints.long_term


class TestPipelineInput:
    """Tests for the pipeline input envelope."""

    def test_scenario_set_prefers_scenarios(self, debt_scenario, job_scenario):
        data = PipelineInput(scenario=debt_scenario, scenarios=[job_scenario])
        assert data.scenario_set == [job_scenario]

    def test_scenario_set_falls_back_to_scenario(self, debt_scenario):
        assert PipelineInput(scenario=debt_scenario).scenario_set == [debt_scenario]
        assert PipelineInput().scenario_set == []

    def test_validates_from_mapping(self):
        data = PipelineInput.model_validate({
            "scenario": {"name": "Debt", "type": "debt_payoff", "parameters": {"monthly_payment": 100}},
            "context": {"monthly_income": 4_000},
            "simulation": {"trials": 50, "seed": 3},
        })
        assert data.scenario.type == ScenarioType.DEBT_PAYOFF
        assert data.simulation.seed == 3


class TestPipelineResult:
    """Tests for the result envelope."""

    def test_as_cached_flags_copy(self):
        result = PipelineResult.ok({"x": 1}, ResultMetadata(run_id="r", pipeline="p", execution_time_ms=5))
        cached = result.as_cached()

        assert cached.metadata.cached
        assert not result.metadata.cached
        assert cached.data == result.data

    def test_failure_has_no_metadata(self):
        result = PipelineResult.failure("boom", {"k": "v"})
        assert not result.success
        assert result.as_cached() is result
        assert not result.has_errors
