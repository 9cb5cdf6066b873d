"""
Tests for conflict and synergy detection.
"""

import pytest

from futurefund.analysis import ConflictSynergyAnalyzer, compatibility_score, types_conflict
from futurefund.models import Conflict, Scenario, ScenarioType, Severity


@pytest.fixture
def analyzer():
    return ConflictSynergyAnalyzer(commitment_ratio=0.8)


def _job(id, new_salary):
    return Scenario(
        id=id,
        name=f"Job {id}",
        type=ScenarioType.JOB_CHANGE,
        parameters={"current_salary": 5_000, "new_salary": new_salary},
    )


class TestTypeConflicts:
    """Tests for the type adjacency table."""

    def test_two_job_changes_conflict_high(self, analyzer, context):
        """Test a second concurrent job change is a high-severity conflict."""
        candidate = _job("a", 6_000)
        existing = _job("b", 5_500)

        analysis = analyzer.analyze(candidate, context, [existing])

        assert [c.type for c in analysis.conflicts] == ["scenario_conflict"]
        assert analysis.conflicts[0].severity == Severity.HIGH
        assert analysis.conflicts[0].scenario_ids == ["a", "b"]
        assert analysis.compatibility_score == 70

    def test_table_is_read_from_the_first_row(self):
        """Test only the first type's row counts unless both_ways is set."""
        assert types_conflict(ScenarioType.INVESTMENT, ScenarioType.CASH_HOARDING)
        assert not types_conflict(ScenarioType.CASH_HOARDING, ScenarioType.INVESTMENT)
        assert types_conflict(ScenarioType.CASH_HOARDING, ScenarioType.INVESTMENT, both_ways=True)
        assert types_conflict(ScenarioType.JOB_CHANGE, ScenarioType.CAREER_BREAK)
        assert not types_conflict(ScenarioType.CAREER_BREAK, ScenarioType.JOB_CHANGE)
        assert not types_conflict(ScenarioType.CUSTOM, ScenarioType.JOB_CHANGE, both_ways=True)
        assert not types_conflict(None, ScenarioType.JOB_CHANGE)

    def test_candidate_row_decides(self, analyzer, context):
        """Test a career break against an existing job change is not a type conflict."""
        career_break = Scenario(
            id="cb",
            type=ScenarioType.CAREER_BREAK,
            parameters={"lost_income": 500, "timeline": 6},
        )
        job = _job("j", 5_500)

        assert analyzer.analyze(career_break, context, [job]).conflicts == []
        assert analyzer.analyze(career_break, context, [job]).compatibility_score == 100

        reverse = analyzer.analyze(job, context, [career_break])
        assert [c.type for c in reverse.conflicts] == ["scenario_conflict"]

    def test_set_checks_both_rows(self, analyzer, context):
        career_break = Scenario(
            id="cb",
            type=ScenarioType.CAREER_BREAK,
            parameters={"lost_income": 500, "timeline": 6},
        )
        analysis = analyzer.analyze_set([career_break, _job("j", 5_500)], context)
        assert [c.type for c in analysis.conflicts] == ["scenario_conflict"]

    def test_existing_defaults_to_candidate_siblings(self, analyzer, context):
        """Test existing_scenarios on the candidate are used when none are passed."""
        candidate = _job("a", 6_000).model_copy(update={"existing_scenarios": [_job("b", 5_500)]})
        analysis = analyzer.analyze(candidate, context)
        assert analysis.count(Severity.HIGH) == 1

    def test_no_existing_scenarios(self, analyzer, context, debt_scenario):
        analysis = analyzer.analyze(debt_scenario, context, [])
        assert analysis.conflicts == []
        assert analysis.compatibility_score == 100
        assert analysis.recommendations == []


class TestResourceAndTiming:
    """Tests for the resource and timing rules."""

    def test_home_purchase_and_job_change_timing_conflict(self, analyzer, context, home_scenario, job_scenario):
        """Test home purchase + job change is a medium timing conflict."""
        analysis = analyzer.analyze(home_scenario, context, [job_scenario])

        timing = [c for c in analysis.conflicts if c.type == "timing_conflict"]
        assert len(timing) == 1
        assert timing[0].severity == Severity.MEDIUM
        assert analysis.compatibility_score == 85

    def test_overcommitment_is_resource_conflict(self, analyzer, context):
        """Test commitments above 80% of available income conflict."""
        heavy = Scenario(
            id="heavy",
            name="Heavy debt plan",
            type=ScenarioType.DEBT_PAYOFF,
            parameters={"debt_amount": 20_000, "monthly_payment": 1_700},
        )
        analysis = analyzer.analyze(heavy, context, [])

        assert [c.type for c in analysis.conflicts] == ["resource_conflict"]
        assert analysis.conflicts[0].severity == Severity.HIGH

    def test_at_threshold_is_not_a_conflict(self, analyzer, context):
        """Test exactly 80% of available income is still fine."""
        scenario = Scenario(
            type=ScenarioType.DEBT_PAYOFF,
            parameters={"debt_amount": 5_000, "monthly_payment": 1_600},
        )
        assert analyzer.analyze(scenario, context, []).conflicts == []


class TestSynergies:
    """Tests for synergy detection."""

    def test_job_change_and_investment(self, analyzer, context, job_scenario):
        investment = Scenario(
            type=ScenarioType.INVESTMENT,
            parameters={"investment_amount": 1_200, "monthly_contribution": 100},
        )
        analysis = analyzer.analyze(job_scenario, context, [investment])
        assert [s.type for s in analysis.synergies] == ["income_investment_synergy"]
        assert analysis.synergies[0].impact == "positive"


class TestScenarioSet:
    """Tests for analyze_set over compound sets."""

    def test_all_pairs_are_checked(self, analyzer, context, debt_scenario, job_scenario):
        investment = Scenario(
            id="inv",
            type=ScenarioType.INVESTMENT,
            parameters={"investment_amount": 1_200},
        )
        analysis = analyzer.analyze_set([job_scenario, debt_scenario, investment], context)

        pair = [c for c in analysis.conflicts if c.type == "scenario_conflict"]
        assert len(pair) == 1
        assert set(pair[0].scenario_ids) == {"debt1", "inv"}
        assert {s.type for s in analysis.synergies} == {
            "income_investment_synergy",
            "income_debt_synergy",
            "debt_investment_sequence",
        }

    def test_recommendations_are_deduplicated(self, analyzer, context):
        jobs = [_job("a", 5_100), _job("b", 5_100), _job("c", 5_100)]
        analysis = analyzer.analyze_set(jobs, context)
        assert len(analysis.conflicts) == 3
        assert len(analysis.recommendations) == 1


class TestCompatibilityScore:
    """Tests for the compatibility score formula."""

    def test_floors_at_zero(self):
        conflicts = [
            Conflict(type="scenario_conflict", severity=Severity.HIGH, description="x")
            for _ in range(4)
        ]
        assert compatibility_score(conflicts) == 0

    def test_mixed_severities(self):
        conflicts = [
            Conflict(type="a", severity=Severity.HIGH, description="x"),
            Conflict(type="b", severity=Severity.MEDIUM, description="y"),
        ]
        assert compatibility_score(conflicts) == 55
