"""
Tests for variation generation, variant simulation and ranking.
"""

import pytest

from futurefund.analysis import MonteCarloSimulator, MultiCriteriaRanker, VariationGenerator
from futurefund.analysis.ranking import (
    composite_score,
    liquidity_score,
    return_on_investment,
    user_preferences,
)
from futurefund.models import (
    OutcomeAnalysis,
    OutcomeScore,
    RankingConstraints,
    Scenario,
    ScenarioType,
    Tier,
)


@pytest.fixture
def generator():
    return VariationGenerator(simulator=MonteCarloSimulator(default_trials=50, max_trials=50, seed=5))


@pytest.fixture
def ranker():
    return MultiCriteriaRanker()


def _score(id, composite, risk=20.0, liquidity=60.0, sustainability=100.0, is_base=False):
    return OutcomeScore(
        id=id,
        scenario=Scenario(id=id, name=id),
        is_base=is_base,
        monthly_impact=0,
        final_balance=0,
        risk_level=risk,
        return_on_investment=0,
        liquidity_score=liquidity,
        sustainability_score=sustainability,
        composite_score=composite,
    )


class TestGenerate:
    """Tests for the type-keyed variation generators."""

    def test_job_change_variants(self, generator, context, job_scenario):
        variants = generator.generate(job_scenario, context)

        assert [v.id for v in variants] == ["job1_conservative", "job1_moderate", "job1_aggressive"]
        assert [v.name for v in variants] == [
            "New job (Conservative)",
            "New job (Moderate Growth)",
            "New job (Aggressive)",
        ]
        assert [v.amount("new_salary") for v in variants] == pytest.approx([5_500, 6_250, 7_000])
        assert [v.amount("timeline") for v in variants] == [5, 3, 2]
        assert [v.strategy for v in variants] == ["conservative", "moderate", "aggressive"]

    def test_job_change_salary_falls_back_to_income(self, generator, context):
        scenario = Scenario(id="j", name="J", type=ScenarioType.JOB_CHANGE, parameters={"new_salary": 6_000})
        conservative = generator.generate(scenario, context)[0]
        assert conservative.amount("current_salary") == 5_000
        assert conservative.amount("new_salary") == pytest.approx(5_500)

    def test_debt_payoff_variants(self, generator, context, debt_scenario):
        variants = generator.generate(debt_scenario, context)
        assert [v.name for v in variants] == [
            "Pay off credit card (Minimum Payment)",
            "Pay off credit card (Aggressive Payoff)",
        ]
        assert [v.amount("monthly_payment") for v in variants] == pytest.approx([360, 900])

    def test_investment_variants(self, generator, context):
        scenario = Scenario(id="i", name="Fund", type=ScenarioType.INVESTMENT, parameters={"investment_amount": 10_000})
        conservative, aggressive = generator.generate(scenario, context)

        assert conservative.amount("investment_amount") == pytest.approx(7_000)
        assert conservative.amount("expected_return") == pytest.approx(0.056)
        assert conservative.parameters["risk_level"] == "low"
        assert aggressive.amount("investment_amount") == pytest.approx(13_000)
        assert aggressive.amount("expected_return") == pytest.approx(0.098)
        assert aggressive.parameters["risk_level"] == "high"

    def test_emergency_fund_variants(self, generator, context):
        scenario = Scenario(
            id="e", name="Rainy day", type=ScenarioType.EMERGENCY_FUND,
            parameters={"target_amount": 10_000, "monthly_contribution": 400},
        )
        variants = generator.generate(scenario, context)
        assert [v.amount("monthly_contribution") for v in variants] == pytest.approx([300, 600])

    def test_other_types_vary_the_timeline(self, generator, context, home_scenario):
        extended, accelerated = generator.generate(home_scenario, context)
        assert extended.name == "Buy a house (Extended Timeline)"
        assert extended.amount("timeline") == 9
        assert accelerated.name == "Buy a house (Accelerated)"
        assert accelerated.amount("timeline") == 4.5

    def test_default_timeline_is_twelve(self, generator, context):
        scenario = Scenario(id="c", name="C", type=ScenarioType.CUSTOM, parameters={"monthly_impact": 100})
        extended, accelerated = generator.generate(scenario, context)
        assert (extended.amount("timeline"), accelerated.amount("timeline")) == (18, 9)

    def test_untyped_base_rejected(self, generator, context):
        with pytest.raises(ValueError):
            generator.generate(Scenario(name="?"), context)


class TestSimulate:
    """Tests for the variant walk."""

    def test_base_comes_first(self, generator, context, job_scenario):
        variants = generator.generate(job_scenario, context)
        outcomes = generator.simulate_all(job_scenario, variants, context)

        assert outcomes[0].id == "base"
        assert outcomes[0].is_base
        assert [o.id for o in outcomes[1:]] == [v.id for v in variants]

    def test_walk_adds_only_the_impact(self, generator, context, job_scenario):
        outcome = generator.simulate(job_scenario, context)
        assert outcome.monthly_impact == 1_000
        assert outcome.final_balance == 13_000
        assert len(outcome.balance_projection) == 3
        assert outcome.risk_level == 20
        assert outcome.sustainability == 100
        assert outcome.outcome_band is not None

    def test_fractional_timeline_walks_whole_months(self, generator, context, home_scenario):
        scenario = home_scenario.with_parameters(timeline=4.5)
        outcome = generator.simulate(scenario, context)
        assert len(outcome.balance_projection) == 4
        assert outcome.final_balance == 10_000 - 500 * 4

    def test_salary_cut_adds_risk(self, generator, context):
        scenario = Scenario(
            type=ScenarioType.JOB_CHANGE,
            parameters={"current_salary": 5_000, "new_salary": 4_000},
        )
        outcome = generator.simulate(scenario, context)
        assert outcome.risk_level == 30
        assert outcome.sustainability == 100

    def test_negative_cash_flow_risk_and_sustainability(self, generator, context):
        scenario = Scenario(type=ScenarioType.CAREER_BREAK, parameters={"timeline": 12})
        outcome = generator.simulate(scenario, context)
        assert outcome.risk_level == 40
        assert outcome.sustainability == 20


class TestScoring:
    """Tests for the first (base composite) pass."""

    def test_roi_is_zero_when_nothing_invested(self, generator, context):
        outcome = generator.simulate(Scenario(type=ScenarioType.CUSTOM, parameters={}), context)
        assert return_on_investment(outcome, context) == 0

    @pytest.mark.parametrize("balance,expected", [
        (60_000, 100), (30_000, 80), (15_000, 60), (6_000, 40), (5_000, 20),
    ])
    def test_liquidity_buckets(self, balance, expected):
        assert liquidity_score(balance) == expected

    def test_composite_formula(self):
        assert composite_score(100, 20, 60, 100) == pytest.approx(85)

    def test_score_picks_first_best(self, generator, ranker, context, job_scenario):
        """Test equal composites resolve to the earliest outcome."""
        variants = generator.generate(job_scenario, context)
        outcomes = generator.simulate_all(job_scenario, variants, context)
        analysis = ranker.score(outcomes, context)

        assert [o.composite_score for o in analysis.outcomes] == pytest.approx([85] * 4)
        assert analysis.best_outcome.id == "base"
        assert analysis.average_score == pytest.approx(85)

    def test_empty_outcomes_rejected(self, ranker, context):
        with pytest.raises(ValueError):
            ranker.score([], context)

    def test_comparison_matrix_keyed_by_id(self, generator, ranker, context, job_scenario):
        outcomes = generator.simulate_all(job_scenario, generator.generate(job_scenario, context), context)
        matrix = ranker.comparison_matrix(outcomes)
        assert set(matrix) == {"base", "job1_conservative", "job1_moderate", "job1_aggressive"}
        assert matrix["job1_aggressive"].timeline == 2


class TestRanking:
    """Tests for the preference pass, sort, rank and tier."""

    def test_default_preferences(self):
        prefs = user_preferences(RankingConstraints())
        assert (prefs.financial_weight, prefs.risk_weight,
                prefs.liquidity_weight, prefs.sustainability_weight) == (0.3, 0.25, 0.25, 0.2)

    def test_flags_raise_weights(self):
        prefs = user_preferences(RankingConstraints.from_flags(["risk-averse", "Long Term"]))
        assert prefs.risk_weight == 0.4
        assert prefs.sustainability_weight == 0.3
        assert prefs.financial_weight == 0.3

    def test_final_score_averages_weighted_terms(self, ranker):
        analysis = OutcomeAnalysis(outcomes=[_score("a", 85)])
        option = ranker.rank(analysis)[0]
        assert option.financial_score == pytest.approx(25.5)
        assert option.risk_score == pytest.approx(20)
        assert option.final_score == pytest.approx((25.5 + 20 + 15 + 20) / 4)

    def test_ties_keep_input_order(self, ranker):
        analysis = OutcomeAnalysis(outcomes=[_score(id, 50) for id in ("x", "y", "z")])
        ranked = ranker.rank(analysis)
        assert [r.outcome.id for r in ranked] == ["x", "y", "z"]
        assert [r.rank for r in ranked] == [1, 2, 3]

    def test_sorted_descending_with_tiers(self, ranker):
        scores = [_score(f"o{i}", composite=i * 10) for i in range(7)]
        ranked = ranker.rank(OutcomeAnalysis(outcomes=scores))

        assert [r.outcome.id for r in ranked] == ["o6", "o5", "o4", "o3", "o2", "o1", "o0"]
        assert [r.tier for r in ranked] == [Tier.TOP] * 3 + [Tier.MIDDLE] * 3 + [Tier.BOTTOM]
        assert len(ranker.top(ranked)) == 3

    def test_risk_averse_prefers_safer_option(self, ranker):
        risky = _score("risky", composite=60, risk=90)
        safe = _score("safe", composite=50, risk=0)
        analysis = OutcomeAnalysis(outcomes=[risky, safe])

        ranked = ranker.rank(analysis, RankingConstraints(risk_averse=True))
        assert ranked[0].outcome.id == "safe"

    def test_empty_analysis_rejected(self, ranker):
        with pytest.raises(ValueError):
            ranker.rank(OutcomeAnalysis())
