"""
Tests for the three analysis pipelines, run directly on their graphs.
"""

import pytest

from futurefund.graph import Channel, StateGraph, START, END
from futurefund.models import PipelineInput, RankingConstraints, Scenario, ScenarioType, Severity
from futurefund.pipelines import (
    CachePolicy,
    Pipeline,
    build_advanced_modeling,
    build_default_pipelines,
    build_scenario_analysis,
    build_smart_scenarios,
)
from futurefund.pipelines.advanced_modeling import build_dependency_graph


async def _run(pipeline, pipeline_input):
    return await pipeline.graph.invoke(pipeline.initial_state(pipeline_input))


@pytest.fixture
def investment_scenario():
    return Scenario(
        id="inv",
        name="Index fund",
        type=ScenarioType.INVESTMENT,
        parameters={"investment_amount": 1_200, "monthly_contribution": 100},
    )


class TestPipelineDefinition:
    """Tests for the Pipeline wrapper."""

    def test_default_pipelines(self, services):
        pipelines = build_default_pipelines(services)
        assert [p.name for p in pipelines] == ["scenario_analysis", "smart_scenarios", "advanced_modeling"]
        assert [p.cache_policy for p in pipelines] == [CachePolicy.LRU, CachePolicy.TTL, CachePolicy.TTL]
        assert all(len(p.phases) == 5 for p in pipelines)

    def test_every_phase_needs_a_message(self):
        graph = StateGraph({"x": Channel.value()}, name="g")
        graph.add_node("only", lambda state: None)
        graph.add_edge(START, "only").add_edge("only", END)

        with pytest.raises(ValueError, match="only"):
            Pipeline(
                name="g",
                graph=graph.compile(),
                phase_messages={},
                cache_policy=CachePolicy.LRU,
                seed_state=lambda data: {},
            )

    def test_missing_inputs(self, services, context, debt_scenario):
        pipeline = build_scenario_analysis(services)
        assert pipeline.missing_inputs(PipelineInput()) == ["scenario", "context"]
        assert pipeline.missing_inputs(PipelineInput(scenario=debt_scenario)) == ["context"]
        assert pipeline.missing_inputs(PipelineInput(scenario=debt_scenario, context=context)) == []


class TestScenarioAnalysis:
    """Tests for the single-scenario pipeline."""

    @pytest.mark.asyncio
    async def test_debt_payoff_end_to_end(self, services, context, debt_scenario):
        pipeline = build_scenario_analysis(services)
        result = await _run(pipeline, PipelineInput(scenario=debt_scenario, context=context))

        state = result.state
        assert not result.has_errors
        assert state["validation_results"].is_valid
        assert state["financial_effects"].monthly_impact == -600
        assert state["conflict_analysis"].conflicts == []
        assert state["feasibility_assessment"].feasibility_score == 94
        assert state["analysis_report"].summary.startswith("Pay off credit card has a feasibility score of 94/100")
        assert pipeline.summarize(state) == {"is_valid": True, "feasibility_score": 94, "conflicts": 0}

    @pytest.mark.asyncio
    async def test_existing_scenarios_lower_feasibility(self, services, context, job_scenario):
        other = job_scenario.model_copy(update={"id": "job2"}).with_parameters(new_salary=5_500)
        candidate = job_scenario.model_copy(update={"existing_scenarios": [other]})
        result = await _run(build_scenario_analysis(services), PipelineInput(scenario=candidate, context=context))

        assert result.state["conflict_analysis"].count(Severity.HIGH) == 1
        assert result.state["feasibility_assessment"].viability_factors.conflict_impact == 70

    @pytest.mark.asyncio
    async def test_invalid_scenario_still_analyzed(self, services, context):
        """Test validation errors are reported without stopping later phases."""
        scenario = Scenario(name="Bad", type=ScenarioType.DEBT_PAYOFF, parameters={"monthly_payment": -5})
        result = await _run(build_scenario_analysis(services), PipelineInput(scenario=scenario, context=context))

        assert not result.state["validation_results"].is_valid
        assert result.state["analysis_report"] is not None
        assert not result.has_errors

    @pytest.mark.asyncio
    async def test_missing_context_degrades(self, services, debt_scenario):
        result = await _run(build_scenario_analysis(services), PipelineInput(scenario=debt_scenario))

        assert [e.phase for e in result.errors] == [
            "calculate_effects",
            "detect_conflicts",
            "score_feasibility",
            "generate_insights",
        ]
        assert result.state["validation_results"] is not None
        assert result.state["analysis_report"] is None


class TestSmartScenarios:
    """Tests for the variant ranking pipeline."""

    @pytest.mark.asyncio
    async def test_job_change_end_to_end(self, services, context, job_scenario):
        pipeline = build_smart_scenarios(services)
        result = await _run(pipeline, PipelineInput(scenario=job_scenario, context=context))

        state = result.state
        assert not result.has_errors
        assert len(state["variations"]) == 3
        assert [o.id for o in state["simulation_results"]][0] == "base"
        assert set(state["comparison_matrix"]) == {o.id for o in state["simulation_results"]}
        assert [r.rank for r in state["ranked_options"]] == [1, 2, 3, 4]
        assert len(state["top_options"]) == 3
        assert [r.id for r in state["recommendations"]] == ["primary", "secondary", "hybrid_approach"]
        assert not state["optimization_insights"].used_llm
        assert pipeline.summarize(state)["variations"] == 3

    @pytest.mark.asyncio
    async def test_constraints_reach_ranking(self, services, context, job_scenario):
        data = PipelineInput(
            scenario=job_scenario,
            context=context,
            constraints=RankingConstraints(risk_averse=True),
        )
        result = await _run(build_smart_scenarios(services), data)
        assert result.state["constraints"].risk_averse
        assert not result.has_errors

    @pytest.mark.asyncio
    async def test_untyped_base_fails_every_phase(self, services, context):
        """Test a failing first node leaves each later node without input."""
        result = await _run(build_smart_scenarios(services), PipelineInput(scenario=Scenario(name="?"), context=context))

        assert [e.phase for e in result.errors] == build_smart_scenarios(services).phases
        assert result.errors[1].message == "Scenario variations not available"
        assert result.state["recommendations"] is None


class TestAdvancedModeling:
    """Tests for the compound scenario pipeline."""

    @pytest.mark.asyncio
    async def test_compound_set_end_to_end(self, services, context, job_scenario, debt_scenario, investment_scenario):
        data = PipelineInput(scenarios=[job_scenario, debt_scenario, investment_scenario], context=context)
        pipeline = build_advanced_modeling(services)
        result = await _run(pipeline, data)

        state = result.state
        assert not result.has_errors
        assert state["compound_effects"].monthly_impact == 300
        assert state["dependency_graph"].edges == [("debt1", "inv")]
        assert state["dependency_graph"].critical_path == ["job1", "debt1", "inv"]
        assert [r.type for r in state["dependency_graph"].timeline_risks] == ["conflict_risk"]
        assert state["monte_carlo"].simulation_count == 100
        assert len(state["templates"]) == 3
        assert state["advanced_insights"].timeline_recommendations
        assert pipeline.summarize(state)["scenarios"] == 3

    @pytest.mark.asyncio
    async def test_negative_set_flags_cash_flow(self, services, context, debt_scenario):
        result = await _run(build_advanced_modeling(services), PipelineInput(scenarios=[debt_scenario], context=context))
        risks = result.state["dependency_graph"].timeline_risks
        assert [r.type for r in risks] == ["cash_flow_risk"]
        assert risks[0].severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_trial_count_and_seed(self, services, context, debt_scenario):
        data = PipelineInput.model_validate({
            "scenarios": [debt_scenario],
            "context": context,
            "simulation": {"trials": 20, "seed": 9},
        })
        first = await _run(build_advanced_modeling(services), data)
        second = await _run(build_advanced_modeling(services), data)

        assert first.state["monte_carlo"].simulation_count == 20
        assert first.state["monte_carlo"].statistics == second.state["monte_carlo"].statistics

    @pytest.mark.asyncio
    async def test_empty_set_fails_load(self, services, context):
        result = await _run(build_advanced_modeling(services), PipelineInput(context=context))
        assert result.errors[0].phase == "load_scenario_set"
        assert "At least one scenario" in result.errors[0].message

    def test_dependency_edges(self, debt_scenario, investment_scenario, job_scenario):
        graph = build_dependency_graph([investment_scenario, job_scenario, debt_scenario])
        assert [n.id for n in graph.nodes] == ["inv", "job1", "debt1"]
        assert graph.edges == [("debt1", "inv")]
