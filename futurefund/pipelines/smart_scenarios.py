"""
Smart Scenarios Pipeline

generate_variations -> execute_simulations -> analyze_outcomes
    -> rank_options -> generate_recommendations

Sweeps a base scenario into variants, simulates each one, ranks them by
the user's preferences and turns the top three into recommendations.
"""

from typing import Any, Mapping

from futurefund.graph import END, START, Channel, StateGraph
from futurefund.models import PipelineInput
from futurefund.pipelines.base import AnalysisServices, CachePolicy, Pipeline, require


NAME = "smart_scenarios"

PHASE_MESSAGES = {
    "generate_variations": "Generating scenario variations...",
    "execute_simulations": "Simulating each variation...",
    "analyze_outcomes": "Analyzing outcomes...",
    "rank_options": "Ranking options by your preferences...",
    "generate_recommendations": "Preparing recommendations...",
}

CHANNELS = {
    "scenario": Channel.value(),
    "context": Channel.value(),
    "constraints": Channel.value(),
    "simulation": Channel.value(),
    "variations": Channel.value(),
    "simulation_results": Channel.value(),
    "comparison_matrix": Channel.record(),
    "outcome_analysis": Channel.value(),
    "ranked_options": Channel.value(),
    "top_options": Channel.value(),
    "optimization_insights": Channel.value(),
    "creative_solutions": Channel.value(),
    "recommendations": Channel.value(),
}


def seed_state(pipeline_input: PipelineInput) -> dict[str, Any]:
    return {
        "scenario": pipeline_input.scenario or pipeline_input.scenario_set[0],
        "context": pipeline_input.context,
        "constraints": pipeline_input.constraints,
        "simulation": pipeline_input.simulation,
    }


def summarize(state: Mapping[str, Any]) -> dict[str, Any]:
    variations = state.get("variations") or []
    top = state.get("top_options") or []
    return {
        "variations": len(variations),
        "top_option": top[0].scenario.name if top else None,
        "recommendations": len(state.get("recommendations") or []),
    }


def build_smart_scenarios(services: AnalysisServices) -> Pipeline:
    """Compile the smart scenarios pipeline over the given services."""

    def generate_variations(state):
        scenario = require(state, "scenario", "generate_variations")
        context = require(state, "context", "generate_variations")
        return {"variations": services.variations.generate(scenario, context)}

    def execute_simulations(state):
        scenario = require(state, "scenario", "execute_simulations")
        context = require(state, "context", "execute_simulations")
        variations = require(state, "variations", "execute_simulations", "Scenario variations")
        seed = state["simulation"].seed if state.get("simulation") else None

        outcomes = services.variations.simulate_all(scenario, variations, context, seed=seed)
        return {
            "simulation_results": outcomes,
            "comparison_matrix": services.ranker.comparison_matrix(outcomes),
        }

    def analyze_outcomes(state):
        context = require(state, "context", "analyze_outcomes")
        outcomes = require(state, "simulation_results", "analyze_outcomes", "Simulation results")
        return {"outcome_analysis": services.ranker.score(outcomes, context)}

    def rank_options(state):
        analysis = require(state, "outcome_analysis", "rank_options", "Outcome analysis")
        ranked = services.ranker.rank(analysis, state.get("constraints"))
        return {
            "ranked_options": ranked,
            "top_options": services.ranker.top(ranked),
        }

    async def generate_recommendations(state):
        scenario = require(state, "scenario", "generate_recommendations")
        context = require(state, "context", "generate_recommendations")
        ranked = require(state, "ranked_options", "generate_recommendations", "Ranked options")
        top = state.get("top_options") or services.ranker.top(ranked)

        synthesizer = services.synthesizer
        insights = await synthesizer.optimization_insights(scenario, ranked, context)
        creative = synthesizer.creative_solutions(top)
        return {
            "optimization_insights": insights,
            "creative_solutions": creative,
            "recommendations": synthesizer.final_recommendations(top, creative),
        }

    graph = StateGraph(CHANNELS, name=NAME)
    graph.add_node("generate_variations", generate_variations)
    graph.add_node("execute_simulations", execute_simulations)
    graph.add_node("analyze_outcomes", analyze_outcomes)
    graph.add_node("rank_options", rank_options)
    graph.add_node("generate_recommendations", generate_recommendations)
    (
        graph.add_edge(START, "generate_variations")
        .add_edge("generate_variations", "execute_simulations")
        .add_edge("execute_simulations", "analyze_outcomes")
        .add_edge("analyze_outcomes", "rank_options")
        .add_edge("rank_options", "generate_recommendations")
        .add_edge("generate_recommendations", END)
    )

    return Pipeline(
        name=NAME,
        graph=graph.compile(),
        phase_messages=PHASE_MESSAGES,
        cache_policy=CachePolicy.TTL,
        seed_state=seed_state,
        summarize=summarize,
    )
