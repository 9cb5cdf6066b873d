"""
Scenario Analysis Pipeline

validate_scenario -> calculate_effects -> detect_conflicts
    -> score_feasibility -> generate_insights

Analyzes one scenario against the user's financial position and the
scenarios already active. Validation problems are recorded in
validation_results and do not stop the run; later phases work with
whatever parameters are present.
"""

from typing import Any, Mapping

from futurefund.graph import END, START, Channel, StateGraph
from futurefund.models import PipelineInput
from futurefund.pipelines.base import AnalysisServices, CachePolicy, Pipeline, require


NAME = "scenario_analysis"

PHASE_MESSAGES = {
    "validate_scenario": "Validating scenario parameters...",
    "calculate_effects": "Calculating financial effects...",
    "detect_conflicts": "Checking for conflicts with active scenarios...",
    "score_feasibility": "Scoring feasibility...",
    "generate_insights": "Generating insights and recommendations...",
}

CHANNELS = {
    "scenario": Channel.value(),
    "context": Channel.value(),
    "validation_results": Channel.value(),
    "financial_effects": Channel.value(),
    "conflict_analysis": Channel.value(),
    "feasibility_assessment": Channel.value(),
    "analysis_report": Channel.value(),
}


def seed_state(pipeline_input: PipelineInput) -> dict[str, Any]:
    return {
        "scenario": pipeline_input.scenario or pipeline_input.scenario_set[0],
        "context": pipeline_input.context,
    }


def summarize(state: Mapping[str, Any]) -> dict[str, Any]:
    feasibility = state.get("feasibility_assessment")
    validation = state.get("validation_results")
    conflicts = state.get("conflict_analysis")
    return {
        "is_valid": validation.is_valid if validation else None,
        "feasibility_score": feasibility.feasibility_score if feasibility else None,
        "conflicts": len(conflicts.conflicts) if conflicts else 0,
    }


def build_scenario_analysis(services: AnalysisServices) -> Pipeline:
    """Compile the scenario analysis pipeline over the given services."""

    def validate_scenario(state):
        scenario = require(state, "scenario", "validate_scenario")
        return {"validation_results": services.validator.validate(scenario)}

    def calculate_effects(state):
        scenario = require(state, "scenario", "calculate_effects")
        context = require(state, "context", "calculate_effects")
        return {"financial_effects": services.calculator.calculate(scenario, context)}

    def detect_conflicts(state):
        scenario = require(state, "scenario", "detect_conflicts")
        context = require(state, "context", "detect_conflicts")
        return {"conflict_analysis": services.conflicts.analyze(scenario, context)}

    def score_feasibility(state):
        scenario = require(state, "scenario", "score_feasibility")
        context = require(state, "context", "score_feasibility")
        effects = require(state, "financial_effects", "score_feasibility", "Financial effects")
        assessment = services.feasibility.assess(
            scenario,
            context,
            effects,
            state.get("conflict_analysis"),
        )
        return {"feasibility_assessment": assessment}

    async def generate_insights(state):
        scenario = require(state, "scenario", "generate_insights")
        context = require(state, "context", "generate_insights")
        effects = require(state, "financial_effects", "generate_insights", "Financial effects")
        feasibility = require(
            state, "feasibility_assessment", "generate_insights", "Feasibility assessment"
        )
        report = await services.synthesizer.analysis_report(
            scenario,
            context,
            effects,
            feasibility,
            state.get("conflict_analysis"),
        )
        return {"analysis_report": report}

    graph = StateGraph(CHANNELS, name=NAME)
    graph.add_node("validate_scenario", validate_scenario)
    graph.add_node("calculate_effects", calculate_effects)
    graph.add_node("detect_conflicts", detect_conflicts)
    graph.add_node("score_feasibility", score_feasibility)
    graph.add_node("generate_insights", generate_insights)
    (
        graph.add_edge(START, "validate_scenario")
        .add_edge("validate_scenario", "calculate_effects")
        .add_edge("calculate_effects", "detect_conflicts")
        .add_edge("detect_conflicts", "score_feasibility")
        .add_edge("score_feasibility", "generate_insights")
        .add_edge("generate_insights", END)
    )

    return Pipeline(
        name=NAME,
        graph=graph.compile(),
        phase_messages=PHASE_MESSAGES,
        cache_policy=CachePolicy.LRU,
        seed_state=seed_state,
        summarize=summarize,
    )
