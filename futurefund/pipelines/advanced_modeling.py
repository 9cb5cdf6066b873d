"""
Advanced Modeling Pipeline

load_scenario_set -> analyze_compound_effects -> run_monte_carlo
    -> assess_timeline -> generate_advanced_insights

Models a set of scenarios running together: their combined monthly
impact, pairwise conflicts and synergies, a Monte Carlo band around the
combined impact, timeline risks and the resulting pathways.

The dependency graph is deliberately simple. Every scenario is a node,
the critical path is the whole set in input order, and the only edges
are debt payoffs that precede investments in the same set.
"""

from typing import Any, Mapping

from futurefund.graph import END, START, Channel, NodeExecutionError, StateGraph
from futurefund.models import (
    DependencyGraph,
    DependencyNode,
    PipelineInput,
    ScenarioTemplate,
    ScenarioType,
    Severity,
    TimelineRisk,
)
from futurefund.pipelines.base import AnalysisServices, CachePolicy, Pipeline, require


NAME = "advanced_modeling"

PHASE_MESSAGES = {
    "load_scenario_set": "Loading scenario set...",
    "analyze_compound_effects": "Analyzing compound effects...",
    "run_monte_carlo": "Running Monte Carlo simulation...",
    "assess_timeline": "Assessing timeline and dependencies...",
    "generate_advanced_insights": "Generating advanced insights...",
}

CHANNELS = {
    "scenarios": Channel.value(),
    "context": Channel.value(),
    "simulation": Channel.value(),
    "dependency_graph": Channel.value(),
    "templates": Channel.value(),
    "compound_effects": Channel.value(),
    "conflict_analysis": Channel.value(),
    "monte_carlo": Channel.value(),
    "advanced_insights": Channel.value(),
}

TEMPLATES = (
    ScenarioTemplate(
        id="retirement_package",
        name="Retirement Planning Package",
        description="Comprehensive retirement preparation scenarios",
        scenarios=["401k_increase", "debt_payoff", "emergency_fund"],
    ),
    ScenarioTemplate(
        id="home_ownership",
        name="Home Ownership Journey",
        description="Complete home buying scenarios",
        scenarios=["down_payment_savings", "home_purchase"],
    ),
    ScenarioTemplate(
        id="career_growth",
        name="Career Advancement Strategy",
        description="Professional development scenarios",
        scenarios=["skill_investment", "job_change", "side_income"],
    ),
)


def seed_state(pipeline_input: PipelineInput) -> dict[str, Any]:
    return {
        "scenarios": pipeline_input.scenario_set,
        "context": pipeline_input.context,
        "simulation": pipeline_input.simulation,
    }


def summarize(state: Mapping[str, Any]) -> dict[str, Any]:
    monte_carlo = state.get("monte_carlo")
    compound = state.get("compound_effects")
    return {
        "scenarios": len(state.get("scenarios") or []),
        "combined_monthly_impact": compound.monthly_impact if compound else None,
        "expected_balance": monte_carlo.statistics.mean if monte_carlo else None,
    }


def build_dependency_graph(scenarios) -> DependencyGraph:
    nodes = [
        DependencyNode(id=s.id, name=s.name, type=s.type.value if s.type else None)
        for s in scenarios
    ]
    debts = [s.id for s in scenarios if s.type == ScenarioType.DEBT_PAYOFF]
    investments = [s.id for s in scenarios if s.type == ScenarioType.INVESTMENT]
    edges = [(debt, investment) for debt in debts for investment in investments]
    return DependencyGraph(nodes=nodes, edges=edges)


def build_advanced_modeling(services: AnalysisServices) -> Pipeline:
    """Compile the advanced modeling pipeline over the given services."""

    def load_scenario_set(state):
        scenarios = state.get("scenarios") or []
        if not scenarios:
            raise NodeExecutionError(
                "load_scenario_set", "At least one scenario is required for advanced modeling"
            )
        return {
            "dependency_graph": build_dependency_graph(scenarios),
            "templates": list(TEMPLATES),
        }

    def analyze_compound_effects(state):
        scenarios = require(state, "scenarios", "analyze_compound_effects")
        context = require(state, "context", "analyze_compound_effects")
        return {
            "compound_effects": services.calculator.combine(scenarios, context),
            "conflict_analysis": services.conflicts.analyze_set(scenarios, context),
        }

    def run_monte_carlo(state):
        context = require(state, "context", "run_monte_carlo")
        compound = require(state, "compound_effects", "run_monte_carlo", "Compound effects")
        simulation = state.get("simulation")
        result = services.simulator.simulate(
            compound.monthly_impact,
            context.current_balance,
            trials=simulation.trials if simulation else None,
            seed=simulation.seed if simulation else None,
        )
        return {"monte_carlo": result}

    def assess_timeline(state):
        graph = require(state, "dependency_graph", "assess_timeline", "Dependency graph")
        conflicts = state.get("conflict_analysis")
        compound = state.get("compound_effects")

        risks = []
        if conflicts is not None and conflicts.conflicts:
            risks.append(TimelineRisk(
                type="conflict_risk",
                severity=Severity.MEDIUM,
                description="Conflicting scenarios may create timeline complications",
            ))
        if compound is not None and compound.monthly_impact < 0:
            risks.append(TimelineRisk(
                type="cash_flow_risk",
                severity=Severity.HIGH,
                description="Negative cash flow impact may affect scenario timing",
            ))

        updated = graph.model_copy(update={
            "critical_path": [node.id for node in graph.nodes],
            "timeline_risks": risks,
        })
        return {"dependency_graph": updated}

    def generate_advanced_insights(state):
        context = require(state, "context", "generate_advanced_insights")
        insights = services.synthesizer.advanced_insights(
            context,
            monte_carlo=state.get("monte_carlo"),
            conflicts=state.get("conflict_analysis"),
        )
        return {"advanced_insights": insights}

    graph = StateGraph(CHANNELS, name=NAME)
    graph.add_node("load_scenario_set", load_scenario_set)
    graph.add_node("analyze_compound_effects", analyze_compound_effects)
    graph.add_node("run_monte_carlo", run_monte_carlo)
    graph.add_node("assess_timeline", assess_timeline)
    graph.add_node("generate_advanced_insights", generate_advanced_insights)
    (
        graph.add_edge(START, "load_scenario_set")
        .add_edge("load_scenario_set", "analyze_compound_effects")
        .add_edge("analyze_compound_effects", "run_monte_carlo")
        .add_edge("run_monte_carlo", "assess_timeline")
        .add_edge("assess_timeline", "generate_advanced_insights")
        .add_edge("generate_advanced_insights", END)
    )

    return Pipeline(
        name=NAME,
        graph=graph.compile(),
        phase_messages=PHASE_MESSAGES,
        cache_policy=CachePolicy.TTL,
        seed_state=seed_state,
        summarize=summarize,
    )
