"""
Pipeline Definitions

A Pipeline is a compiled state graph plus what the orchestrator needs to
run it: the progress message per phase, the cache policy, the inputs it
requires, and how to seed the initial state and summarize the result.

DESIGN DECISION: Nodes never trust earlier phases.
A node that needs an earlier phase's output reads it with require();
when the earlier phase failed the value is missing, require() raises
NodeExecutionError, and the engine records that as one more error in the
run instead of crashing it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from futurefund.agents import InsightProvider
from futurefund.analysis import (
    ConflictSynergyAnalyzer,
    FeasibilityScorer,
    FinancialEffectCalculator,
    MonteCarloSimulator,
    MultiCriteriaRanker,
    RecommendationSynthesizer,
    VariationGenerator,
)
from futurefund.audit import AuditLogger
from futurefund.graph import CompiledGraph, NodeExecutionError
from futurefund.models import PipelineInput
from futurefund.validation import ScenarioValidator


class CachePolicy(str, Enum):
    """Which result cache serves a pipeline."""
    LRU = "lru"
    TTL = "ttl"


def require(state: Mapping[str, Any], key: str, phase: str, what: Optional[str] = None) -> Any:
    """Read a prerequisite channel or fail the node."""
    value = state.get(key)
    if value is None:
        raise NodeExecutionError(phase, f"{what or key} not available")
    return value


@dataclass(frozen=True)
class AnalysisServices:
    """The analysis components shared by every pipeline."""

    validator: ScenarioValidator
    calculator: FinancialEffectCalculator
    conflicts: ConflictSynergyAnalyzer
    simulator: MonteCarloSimulator
    feasibility: FeasibilityScorer
    variations: VariationGenerator
    ranker: MultiCriteriaRanker
    synthesizer: RecommendationSynthesizer

    @classmethod
    def create(
        cls,
        provider: Optional[InsightProvider] = None,
        audit_logger: Optional[AuditLogger] = None,
        llm_timeout_seconds: Optional[float] = None,
        seed: Optional[int] = None,
    ) -> "AnalysisServices":
        """Wire the default components, all reading settings."""
        calculator = FinancialEffectCalculator()
        simulator = MonteCarloSimulator(seed=seed)
        return cls(
            validator=ScenarioValidator(),
            calculator=calculator,
            conflicts=ConflictSynergyAnalyzer(calculator=calculator),
            simulator=simulator,
            feasibility=FeasibilityScorer(),
            variations=VariationGenerator(calculator=calculator, simulator=simulator),
            ranker=MultiCriteriaRanker(),
            synthesizer=RecommendationSynthesizer(
                provider=provider,
                llm_timeout_seconds=llm_timeout_seconds,
                audit_logger=audit_logger,
            ),
        )


def _no_summary(state: Mapping[str, Any]) -> dict[str, Any]:
    return {}


@dataclass(frozen=True)
class Pipeline:
    """
    A named, runnable analysis.

    phase_messages pairs each graph node with the message shown while the
    synthetic progress ticker is on that phase.
    """

    name: str
    graph: CompiledGraph
    phase_messages: dict[str, str]
    cache_policy: CachePolicy
    seed_state: Callable[[PipelineInput], dict[str, Any]]
    summarize: Callable[[Mapping[str, Any]], dict[str, Any]] = _no_summary
    requires_scenario: bool = True
    requires_context: bool = True
    output_channels: Optional[tuple[str, ...]] = field(default=None)

    def __post_init__(self):
        missing = [p for p in self.graph.node_names if p not in self.phase_messages]
        if missing:
            raise ValueError(f"Pipeline '{self.name}' has no progress message for {missing}")

    @property
    def phases(self) -> list[str]:
        return self.graph.node_names

    def missing_inputs(self, pipeline_input: PipelineInput) -> list[str]:
        missing = []
        if self.requires_scenario and not pipeline_input.scenario_set:
            missing.append("scenario")
        if self.requires_context and pipeline_input.context is None:
            missing.append("context")
        return missing

    def initial_state(self, pipeline_input: PipelineInput) -> dict[str, Any]:
        return self.seed_state(pipeline_input)

    def output(self, state: Mapping[str, Any]) -> dict[str, Any]:
        """Result data: the declared output channels, or the whole state."""
        keys = self.output_channels or tuple(state.keys())
        return {key: state.get(key) for key in keys}
