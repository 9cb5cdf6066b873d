"""
Recommendation Models

Structured output of the recommendation synthesizer: single-scenario
analysis reports, optimization insights for ranked variants, and the
advanced-modeling insights for compound scenario sets.

DESIGN DECISION: Every field has a default that makes the model
structurally complete. The rule-based fallback can always fill these
shapes, with or without the LLM.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from futurefund.models.scenario import AdvisoryItem, RiskBand, Scenario, Severity


class LLMInsights(BaseModel):
    """Natural-language gloss, from the LLM or from the fallback template."""

    model_config = ConfigDict(frozen=True)

    insights: str = Field(..., min_length=1)
    optimizations: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)
    risk_assessment: dict[str, Any] = Field(default_factory=dict)
    model: str = Field(
        default="fallback",
        description="Model that produced the text, 'fallback' for templates"
    )
    generated_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# SINGLE SCENARIO ANALYSIS
# =============================================================================

class Alternative(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    modifications: str


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_risk: RiskBand
    financial_risk: str = Field(pattern="^(low|high)$")
    timeline_risk: str = Field(pattern="^(low|high)$")
    resource_risk: str = Field(pattern="^(low|high)$")


class AnalysisReport(BaseModel):
    """Actionable output of the scenario analysis pipeline."""

    model_config = ConfigDict(frozen=True)

    summary: str
    recommendations: list[AdvisoryItem] = Field(default_factory=list)
    optimizations: list[AdvisoryItem] = Field(default_factory=list)
    alternatives: list[Alternative] = Field(default_factory=list)
    risk_assessment: Optional[RiskAssessment] = None
    next_steps: list[str] = Field(default_factory=list)
    insights: Optional[LLMInsights] = None


# =============================================================================
# SMART SCENARIOS
# =============================================================================

class Recommendation(BaseModel):
    """Primary, secondary or creative recommendation record."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str = Field(pattern="^(primary|secondary|creative)$")
    title: str
    description: str
    scenario: Optional[Scenario] = None
    expected_impact: float
    confidence: str = Field(pattern="^(low|medium|high)$")
    timeline: float


class CreativeSolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    benefits: list[str] = Field(default_factory=list)
    estimated_impact: float


class ActionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    action: str
    timeline: float
    priority: str
    requirements: list[str] = Field(default_factory=list)
    expected_outcome: str


class StrategicRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    scenario_name: str
    recommendation: str
    rationale: str
    priority: str


class Opportunity(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    impact: float
    priority: str


class PerformanceGains(BaseModel):
    """Top-ranked option compared with the unmodified base scenario."""

    model_config = ConfigDict(frozen=True)

    monthly_gain: float
    balance_gain: float
    risk_reduction: float
    improvement_percentage: Optional[float] = Field(
        default=None,
        description="None when the base scored exactly zero"
    )


class RiskProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_risk: float
    lowest_risk: float
    highest_risk: float
    risk_spread: float


class OptimizationInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    performance_gains: Optional[PerformanceGains] = None
    risk_profile: Optional[RiskProfile] = None
    opportunities: list[Opportunity] = Field(default_factory=list)
    strategic_recommendations: list[StrategicRecommendation] = Field(default_factory=list)
    ai_insights: LLMInsights
    action_items: list[ActionItem] = Field(default_factory=list)
    used_llm: bool = False


# =============================================================================
# ADVANCED MODELING
# =============================================================================

class DependencyNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: Optional[str] = None


class TimelineRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    severity: Severity


class DependencyGraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: list[DependencyNode] = Field(default_factory=list)
    edges: list[tuple[str, str]] = Field(default_factory=list)
    critical_path: list[str] = Field(default_factory=list)
    timeline_risks: list[TimelineRisk] = Field(default_factory=list)


class ScenarioTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    scenarios: list[str] = Field(default_factory=list)


class OptimalPathway(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    probability: float = Field(ge=0, le=1)
    expected_value: float


class TimelineRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: str
    recommendation: str
    timeframe: str


class AdvancedInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    optimal_pathways: list[OptimalPathway] = Field(default_factory=list)
    risk_mitigation_strategies: list[AdvisoryItem] = Field(default_factory=list)
    opportunities: list[AdvisoryItem] = Field(default_factory=list)
    timeline_recommendations: list[TimelineRecommendation] = Field(default_factory=list)
