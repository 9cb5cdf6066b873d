"""
Recommendation Synthesizer

Turns computed figures into actionable records for all three pipelines:

- Scenario analysis: summary, feasibility recommendations, optimizations,
  alternatives, risk assessment and next steps.
- Smart scenarios: performance gains against the base scenario, risk
  profile, opportunities, strategic recommendations, action items,
  creative solutions and the final primary/secondary/creative set.
- Advanced modeling: optimal pathways, risk mitigation, opportunities
  and timeline recommendations for a compound scenario set.

DESIGN DECISION: The LLM gloss is optional.
request_insights() races the provider against llm_timeout_seconds. On
no provider, a timeout, an error or an empty reply it returns the
deterministic template instead, logs the reason and records a
collaborator_fallback audit event. Nothing the provider does can fail a
pipeline.
"""

import asyncio
from typing import Optional

import structlog

from futurefund.agents.insight_agent import InsightProvider
from futurefund.audit import AuditLogger
from futurefund.config import get_settings
from futurefund.models import (
    ActionItem,
    AdvancedInsights,
    AdvisoryItem,
    Alternative,
    AnalysisReport,
    ConflictAnalysis,
    CreativeSolution,
    FeasibilityAssessment,
    FinancialContext,
    FinancialEffects,
    LLMInsights,
    MonteCarloResult,
    OptimalPathway,
    OptimizationInsights,
    Opportunity,
    PerformanceGains,
    RankedOption,
    Recommendation,
    RiskAssessment,
    RiskProfile,
    Scenario,
    ScenarioType,
    StrategicRecommendation,
    TimelineRecommendation,
)


logger = structlog.get_logger(__name__)

TOP_N = 3
CREATIVE_TIMELINE_MONTHS = 18


def _money(value: float) -> str:
    return f"${value:,.2f}"


class RecommendationSynthesizer:
    """Builds recommendation records, optionally glossed by an LLM."""

    def __init__(
        self,
        provider: Optional[InsightProvider] = None,
        llm_timeout_seconds: Optional[float] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if llm_timeout_seconds is None:
            llm_timeout_seconds = get_settings().engine.llm_timeout_seconds
        self._provider = provider
        self.llm_timeout_seconds = llm_timeout_seconds
        self._audit = audit_logger

    @property
    def has_provider(self) -> bool:
        return self._provider is not None

    # =========================================================================
    # LLM GLOSS
    # =========================================================================

    @staticmethod
    def fallback_insights(scenario: Scenario, top: list[RankedOption]) -> LLMInsights:
        """Deterministic insights. Always non-empty."""
        name = top[0].scenario.name if top else scenario.name
        alternatives = [r.scenario.name for r in top[1:]]
        level = "unknown"
        if top:
            risk = top[0].outcome.risk_level
            level = "low" if risk < 30 else "medium" if risk < 60 else "high"

        return LLMInsights(
            insights=(
                f'Based on your financial profile, the top scenario "{name}" offers the '
                "best balance of returns and risk. Consider implementing this option "
                "as your primary strategy."
            ),
            optimizations=[
                "Review the timeline against your comfort level",
                "Track the monthly impact against your budget",
            ],
            alternatives=alternatives,
            risk_assessment={"level": level},
        )

    async def _fall_back(self, reason: str, scenario: Scenario, top: list[RankedOption]) -> LLMInsights:
        logger.info("llm_fallback", reason=reason, scenario=scenario.name)
        if self._audit is not None:
            await self._audit.log_collaborator_fallback(reason)
        return self.fallback_insights(scenario, top)

    async def request_insights(
        self,
        scenario: Scenario,
        top: list[RankedOption],
        context: FinancialContext,
    ) -> tuple[LLMInsights, bool]:
        """
        Ask the provider for a gloss.

        Returns:
            (insights, used_llm): used_llm is False whenever the template
            was used instead
        """
        if self._provider is None:
            return self.fallback_insights(scenario, top), False

        try:
            insights = await asyncio.wait_for(
                self._provider.generate_insights(scenario, top, context),
                timeout=self.llm_timeout_seconds,
            )
        except asyncio.TimeoutError:
            reason = f"LLM did not answer within {self.llm_timeout_seconds}s"
            return await self._fall_back(reason, scenario, top), False
        except Exception as e:
            return await self._fall_back(f"LLM error: {e}", scenario, top), False

        if insights is None:
            return await self._fall_back("LLM returned no insights", scenario, top), False
        return insights, True

    # =========================================================================
    # SCENARIO ANALYSIS REPORT
    # =========================================================================

    def feasibility_recommendations(self, feasibility: FeasibilityAssessment) -> list[AdvisoryItem]:
        score = feasibility.feasibility_score
        if score < 50:
            return [AdvisoryItem(
                type="improvement",
                priority="high",
                description="Consider reducing scenario scope or increasing financial capacity",
            )]
        if score < 80:
            return [AdvisoryItem(
                type="improvement",
                priority="medium",
                description="Scenario is moderately feasible but could benefit from adjustments",
            )]
        return [AdvisoryItem(
            type="approval",
            priority="low",
            description="Scenario appears highly feasible and well-planned",
        )]

    def optimizations(
        self,
        scenario: Scenario,
        effects: FinancialEffects,
        context: FinancialContext,
    ) -> list[AdvisoryItem]:
        items = []
        if abs(effects.monthly_impact) > context.available_income * 0.5:
            items.append(AdvisoryItem(
                type="cost_reduction",
                priority="medium",
                description="Consider reducing monthly commitment to improve cash flow",
            ))
        if scenario.type == ScenarioType.DEBT_PAYOFF:
            items.append(AdvisoryItem(
                type="payment_optimization",
                priority="medium",
                description="Consider debt snowball or avalanche method for faster payoff",
            ))
        return items

    def alternatives(self, scenario: Scenario, feasibility: FeasibilityAssessment) -> list[Alternative]:
        if feasibility.feasibility_score >= 60:
            return []
        return [
            Alternative(
                type="scaled_down",
                description=f"Scaled-down version of {scenario.name}",
                modifications="Reduce scope by 50%",
            ),
            Alternative(
                type="phased_approach",
                description=f"Phased implementation of {scenario.name}",
                modifications="Split into multiple phases over longer timeline",
            ),
        ]

    def risk_assessment(
        self,
        effects: FinancialEffects,
        feasibility: FeasibilityAssessment,
    ) -> RiskAssessment:
        factors = feasibility.viability_factors
        return RiskAssessment(
            overall_risk=feasibility.feasibility_risk_band,
            financial_risk="high" if effects.monthly_impact > 1000 else "low",
            timeline_risk="high" if factors.timeline_realism < 70 else "low",
            resource_risk="high" if factors.resource_availability < 70 else "low",
        )

    def summary(
        self,
        scenario: Scenario,
        effects: FinancialEffects,
        feasibility: FeasibilityAssessment,
    ) -> str:
        score = feasibility.feasibility_score
        text = (
            f"{scenario.name} has a feasibility score of {score}/100 "
            f"with {feasibility.feasibility_risk_band.value} risk. "
        )

        impact = effects.monthly_impact
        if impact > 0:
            text += f"This scenario would increase your monthly cash flow by ${impact:.2f}."
        else:
            text += f"This scenario would require a monthly commitment of ${abs(impact):.2f}."

        if score >= 80:
            text += " The scenario appears highly feasible and well-planned."
        elif score >= 60:
            text += " The scenario is moderately feasible but may benefit from adjustments."
        else:
            text += " The scenario faces significant feasibility challenges."
        return text

    def next_steps(
        self,
        feasibility: FeasibilityAssessment,
        conflicts: Optional[ConflictAnalysis] = None,
    ) -> list[str]:
        score = feasibility.feasibility_score
        if score >= 80:
            steps = ["Consider activating this scenario", "Monitor financial impact regularly"]
        elif score >= 60:
            steps = ["Review and adjust scenario parameters", "Consider implementation timeline"]
        else:
            steps = ["Improve financial capacity before proceeding", "Consider alternative approaches"]

        if conflicts is not None and conflicts.conflicts:
            steps.append("Resolve conflicts with existing scenarios")
        return steps

    async def analysis_report(
        self,
        scenario: Scenario,
        context: FinancialContext,
        effects: FinancialEffects,
        feasibility: FeasibilityAssessment,
        conflicts: Optional[ConflictAnalysis] = None,
    ) -> AnalysisReport:
        insights, _ = await self.request_insights(scenario, [], context)
        return AnalysisReport(
            summary=self.summary(scenario, effects, feasibility),
            recommendations=self.feasibility_recommendations(feasibility),
            optimizations=self.optimizations(scenario, effects, context),
            alternatives=self.alternatives(scenario, feasibility),
            risk_assessment=self.risk_assessment(effects, feasibility),
            next_steps=self.next_steps(feasibility, conflicts),
            insights=insights,
        )

    # =========================================================================
    # SMART SCENARIOS
    # =========================================================================

    def performance_gains(self, ranked: list[RankedOption]) -> Optional[PerformanceGains]:
        """Top option against the unmodified base scenario."""
        base = next((r for r in ranked if r.outcome.is_base), None)
        if not ranked or base is None:
            return None
        top = ranked[0]

        improvement = None
        if base.final_score != 0:
            improvement = (top.final_score - base.final_score) / base.final_score * 100

        return PerformanceGains(
            monthly_gain=top.outcome.monthly_impact - base.outcome.monthly_impact,
            balance_gain=top.outcome.final_balance - base.outcome.final_balance,
            risk_reduction=base.outcome.risk_level - top.outcome.risk_level,
            improvement_percentage=improvement,
        )

    def risk_profile(self, ranked: list[RankedOption]) -> Optional[RiskProfile]:
        if not ranked:
            return None
        risks = [r.outcome.risk_level for r in ranked]
        return RiskProfile(
            average_risk=sum(risks) / len(risks),
            lowest_risk=min(risks),
            highest_risk=max(risks),
            risk_spread=max(risks) - min(risks),
        )

    def opportunities(self, top: list[RankedOption]) -> list[Opportunity]:
        found = []
        for r in top:
            if r.outcome.monthly_impact > 0:
                found.append(Opportunity(
                    type="income_optimization",
                    description=(
                        f"{r.scenario.name} increases monthly cash flow by "
                        f"{_money(r.outcome.monthly_impact)}"
                    ),
                    impact=r.outcome.monthly_impact,
                    priority="high",
                ))
            if r.outcome.risk_level < 30:
                found.append(Opportunity(
                    type="risk_optimization",
                    description=f"{r.scenario.name} offers a low-risk path",
                    impact=r.final_score,
                    priority="medium",
                ))
        return found

    def strategic_recommendations(self, top: list[RankedOption]) -> list[StrategicRecommendation]:
        priorities = ("high", "medium")
        return [
            StrategicRecommendation(
                rank=i + 1,
                scenario_name=r.scenario.name,
                recommendation=(
                    f"Consider {r.scenario.name} for "
                    + ("income growth" if r.outcome.monthly_impact > 0 else "financial optimization")
                ),
                rationale=f"Scores {r.final_score:.2f} with {r.outcome.risk_level:g}% risk level",
                priority=priorities[i] if i < len(priorities) else "low",
            )
            for i, r in enumerate(top)
        ]

    def action_items(self, top: list[RankedOption]) -> list[ActionItem]:
        return [
            ActionItem(
                id=i + 1,
                action=f"Implement {r.scenario.name}",
                timeline=r.timeline,
                priority="high" if i == 0 else "medium",
                requirements=[f"Monthly commitment: {_money(abs(r.outcome.monthly_impact))}"],
                expected_outcome=f"Final balance: {_money(r.outcome.final_balance)}",
            )
            for i, r in enumerate(top)
        ]

    def creative_solutions(self, top: list[RankedOption]) -> list[CreativeSolution]:
        solutions = []
        if len(top) >= 2:
            first, second = top[0], top[1]
            solutions.append(CreativeSolution(
                id="hybrid_approach",
                name="Hybrid Strategy",
                description=f"Combine elements of {first.scenario.name} and {second.scenario.name}",
                benefits=["Diversified risk", "Multiple income streams", "Flexible implementation"],
                estimated_impact=(first.outcome.monthly_impact + second.outcome.monthly_impact) * 0.8,
            ))
        if top:
            first = top[0]
            solutions.append(CreativeSolution(
                id="phased_implementation",
                name="Phased Implementation",
                description=f"Gradually implement {first.scenario.name} to reduce risk",
                benefits=["Lower initial risk", "Gradual scaling", "Learning opportunity"],
                estimated_impact=first.outcome.monthly_impact * 1.1,
            ))
        return solutions

    def final_recommendations(
        self,
        top: list[RankedOption],
        creative: list[CreativeSolution],
    ) -> list[Recommendation]:
        records = []
        if top:
            primary = top[0]
            records.append(Recommendation(
                id="primary",
                type="primary",
                title=f"Implement {primary.scenario.name}",
                description=f"Highest-ranked option with a score of {primary.final_score:.2f}",
                scenario=primary.scenario,
                expected_impact=primary.outcome.monthly_impact,
                confidence="high",
                timeline=primary.timeline,
            ))
        if len(top) > 1:
            secondary = top[1]
            records.append(Recommendation(
                id="secondary",
                type="secondary",
                title=f"Consider {secondary.scenario.name} as Alternative",
                description=f"Runner-up option with a score of {secondary.final_score:.2f}",
                scenario=secondary.scenario,
                expected_impact=secondary.outcome.monthly_impact,
                confidence="medium",
                timeline=secondary.timeline,
            ))
        if creative:
            idea = creative[0]
            records.append(Recommendation(
                id=idea.id,
                type="creative",
                title=idea.name,
                description=idea.description,
                expected_impact=idea.estimated_impact,
                confidence="medium",
                timeline=CREATIVE_TIMELINE_MONTHS,
            ))
        return records

    async def optimization_insights(
        self,
        scenario: Scenario,
        ranked: list[RankedOption],
        context: FinancialContext,
    ) -> OptimizationInsights:
        top = ranked[:TOP_N]
        insights, used_llm = await self.request_insights(scenario, top, context)
        return OptimizationInsights(
            performance_gains=self.performance_gains(ranked),
            risk_profile=self.risk_profile(ranked),
            opportunities=self.opportunities(top),
            strategic_recommendations=self.strategic_recommendations(top),
            ai_insights=insights,
            action_items=self.action_items(top),
            used_llm=used_llm,
        )

    # =========================================================================
    # ADVANCED MODELING
    # =========================================================================

    def advanced_insights(
        self,
        context: FinancialContext,
        monte_carlo: Optional[MonteCarloResult] = None,
        conflicts: Optional[ConflictAnalysis] = None,
    ) -> AdvancedInsights:
        balance = context.current_balance
        pathways = []
        mitigation = []
        opportunities = []

        if monte_carlo is not None:
            stats = monte_carlo.statistics
            if stats.mean > balance:
                pathways.append(OptimalPathway(
                    id="compound_scenarios",
                    name="Execute All Scenarios",
                    description=(
                        "Combined scenarios show positive expected outcome of "
                        f"${round(stats.mean):,}"
                    ),
                    probability=0.8,
                    expected_value=stats.mean,
                ))
            if stats.min < balance * 0.8:
                mitigation.append(AdvisoryItem(
                    type="downside_protection",
                    priority="medium",
                    description="Maintain emergency fund to protect against worst-case outcomes",
                ))

        if conflicts is not None:
            if conflicts.conflicts:
                mitigation.insert(0, AdvisoryItem(
                    type="conflict_resolution",
                    priority="high",
                    description="Consider staggering conflicting scenarios to reduce resource competition",
                ))
            if conflicts.synergies:
                opportunities.append(AdvisoryItem(
                    type="synergy_optimization",
                    priority="high",
                    description=(
                        f"{len(conflicts.synergies)} scenario synergies identified "
                        "for enhanced returns"
                    ),
                ))

        return AdvancedInsights(
            optimal_pathways=pathways,
            risk_mitigation_strategies=mitigation,
            opportunities=opportunities,
            timeline_recommendations=[
                TimelineRecommendation(
                    phase="immediate",
                    recommendation="Begin implementation of highest-impact scenarios",
                    timeframe="0-3 months",
                ),
                TimelineRecommendation(
                    phase="near_term",
                    recommendation="Monitor compound effects and adjust as needed",
                    timeframe="3-6 months",
                ),
            ],
        )
