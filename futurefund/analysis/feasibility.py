"""
Feasibility Scorer

Weighted composite of five viability factors, each normalized to 0-100:

    financial_capacity     0.30
    resource_availability  0.25
    timeline_realism       0.15
    risk_factor_score      0.15
    conflict_impact        0.15

The composite is rounded half-up and bucketed into a feasibility risk
band (low >= 80, medium >= 60, high >= 40, very_high below). The band
describes the whole score; risk_factor_score is only the sub-factor
derived from the size of the monthly impact. The two are kept apart.
"""

import math
from typing import Optional

from futurefund.models.scenario import (
    ConflictAnalysis,
    FeasibilityAssessment,
    FinancialContext,
    FinancialEffects,
    RiskBand,
    Scenario,
    ScenarioType,
    ViabilityFactors,
)


WEIGHTS = {
    "financial_capacity": 0.30,
    "resource_availability": 0.25,
    "timeline_realism": 0.15,
    "risk_factor_score": 0.15,
    "conflict_impact": 0.15,
}

DEFAULT_RESOURCE_AVAILABILITY = 80.0
DEFAULT_TIMELINE_REALISM = 80.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def _coverage(have: float, need: float) -> float:
    if need <= 0 or have >= need:
        return 100.0
    return _clamp(have / need * 100)


class FeasibilityScorer:
    """Scores how realistic a scenario is for a given financial context."""

    def financial_capacity(self, context: FinancialContext, effects: FinancialEffects) -> float:
        available = context.available_income
        required = abs(effects.monthly_impact)
        if available <= 0:
            return 0.0
        if required == 0:
            return 100.0
        return _clamp(available / required * 100)

    def resource_availability(self, scenario: Scenario, context: FinancialContext) -> float:
        """Savings coverage of the upfront amount the scenario needs."""
        if scenario.type == ScenarioType.HOME_PURCHASE:
            return _coverage(context.current_balance, scenario.amount("down_payment"))
        if scenario.type == ScenarioType.INVESTMENT:
            return _coverage(context.current_balance, scenario.amount("investment_amount"))
        return DEFAULT_RESOURCE_AVAILABILITY

    def timeline_realism(self, scenario: Scenario) -> float:
        timeline = scenario.amount("timeline") if scenario.has("timeline") else None

        if scenario.type == ScenarioType.JOB_CHANGE:
            return 100.0 if timeline is not None and timeline <= 6 else 80.0
        if scenario.type == ScenarioType.HOME_PURCHASE:
            return 100.0 if timeline is not None and timeline >= 3 else 60.0
        if scenario.type == ScenarioType.DEBT_PAYOFF:
            payment = scenario.amount("monthly_payment")
            if payment <= 0:
                return 70.0
            return 100.0 if scenario.amount("debt_amount") / payment <= 60 else 70.0
        return DEFAULT_TIMELINE_REALISM

    def risk_factor_score(self, effects: FinancialEffects) -> float:
        """Higher is safer: large monthly swings score low."""
        impact = abs(effects.monthly_impact)
        if impact > 2000:
            return 30.0
        if impact > 1000:
            return 60.0
        return 90.0

    def conflict_impact(self, conflicts: Optional[ConflictAnalysis]) -> float:
        count = len(conflicts.conflicts) if conflicts else 0
        if count == 0:
            return 100.0
        if count <= 2:
            return 70.0
        return 40.0

    def composite(self, factors: ViabilityFactors) -> int:
        total = sum(getattr(factors, name) * weight for name, weight in WEIGHTS.items())
        return max(0, min(100, round_half_up(total)))

    @staticmethod
    def risk_band(score: float) -> RiskBand:
        if score >= 80:
            return RiskBand.LOW
        if score >= 60:
            return RiskBand.MEDIUM
        if score >= 40:
            return RiskBand.HIGH
        return RiskBand.VERY_HIGH

    def sustainability_rating(self, context: FinancialContext, effects: FinancialEffects) -> int:
        projection = effects.balance_projection
        if not projection:
            return 50
        if min(p.balance for p in projection) < 0:
            return 30
        if projection[-1].balance > context.current_balance:
            return 90
        return 70

    def assess(
        self,
        scenario: Scenario,
        context: FinancialContext,
        effects: FinancialEffects,
        conflicts: Optional[ConflictAnalysis] = None,
    ) -> FeasibilityAssessment:
        factors = ViabilityFactors(
            financial_capacity=self.financial_capacity(context, effects),
            resource_availability=self.resource_availability(scenario, context),
            timeline_realism=self.timeline_realism(scenario),
            risk_factor_score=self.risk_factor_score(effects),
            conflict_impact=self.conflict_impact(conflicts),
        )
        score = self.composite(factors)
        return FeasibilityAssessment(
            feasibility_score=score,
            feasibility_risk_band=self.risk_band(score),
            sustainability_rating=self.sustainability_rating(context, effects),
            viability_factors=factors,
        )
