"""
Multi-Criteria Ranker

Two passes over the simulated outcomes:

1. Base composite per outcome:
       ROI * 0.3 + (100 - risk) * 0.25 + liquidity * 0.25 + sustainability * 0.2
2. Preference reweighting from the user's constraint flags, averaged
   over the four weighted terms, then a stable descending sort.

Ties keep their input order. Ranks are 1-based; the first three options
are the top tier, the next three the middle tier, the rest the bottom.
"""

from typing import Optional

from futurefund.models.ranking import (
    ComparisonEntry,
    OutcomeAnalysis,
    OutcomeScore,
    RankedOption,
    RankingConstraints,
    SimulationOutcome,
    Tier,
    UserPreferences,
)
from futurefund.models.scenario import FinancialContext


COMPOSITE_WEIGHTS = {
    "financial": 0.3,
    "risk": 0.25,
    "liquidity": 0.25,
    "sustainability": 0.2,
}

TOP_N = 3


def return_on_investment(outcome: SimulationOutcome, context: FinancialContext) -> float:
    """Gain over the walk relative to the total amount committed, in percent."""
    invested = abs(outcome.monthly_impact) * outcome.timeline
    if invested == 0:
        return 0.0
    return (outcome.final_balance - context.current_balance) / invested * 100


def liquidity_score(final_balance: float) -> float:
    if final_balance > 50_000:
        return 100.0
    if final_balance > 20_000:
        return 80.0
    if final_balance > 10_000:
        return 60.0
    if final_balance > 5_000:
        return 40.0
    return 20.0


def composite_score(roi: float, risk_level: float, liquidity: float, sustainability: float) -> float:
    return (
        roi * COMPOSITE_WEIGHTS["financial"]
        + (100 - risk_level) * COMPOSITE_WEIGHTS["risk"]
        + liquidity * COMPOSITE_WEIGHTS["liquidity"]
        + sustainability * COMPOSITE_WEIGHTS["sustainability"]
    )


def user_preferences(constraints: RankingConstraints) -> UserPreferences:
    return UserPreferences(
        financial_weight=0.4 if constraints.prioritize_returns else 0.3,
        risk_weight=0.4 if constraints.risk_averse else 0.25,
        liquidity_weight=0.3 if constraints.needs_liquidity else 0.25,
        sustainability_weight=0.3 if constraints.long_term else 0.2,
    )


def _tier(index: int) -> Tier:
    if index < 3:
        return Tier.TOP
    if index < 6:
        return Tier.MIDDLE
    return Tier.BOTTOM


class MultiCriteriaRanker:
    """Scores and ranks simulated outcomes."""

    def comparison_matrix(self, outcomes: list[SimulationOutcome]) -> dict[str, ComparisonEntry]:
        return {
            o.id: ComparisonEntry(
                monthly_impact=o.monthly_impact,
                final_balance=o.final_balance,
                risk_level=o.risk_level,
                sustainability=o.sustainability,
                timeline=o.timeline,
            )
            for o in outcomes
        }

    def score(self, outcomes: list[SimulationOutcome], context: FinancialContext) -> OutcomeAnalysis:
        """First pass: base composite score per outcome."""
        if not outcomes:
            raise ValueError("No simulation results available for comparison")

        scored = []
        for o in outcomes:
            roi = return_on_investment(o, context)
            liquidity = liquidity_score(o.final_balance)
            scored.append(OutcomeScore(
                id=o.id,
                scenario=o.scenario,
                is_base=o.is_base,
                monthly_impact=o.monthly_impact,
                final_balance=o.final_balance,
                risk_level=o.risk_level,
                return_on_investment=roi,
                liquidity_score=liquidity,
                sustainability_score=o.sustainability,
                composite_score=composite_score(roi, o.risk_level, liquidity, o.sustainability),
            ))

        # max() keeps the first of equal scores
        best = max(scored, key=lambda s: s.composite_score)
        average = sum(s.composite_score for s in scored) / len(scored)
        return OutcomeAnalysis(outcomes=scored, best_outcome=best, average_score=average)

    def rank(
        self,
        analysis: OutcomeAnalysis,
        constraints: Optional[RankingConstraints] = None,
    ) -> list[RankedOption]:
        """Second pass: preference weighting, stable sort, rank and tier."""
        if not analysis.outcomes:
            raise ValueError("No outcome analysis available for ranking")

        prefs = user_preferences(constraints or RankingConstraints())
        weighted = []
        for o in analysis.outcomes:
            financial = o.composite_score * prefs.financial_weight
            risk = (100 - o.risk_level) * prefs.risk_weight
            liquidity = o.liquidity_score * prefs.liquidity_weight
            sustainability = o.sustainability_score * prefs.sustainability_weight
            final = (financial + risk + liquidity + sustainability) / 4
            weighted.append((o, financial, risk, liquidity, sustainability, final))

        # sorted() is stable: equal final scores keep input order
        ordered = sorted(weighted, key=lambda row: row[5], reverse=True)

        return [
            RankedOption(
                outcome=o,
                financial_score=financial,
                risk_score=risk,
                liquidity_score=liquidity,
                sustainability_score=sustainability,
                final_score=final,
                rank=index + 1,
                tier=_tier(index),
            )
            for index, (o, financial, risk, liquidity, sustainability, final) in enumerate(ordered)
        ]

    @staticmethod
    def top(ranked: list[RankedOption], n: int = TOP_N) -> list[RankedOption]:
        return ranked[:n]
