"""Scenario analysis components."""

from futurefund.analysis.conflicts import ConflictSynergyAnalyzer, compatibility_score, types_conflict
from futurefund.analysis.effects import FinancialEffectCalculator, project_balance
from futurefund.analysis.feasibility import FeasibilityScorer, round_half_up
from futurefund.analysis.monte_carlo import MonteCarloSimulator, floor_percentiles
from futurefund.analysis.ranking import MultiCriteriaRanker
from futurefund.analysis.recommendations import RecommendationSynthesizer
from futurefund.analysis.variations import VariationGenerator

__all__ = [
    "ConflictSynergyAnalyzer",
    "FeasibilityScorer",
    "FinancialEffectCalculator",
    "MonteCarloSimulator",
    "MultiCriteriaRanker",
    "RecommendationSynthesizer",
    "VariationGenerator",
    "compatibility_score",
    "floor_percentiles",
    "project_balance",
    "round_half_up",
    "types_conflict",
]
