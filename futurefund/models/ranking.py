"""
Ranking Models

Shapes used by the variation generator and the multi-criteria ranker:
one SimulationOutcome per variant, scored into an OutcomeScore, then
reweighted by user preferences into a RankedOption.
"""

from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from futurefund.models.scenario import BalancePoint, Percentiles, Scenario


class Tier(str, Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class SimulationOutcome(BaseModel):
    """Result of walking one variant (or the base scenario) forward."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Variant id, or 'base' for the original scenario")
    scenario: Scenario
    is_base: bool = False
    monthly_impact: float
    final_balance: float
    risk_level: float = Field(ge=0, le=100)
    sustainability: float = Field(ge=0, le=100)
    timeline: float = Field(gt=0, description="Months walked")
    balance_projection: list[BalancePoint] = Field(default_factory=list)
    outcome_band: Optional[Percentiles] = Field(
        default=None,
        description="Monte Carlo band of final balances for this variant"
    )


class ComparisonEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly_impact: float
    final_balance: float
    risk_level: float
    sustainability: float
    timeline: float


class OutcomeScore(BaseModel):
    """Multi-dimensional score of one outcome before preference weighting."""

    model_config = ConfigDict(frozen=True)

    id: str
    scenario: Scenario
    is_base: bool = False
    monthly_impact: float
    final_balance: float
    risk_level: float
    return_on_investment: float
    liquidity_score: float
    sustainability_score: float
    composite_score: float


class OutcomeAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcomes: list[OutcomeScore] = Field(default_factory=list)
    best_outcome: Optional[OutcomeScore] = None
    average_score: float = 0.0


_FLAG_ALIASES = {
    "prioritize_returns": "prioritize_returns",
    "returns": "prioritize_returns",
    "risk_averse": "risk_averse",
    "needs_liquidity": "needs_liquidity",
    "need_liquidity": "needs_liquidity",
    "liquidity": "needs_liquidity",
    "long_term": "long_term",
}


class RankingConstraints(BaseModel):
    """User constraint flags that shift the ranking weights."""

    model_config = ConfigDict(frozen=True)

    prioritize_returns: bool = False
    risk_averse: bool = False
    needs_liquidity: bool = False
    long_term: bool = False

    @classmethod
    def from_flags(cls, flags: Iterable[str]) -> "RankingConstraints":
        """
        Build constraints from free-form flags.

        Accepts spellings like "risk-averse", "Needs Liquidity" or
        "long_term". Unknown flags are ignored.
        """
        values = {}
        for flag in flags:
            key = flag.strip().lower().replace("-", "_").replace(" ", "_")
            if key in _FLAG_ALIASES:
                values[_FLAG_ALIASES[key]] = True
        return cls(**values)


class UserPreferences(BaseModel):
    """Weights applied in the second ranking pass."""

    model_config = ConfigDict(frozen=True)

    financial_weight: float
    risk_weight: float
    liquidity_weight: float
    sustainability_weight: float


class RankedOption(BaseModel):
    """An outcome with its preference-weighted score and position."""

    model_config = ConfigDict(frozen=True)

    outcome: OutcomeScore
    financial_score: float
    risk_score: float
    liquidity_score: float
    sustainability_score: float
    final_score: float
    rank: int = Field(ge=1)
    tier: Tier

    @property
    def scenario(self) -> Scenario:
        return self.outcome.scenario

    @property
    def composite_score(self) -> float:
        return self.outcome.composite_score

    @property
    def timeline(self) -> float:
        return self.outcome.scenario.amount("timeline", 12) or 12
