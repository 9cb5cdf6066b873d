"""
Scenario Models for FutureFund

A scenario is a proposed financial change (a new job, a home purchase,
paying off a debt) described by typed parameters. Everything the engine
derives from a scenario is modeled here as an immutable pydantic model.

DESIGN DECISION: All models are frozen.
Each pipeline run builds fresh results; nothing downstream may edit what
an upstream node produced. Scenario parameter keys are snake_case
(new_salary, down_payment, monthly_payment ...).
"""

from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ScenarioType(str, Enum):
    """Closed set of scenario types the engine knows how to analyze."""
    JOB_CHANGE = "job_change"
    CAREER_BREAK = "career_break"
    HOME_PURCHASE = "home_purchase"
    MAJOR_EXPENSE = "major_expense"
    LARGE_PURCHASE = "large_purchase"
    DEBT_PAYOFF = "debt_payoff"
    INVESTMENT = "investment"
    EMERGENCY_FUND = "emergency_fund"
    CASH_HOARDING = "cash_hoarding"
    EXPENSE_CHANGE = "expense_change"
    CUSTOM = "custom"


def check_exhaustive(table: dict, table_name: str) -> dict:
    """Fail at import time if a type-keyed table misses a ScenarioType."""
    missing = set(ScenarioType) - set(table)
    if missing:
        raise RuntimeError(
            f"{table_name} has no entry for: {sorted(t.value for t in missing)}"
        )
    return table


class Severity(str, Enum):
    """Severity of a conflict or risk record."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskBand(str, Enum):
    """Bucket of the composite feasibility score."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class RiskTolerance(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


# =============================================================================
# INPUT MODELS
# =============================================================================

class Scenario(BaseModel):
    """
    A proposed financial change.

    `type` is optional on the model so that the validator can report a
    missing type as a validation issue instead of rejecting the input.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=lambda: uuid4().hex[:12],
        description="Scenario identifier"
    )
    name: str = Field(
        default="",
        description="Human-readable scenario name"
    )
    description: str = Field(default="")
    type: Optional[ScenarioType] = Field(
        default=None,
        description="Scenario type, drives every type-keyed table"
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific parameters (snake_case keys)"
    )
    existing_scenarios: list["Scenario"] = Field(
        default_factory=list,
        description="Sibling scenarios already active for this user"
    )
    strategy: Optional[str] = Field(
        default=None,
        description="Strategy label on generated variants (conservative, aggressive ...)"
    )

    def has(self, key: str) -> bool:
        """True when the parameter is present and not None."""
        return self.parameters.get(key) is not None

    def amount(self, key: str, default: float = 0.0) -> float:
        """Numeric parameter value, or `default` when missing or not a number."""
        value = self.parameters.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def with_parameters(self, **updates: Any) -> "Scenario":
        """Copy of this scenario with some parameters replaced."""
        return self.model_copy(update={"parameters": {**self.parameters, **updates}})


class Account(BaseModel):
    """A user account as seen by the engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    account_type: str = Field(
        default="checking",
        description="checking, savings, investment, credit_card, loan ..."
    )
    balance: float = 0.0


class FinancialContext(BaseModel):
    """The user's current financial position. Read-only input."""

    model_config = ConfigDict(frozen=True)

    current_balance: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    accounts: list[Account] = Field(default_factory=list)
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    time_horizon: int = Field(
        default=120,
        ge=1,
        description="Planning horizon in months"
    )

    @property
    def available_income(self) -> float:
        """Monthly income left after expenses."""
        return self.monthly_income - self.monthly_expenses


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Outcome of the two-stage scenario validation."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    validation_score: int = Field(ge=0, le=100)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_count(self) -> int:
        return len(self.errors)


# =============================================================================
# FINANCIAL EFFECTS
# =============================================================================

class BalancePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: int = Field(ge=1)
    balance: float


class CashFlowChanges(BaseModel):
    """Split of the monthly impact into income and expense deltas."""

    model_config = ConfigDict(frozen=True)

    income: float = 0.0
    expenses: float = 0.0
    net_change: float = 0.0


class FinancialEffects(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly_impact: float
    yearly_impact: float
    balance_projection: list[BalancePoint] = Field(default_factory=list)
    affected_accounts: list[str] = Field(default_factory=list)
    cash_flow_changes: CashFlowChanges = Field(default_factory=CashFlowChanges)

    @property
    def final_balance(self) -> Optional[float]:
        if not self.balance_projection:
            return None
        return self.balance_projection[-1].balance


class ScenarioImpact(BaseModel):
    """Monthly impact of one scenario inside a compound set."""

    model_config = ConfigDict(frozen=True)

    scenario_id: str
    scenario_type: Optional[ScenarioType] = None
    monthly_impact: float


class CombinedEffects(BaseModel):
    """Summed effects of a scenario set."""

    model_config = ConfigDict(frozen=True)

    individual: list[ScenarioImpact] = Field(default_factory=list)
    monthly_impact: float = 0.0
    yearly_impact: float = 0.0


# =============================================================================
# CONFLICTS AND SYNERGIES
# =============================================================================

class Conflict(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = Field(
        ...,
        description="scenario_conflict, resource_conflict or timing_conflict"
    )
    severity: Severity
    description: str
    scenario_ids: list[str] = Field(default_factory=list)


class Synergy(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    impact: str = "positive"
    scenario_types: list[ScenarioType] = Field(default_factory=list)


class AdvisoryItem(BaseModel):
    """A typed, prioritized piece of advice."""

    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    priority: str = Field(default="medium", pattern="^(low|medium|high)$")


class ConflictAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    conflicts: list[Conflict] = Field(default_factory=list)
    synergies: list[Synergy] = Field(default_factory=list)
    compatibility_score: int = Field(default=100, ge=0, le=100)
    recommendations: list[AdvisoryItem] = Field(default_factory=list)

    def count(self, severity: Severity) -> int:
        return sum(1 for c in self.conflicts if c.severity == severity)


# =============================================================================
# MONTE CARLO
# =============================================================================

class MonteCarloTrial(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly_impact: float
    final_balance: float
    variation: float = 0.0


class MonteCarloStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: float
    min: float
    max: float
    count: int = Field(ge=0)


class Percentiles(BaseModel):
    """Percentile band of trial outcomes."""

    model_config = ConfigDict(frozen=True)

    p05: float
    p25: float
    p50: float
    p75: float
    p95: float

    @model_validator(mode="after")
    def check_ordering(self) -> "Percentiles":
        """Bands must be non-decreasing."""
        bands = [self.p05, self.p25, self.p50, self.p75, self.p95]
        if any(lo > hi for lo, hi in zip(bands, bands[1:])):
            raise ValueError("Percentiles must satisfy p05 <= p25 <= p50 <= p75 <= p95")
        return self


class MonteCarloResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    trials: list[MonteCarloTrial] = Field(default_factory=list)
    statistics: MonteCarloStatistics
    percentiles: Percentiles
    simulation_count: int = Field(ge=0)
    seed: Optional[int] = None


# =============================================================================
# FEASIBILITY
# =============================================================================

class ViabilityFactors(BaseModel):
    """Sub-scores feeding the feasibility composite, each 0-100."""

    model_config = ConfigDict(frozen=True)

    financial_capacity: float = Field(ge=0, le=100)
    resource_availability: float = Field(ge=0, le=100)
    timeline_realism: float = Field(ge=0, le=100)
    risk_factor_score: float = Field(
        ge=0,
        le=100,
        description="Higher means the monthly impact is less risky"
    )
    conflict_impact: float = Field(ge=0, le=100)


class FeasibilityAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    feasibility_score: int = Field(ge=0, le=100)
    feasibility_risk_band: RiskBand
    sustainability_rating: int = Field(ge=0, le=100)
    viability_factors: ViabilityFactors


Scenario.model_rebuild()
