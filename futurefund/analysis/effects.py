"""
Financial Effect Calculator

Deterministic monthly/yearly impact and balance projection math.

The monthly impact of a scenario is signed from the user's point of view:
positive means more money each month, negative means a new commitment.
Each scenario type has exactly one impact formula in _IMPACT_FORMULAS.
"""

from typing import Callable, Iterable, Optional

from futurefund.config import get_settings
from futurefund.models.scenario import (
    BalancePoint,
    CashFlowChanges,
    CombinedEffects,
    FinancialContext,
    FinancialEffects,
    Scenario,
    ScenarioImpact,
    ScenarioType,
    check_exhaustive,
)


# =============================================================================
# IMPACT FORMULAS
# =============================================================================

def _job_change(s: Scenario, ctx: FinancialContext) -> float:
    current = s.amount("current_salary") if s.has("current_salary") else ctx.monthly_income
    return s.amount("new_salary") - current


def _career_break(s: Scenario, ctx: FinancialContext) -> float:
    lost = s.amount("lost_income") if s.has("lost_income") else ctx.monthly_income
    return -abs(lost)


def _home_purchase(s: Scenario, ctx: FinancialContext) -> float:
    return -(s.amount("monthly_payment") - s.amount("current_rent"))


def _purchase(s: Scenario, ctx: FinancialContext) -> float:
    if s.has("monthly_payment"):
        return -abs(s.amount("monthly_payment"))
    return -abs(s.amount("amount")) / 12


def _debt_payoff(s: Scenario, ctx: FinancialContext) -> float:
    return -abs(s.amount("monthly_payment"))


def _investment(s: Scenario, ctx: FinancialContext) -> float:
    if s.has("monthly_contribution"):
        return -abs(s.amount("monthly_contribution"))
    return -abs(s.amount("investment_amount")) / 12


def _contribution(s: Scenario, ctx: FinancialContext) -> float:
    return -abs(s.amount("monthly_contribution"))


def _expense_change(s: Scenario, ctx: FinancialContext) -> float:
    return -s.amount("monthly_change")


def _custom(s: Scenario, ctx: FinancialContext) -> float:
    return s.amount("monthly_impact")


ImpactFn = Callable[[Scenario, FinancialContext], float]

_IMPACT_FORMULAS: dict[ScenarioType, ImpactFn] = check_exhaustive({
    ScenarioType.JOB_CHANGE: _job_change,
    ScenarioType.CAREER_BREAK: _career_break,
    ScenarioType.HOME_PURCHASE: _home_purchase,
    ScenarioType.MAJOR_EXPENSE: _purchase,
    ScenarioType.LARGE_PURCHASE: _purchase,
    ScenarioType.DEBT_PAYOFF: _debt_payoff,
    ScenarioType.INVESTMENT: _investment,
    ScenarioType.EMERGENCY_FUND: _contribution,
    ScenarioType.CASH_HOARDING: _contribution,
    ScenarioType.EXPENSE_CHANGE: _expense_change,
    ScenarioType.CUSTOM: _custom,
}, "impact formulas")

_AFFECTED_ACCOUNTS: dict[ScenarioType, tuple[str, ...]] = check_exhaustive({
    ScenarioType.JOB_CHANGE: ("checking",),
    ScenarioType.CAREER_BREAK: ("checking", "savings"),
    ScenarioType.HOME_PURCHASE: ("checking", "savings"),
    ScenarioType.MAJOR_EXPENSE: ("checking",),
    ScenarioType.LARGE_PURCHASE: ("checking",),
    ScenarioType.DEBT_PAYOFF: ("credit_card", "loan"),
    ScenarioType.INVESTMENT: ("investment",),
    ScenarioType.EMERGENCY_FUND: ("savings",),
    ScenarioType.CASH_HOARDING: ("savings",),
    ScenarioType.EXPENSE_CHANGE: ("checking",),
    ScenarioType.CUSTOM: (),
}, "affected accounts")

# Types whose impact is a change in income rather than in spending
_INCOME_TYPES = {ScenarioType.JOB_CHANGE, ScenarioType.CAREER_BREAK}


def project_balance(start: float, monthly_delta: float, months: int) -> list[BalancePoint]:
    """
    Walk a balance forward by repeated addition.

    The running balance is kept unrounded; each stored point is rounded
    to cents.
    """
    points = []
    balance = start
    for month in range(1, months + 1):
        balance += monthly_delta
        points.append(BalancePoint(month=month, balance=round(balance, 2)))
    return points


class FinancialEffectCalculator:
    """Computes FinancialEffects for one scenario or a scenario set."""

    def __init__(self, projection_months: Optional[int] = None):
        if projection_months is None:
            projection_months = get_settings().analysis.projection_months
        self.projection_months = projection_months

    def monthly_impact(self, scenario: Scenario, context: FinancialContext) -> float:
        """Signed monthly impact; 0 for a scenario without a type."""
        if scenario.type is None:
            return 0.0
        return _IMPACT_FORMULAS[scenario.type](scenario, context)

    def affected_accounts(self, scenario: Scenario) -> list[str]:
        if scenario.type is None:
            return []
        return list(_AFFECTED_ACCOUNTS[scenario.type])

    def cash_flow_changes(self, scenario: Scenario, impact: float) -> CashFlowChanges:
        """Split the impact into an income delta or an expense delta."""
        if scenario.type in _INCOME_TYPES:
            income, expenses = impact, 0.0
        else:
            income, expenses = 0.0, -impact
        return CashFlowChanges(income=income, expenses=expenses, net_change=income - expenses)

    def calculate(self, scenario: Scenario, context: FinancialContext) -> FinancialEffects:
        impact = self.monthly_impact(scenario, context)
        projection = project_balance(
            context.current_balance,
            context.available_income + impact,
            self.projection_months,
        )
        return FinancialEffects(
            monthly_impact=impact,
            yearly_impact=impact * 12,
            balance_projection=projection,
            affected_accounts=self.affected_accounts(scenario),
            cash_flow_changes=self.cash_flow_changes(scenario, impact),
        )

    def combine(self, scenarios: Iterable[Scenario], context: FinancialContext) -> CombinedEffects:
        """Additive combination of each scenario's impact."""
        individual = [
            ScenarioImpact(
                scenario_id=s.id,
                scenario_type=s.type,
                monthly_impact=self.monthly_impact(s, context),
            )
            for s in scenarios
        ]
        monthly = sum(i.monthly_impact for i in individual)
        return CombinedEffects(
            individual=individual,
            monthly_impact=monthly,
            yearly_impact=monthly * 12,
        )
