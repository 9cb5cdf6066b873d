"""
Variation Generator

Sweeps a base scenario into 2-3 parameterized variants through a
type-keyed generator table, then walks each variant (and the base)
forward to a SimulationOutcome.

The variant walk adds only the scenario's own monthly impact to the
starting balance over the variant's timeline (default 12 months). It
measures what the change itself does; the single-scenario projection in
effects.py also adds the user's regular net cash flow.
"""

import math
from typing import Callable, Optional

from futurefund.analysis.effects import FinancialEffectCalculator, project_balance
from futurefund.analysis.monte_carlo import MonteCarloSimulator
from futurefund.models.ranking import SimulationOutcome
from futurefund.models.scenario import (
    FinancialContext,
    Scenario,
    ScenarioType,
    check_exhaustive,
)


DEFAULT_TIMELINE = 12
DEFAULT_JOB_TIMELINE = 3
DEFAULT_EXPECTED_RETURN = 0.07


def _variant(base: Scenario, suffix: str, label: str, strategy: str, **params) -> Scenario:
    return Scenario(
        id=f"{base.id}_{suffix}",
        name=f"{base.name} ({label})",
        description=base.description,
        type=base.type,
        parameters={**base.parameters, **params},
        strategy=strategy,
    )


# =============================================================================
# GENERATORS
# =============================================================================

def _job_change_variations(base: Scenario, ctx: FinancialContext) -> list[Scenario]:
    current = base.amount("current_salary") if base.has("current_salary") else ctx.monthly_income
    timeline = base.amount("timeline") or DEFAULT_JOB_TIMELINE
    return [
        _variant(base, "conservative", "Conservative", "conservative",
                 current_salary=current, new_salary=current * 1.10, timeline=timeline + 2),
        _variant(base, "moderate", "Moderate Growth", "moderate",
                 current_salary=current, new_salary=current * 1.25, timeline=timeline),
        _variant(base, "aggressive", "Aggressive", "aggressive",
                 current_salary=current, new_salary=current * 1.40, timeline=max(1, timeline - 1)),
    ]


def _investment_variations(base: Scenario, ctx: FinancialContext) -> list[Scenario]:
    expected = base.amount("expected_return") or DEFAULT_EXPECTED_RETURN

    def scaled(factor: float, return_factor: float, risk: str) -> dict:
        params = {
            "investment_amount": base.amount("investment_amount") * factor,
            "expected_return": expected * return_factor,
            "risk_level": risk,
        }
        if base.has("monthly_contribution"):
            params["monthly_contribution"] = base.amount("monthly_contribution") * factor
        return params

    return [
        _variant(base, "conservative", "Conservative", "conservative", **scaled(0.7, 0.8, "low")),
        _variant(base, "aggressive", "Aggressive", "aggressive", **scaled(1.3, 1.4, "high")),
    ]


def _debt_payoff_variations(base: Scenario, ctx: FinancialContext) -> list[Scenario]:
    payment = base.amount("monthly_payment")
    return [
        _variant(base, "minimum", "Minimum Payment", "minimum", monthly_payment=payment * 0.6),
        _variant(base, "aggressive", "Aggressive Payoff", "aggressive", monthly_payment=payment * 1.5),
    ]


def _emergency_fund_variations(base: Scenario, ctx: FinancialContext) -> list[Scenario]:
    contribution = base.amount("monthly_contribution")
    return [
        _variant(base, "conservative", "Conservative", "conservative",
                 monthly_contribution=contribution * 0.75),
        _variant(base, "aggressive", "Aggressive", "aggressive",
                 monthly_contribution=contribution * 1.5),
    ]


def _timeline_variations(base: Scenario, ctx: FinancialContext) -> list[Scenario]:
    timeline = base.amount("timeline") or DEFAULT_TIMELINE
    return [
        _variant(base, "extended", "Extended Timeline", "extended", timeline=timeline * 1.5),
        _variant(base, "accelerated", "Accelerated", "accelerated", timeline=max(1, timeline * 0.75)),
    ]


GeneratorFn = Callable[[Scenario, FinancialContext], list[Scenario]]

_GENERATORS: dict[ScenarioType, GeneratorFn] = check_exhaustive({
    ScenarioType.JOB_CHANGE: _job_change_variations,
    ScenarioType.INVESTMENT: _investment_variations,
    ScenarioType.DEBT_PAYOFF: _debt_payoff_variations,
    ScenarioType.EMERGENCY_FUND: _emergency_fund_variations,
    ScenarioType.CAREER_BREAK: _timeline_variations,
    ScenarioType.HOME_PURCHASE: _timeline_variations,
    ScenarioType.MAJOR_EXPENSE: _timeline_variations,
    ScenarioType.LARGE_PURCHASE: _timeline_variations,
    ScenarioType.CASH_HOARDING: _timeline_variations,
    ScenarioType.EXPENSE_CHANGE: _timeline_variations,
    ScenarioType.CUSTOM: _timeline_variations,
}, "variation generators")


class VariationGenerator:
    """Generates and simulates scenario variants."""

    def __init__(
        self,
        calculator: Optional[FinancialEffectCalculator] = None,
        simulator: Optional[MonteCarloSimulator] = None,
    ):
        self._calculator = calculator or FinancialEffectCalculator()
        self._simulator = simulator or MonteCarloSimulator()

    def generate(self, base: Scenario, context: FinancialContext) -> list[Scenario]:
        """Variants of a typed base scenario. Raises ValueError without a type."""
        if base.type is None:
            raise ValueError("Base scenario type is required for variation generation")
        return _GENERATORS[base.type](base, context)

    def _risk_level(self, scenario: Scenario, impact: float, context: FinancialContext, timeline: float) -> float:
        risk = 0.0
        if scenario.type == ScenarioType.JOB_CHANGE and impact < 0:
            risk += 30
        if context.available_income + impact < 0:
            risk += 40
        if timeline < 6:
            risk += 20
        return min(100.0, risk)

    @staticmethod
    def _sustainability(net_cash_flow: float) -> float:
        if net_cash_flow > 0:
            return 100.0
        if net_cash_flow > -500:
            return 70.0
        if net_cash_flow > -1000:
            return 40.0
        return 20.0

    def simulate(
        self,
        scenario: Scenario,
        context: FinancialContext,
        outcome_id: Optional[str] = None,
        is_base: bool = False,
        seed: Optional[int] = None,
    ) -> SimulationOutcome:
        impact = self._calculator.monthly_impact(scenario, context)
        timeline = scenario.amount("timeline") or DEFAULT_TIMELINE
        months = int(math.floor(timeline))

        band = self._simulator.simulate(impact, context.current_balance, seed=seed).percentiles

        return SimulationOutcome(
            id=outcome_id or scenario.id,
            scenario=scenario,
            is_base=is_base,
            monthly_impact=impact,
            final_balance=context.current_balance + impact * months,
            risk_level=self._risk_level(scenario, impact, context, timeline),
            sustainability=self._sustainability(context.available_income + impact),
            timeline=timeline,
            balance_projection=project_balance(context.current_balance, impact, months),
            outcome_band=band,
        )

    def simulate_all(
        self,
        base: Scenario,
        variants: list[Scenario],
        context: FinancialContext,
        seed: Optional[int] = None,
    ) -> list[SimulationOutcome]:
        """Simulate every variant, with the base scenario first under id 'base'."""
        outcomes = [self.simulate(base, context, outcome_id="base", is_base=True, seed=seed)]
        outcomes.extend(self.simulate(v, context, seed=seed) for v in variants)
        return outcomes
