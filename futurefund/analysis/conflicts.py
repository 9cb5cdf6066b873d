"""
Conflict and Synergy Analyzer

Detects how scenarios interact:

- scenario_conflict (high): the two types are adjacent in the conflict
  table, e.g. two job changes at once. analyze() reads only the
  candidate's row; analyze_set() checks both rows of each unordered pair.
- resource_conflict (high): total absolute monthly commitments exceed a
  share (default 80%) of monthly income minus expenses.
- timing_conflict (medium): a home purchase and a job change in the same
  set; a new job can complicate mortgage approval.

Complementary pairs (job change + investment, job change + debt payoff,
debt payoff + investment) produce synergy records.

compatibility_score = max(0, 100 - 30 * high - 15 * medium) over every
conflict record found.
"""

from itertools import combinations
from typing import Iterable, Optional

from futurefund.analysis.effects import FinancialEffectCalculator
from futurefund.config import get_settings
from futurefund.models.scenario import (
    AdvisoryItem,
    Conflict,
    ConflictAnalysis,
    FinancialContext,
    Scenario,
    ScenarioType,
    Severity,
    Synergy,
    check_exhaustive,
)


T = ScenarioType

_CONFLICTS_WITH: dict[ScenarioType, frozenset] = check_exhaustive({
    T.JOB_CHANGE: frozenset({T.JOB_CHANGE, T.CAREER_BREAK}),
    T.HOME_PURCHASE: frozenset({T.HOME_PURCHASE, T.MAJOR_EXPENSE}),
    T.DEBT_PAYOFF: frozenset({T.LARGE_PURCHASE, T.INVESTMENT}),
    T.INVESTMENT: frozenset({T.DEBT_PAYOFF, T.CASH_HOARDING}),
    T.CAREER_BREAK: frozenset(),
    T.MAJOR_EXPENSE: frozenset(),
    T.LARGE_PURCHASE: frozenset(),
    T.EMERGENCY_FUND: frozenset(),
    T.CASH_HOARDING: frozenset(),
    T.EXPENSE_CHANGE: frozenset(),
    T.CUSTOM: frozenset(),
}, "conflict table")

# (first type, second type, synergy type, description)
_SYNERGIES = (
    (T.JOB_CHANGE, T.INVESTMENT, "income_investment_synergy",
     "Higher income enables increased investment contributions"),
    (T.JOB_CHANGE, T.DEBT_PAYOFF, "income_debt_synergy",
     "Higher income accelerates debt payoff timeline"),
    (T.DEBT_PAYOFF, T.INVESTMENT, "debt_investment_sequence",
     "Debt payoff completion frees funds for investment"),
)

_SEVERITY_PENALTY = {
    Severity.HIGH: 30,
    Severity.MEDIUM: 15,
    Severity.LOW: 0,
}


def types_conflict(
    a: Optional[ScenarioType],
    b: Optional[ScenarioType],
    both_ways: bool = False,
) -> bool:
    """True when b is listed in a's row (or either row, for unordered pairs)."""
    if a is None or b is None:
        return False
    if b in _CONFLICTS_WITH[a]:
        return True
    return both_ways and a in _CONFLICTS_WITH[b]


def compatibility_score(conflicts: Iterable[Conflict]) -> int:
    score = 100 - sum(_SEVERITY_PENALTY[c.severity] for c in conflicts)
    return max(0, score)


class ConflictSynergyAnalyzer:
    """Pairwise conflict, resource and synergy detection."""

    def __init__(
        self,
        calculator: Optional[FinancialEffectCalculator] = None,
        commitment_ratio: Optional[float] = None,
    ):
        if commitment_ratio is None:
            commitment_ratio = get_settings().analysis.resource_commitment_ratio
        self._calculator = calculator or FinancialEffectCalculator()
        self.commitment_ratio = commitment_ratio

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def _pair_conflict(
        self,
        first: Scenario,
        second: Scenario,
        both_ways: bool = False,
    ) -> Optional[Conflict]:
        if not types_conflict(first.type, second.type, both_ways):
            return None
        return Conflict(
            type="scenario_conflict",
            severity=Severity.HIGH,
            description=f"{first.type.value} conflicts with existing {second.type.value}",
            scenario_ids=[first.id, second.id],
        )

    def _resource_conflicts(
        self,
        scenarios: list[Scenario],
        context: FinancialContext,
    ) -> list[Conflict]:
        total = sum(abs(self._calculator.monthly_impact(s, context)) for s in scenarios)
        available = context.available_income
        if total <= available * self.commitment_ratio:
            return []
        return [Conflict(
            type="resource_conflict",
            severity=Severity.HIGH,
            description=(
                f"Total commitments (${total:,.2f}) exceed {self.commitment_ratio:.0%} "
                f"of available income (${available:,.2f})"
            ),
            scenario_ids=[s.id for s in scenarios],
        )]

    def _timing_conflicts(self, scenarios: list[Scenario]) -> list[Conflict]:
        homes = [s.id for s in scenarios if s.type == T.HOME_PURCHASE]
        jobs = [s.id for s in scenarios if s.type == T.JOB_CHANGE]
        if not homes or not jobs:
            return []
        return [Conflict(
            type="timing_conflict",
            severity=Severity.MEDIUM,
            description="Job change during home purchase may complicate mortgage approval",
            scenario_ids=homes + jobs,
        )]

    def _synergies(self, scenarios: list[Scenario]) -> list[Synergy]:
        present = {s.type for s in scenarios}
        return [
            Synergy(
                type=synergy_type,
                description=description,
                impact="positive",
                scenario_types=[first, second],
            )
            for first, second, synergy_type, description in _SYNERGIES
            if first in present and second in present
        ]

    def _recommendations(self, conflicts: list[Conflict], subject: str) -> list[AdvisoryItem]:
        recommendations: list[AdvisoryItem] = []
        for conflict in conflicts:
            if conflict.type == "scenario_conflict":
                item = AdvisoryItem(
                    type="resolution",
                    priority="high",
                    description=(
                        f"Consider adjusting {subject} parameters "
                        "or deactivating conflicting scenarios"
                    ),
                )
            elif conflict.type == "resource_conflict":
                item = AdvisoryItem(
                    type="resolution",
                    priority="high",
                    description="Reduce scenario commitments or increase income to avoid overcommitment",
                )
            else:
                item = AdvisoryItem(
                    type="sequencing",
                    priority="medium",
                    description="Stagger the home purchase and the job change to keep mortgage approval simple",
                )
            if item not in recommendations:
                recommendations.append(item)
        return recommendations

    def _build(
        self,
        conflicts: list[Conflict],
        scenarios: list[Scenario],
        context: FinancialContext,
        subject: str,
    ) -> ConflictAnalysis:
        conflicts = (
            conflicts
            + self._resource_conflicts(scenarios, context)
            + self._timing_conflicts(scenarios)
        )
        return ConflictAnalysis(
            conflicts=conflicts,
            synergies=self._synergies(scenarios),
            compatibility_score=compatibility_score(conflicts),
            recommendations=self._recommendations(conflicts, subject),
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def analyze(
        self,
        candidate: Scenario,
        context: FinancialContext,
        existing: Optional[list[Scenario]] = None,
    ) -> ConflictAnalysis:
        """
        Compare a candidate scenario with the scenarios already active.

        Args:
            candidate: The scenario being considered
            context: The user's financial position
            existing: Active scenarios; defaults to candidate.existing_scenarios
        """
        if existing is None:
            existing = list(candidate.existing_scenarios)

        pair_conflicts = [
            c for c in (self._pair_conflict(candidate, other) for other in existing)
            if c is not None
        ]
        return self._build(
            pair_conflicts,
            [candidate, *existing],
            context,
            subject=candidate.name or "this scenario",
        )

    def analyze_set(
        self,
        scenarios: list[Scenario],
        context: FinancialContext,
    ) -> ConflictAnalysis:
        """Analyze every pair of a compound scenario set."""
        pair_conflicts = [
            c for c in (
                self._pair_conflict(a, b, both_ways=True) for a, b in combinations(scenarios, 2)
            )
            if c is not None
        ]
        return self._build(pair_conflicts, list(scenarios), context, subject="the scenario set")
