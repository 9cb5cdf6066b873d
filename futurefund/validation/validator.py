"""
Two-Stage Scenario Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Non-empty name
- Scenario type present
- Parameters present

STAGE 2 - SEMANTIC VALIDATION:
- Per-type parameter rules (positive salaries, down payment within
  the home price, positive payments and contributions)
- Suspicious values flagged as warnings

Stage 2 only runs when stage 1 passes, since the per-type rules need a type.

IMPORTANT: Validation NEVER raises and NEVER fixes parameters.
Problems are recorded in the ValidationResult; the pipeline keeps going.
"""

from typing import Callable, Optional

from futurefund.config import get_settings
from futurefund.models.scenario import (
    Scenario,
    ScenarioType,
    ValidationIssue,
    ValidationResult,
    check_exhaustive,
)


def _error(field: str, message: str, suggested_fix: Optional[str] = None, missing: bool = False) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing" if missing else "invalid_value",
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


def _warning(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=suggested_fix,
    )


def _require_positive(scenario: Scenario, key: str, label: str) -> list[ValidationIssue]:
    if scenario.amount(key) > 0:
        return []
    return [_error(
        f"parameters.{key}",
        f"{label} must be greater than 0",
        suggested_fix=f"Enter a positive {label.lower()}",
        missing=not scenario.has(key),
    )]


# =============================================================================
# PER-TYPE RULES
# =============================================================================

def _job_change_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    issues = _require_positive(scenario, "new_salary", "New salary")
    if scenario.amount("new_salary") > salary_warning:
        issues.append(_warning(
            "parameters.new_salary",
            "suspicious_value",
            "New salary seems unusually high",
            suggested_fix="Check the salary is a monthly amount",
        ))
    return issues


def _career_break_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    if scenario.has("timeline"):
        return []
    return [_warning(
        "parameters.timeline",
        "missing",
        "Career break has no timeline; a 12-month break is assumed",
    )]


def _home_purchase_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    issues = _require_positive(scenario, "home_price", "Home price")
    issues += _require_positive(scenario, "down_payment", "Down payment")
    if scenario.amount("down_payment") > scenario.amount("home_price") > 0:
        issues.append(_error(
            "parameters.down_payment",
            "Down payment cannot exceed home price",
            suggested_fix="Lower the down payment or raise the home price",
        ))
    return issues


def _purchase_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    return _require_positive(scenario, "amount", "Amount")


def _debt_payoff_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    issues = _require_positive(scenario, "debt_amount", "Debt amount")
    issues += _require_positive(scenario, "monthly_payment", "Monthly payment")
    return issues


def _investment_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    issues = _require_positive(scenario, "investment_amount", "Investment amount")
    if not scenario.has("expected_return"):
        issues.append(_warning(
            "parameters.expected_return",
            "missing",
            "Expected return not specified, using default 7%",
        ))
    return issues


def _emergency_fund_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    issues = _require_positive(scenario, "target_amount", "Target amount")
    issues += _require_positive(scenario, "monthly_contribution", "Monthly contribution")
    return issues


def _cash_hoarding_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    return _require_positive(scenario, "monthly_contribution", "Monthly contribution")


def _expense_change_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    if scenario.amount("monthly_change") != 0:
        return []
    return [_error(
        "parameters.monthly_change",
        "Monthly change must be a non-zero amount",
        suggested_fix="Use a positive amount for new costs, negative for savings",
        missing=not scenario.has("monthly_change"),
    )]


def _custom_rules(scenario: Scenario, salary_warning: float) -> list[ValidationIssue]:
    if scenario.has("monthly_impact"):
        return []
    return [_warning(
        "parameters.monthly_impact",
        "missing",
        "Custom scenario has no monthly impact; it will be treated as neutral",
    )]


RuleFn = Callable[[Scenario, float], list[ValidationIssue]]

_RULES: dict[ScenarioType, RuleFn] = check_exhaustive({
    ScenarioType.JOB_CHANGE: _job_change_rules,
    ScenarioType.CAREER_BREAK: _career_break_rules,
    ScenarioType.HOME_PURCHASE: _home_purchase_rules,
    ScenarioType.MAJOR_EXPENSE: _purchase_rules,
    ScenarioType.LARGE_PURCHASE: _purchase_rules,
    ScenarioType.DEBT_PAYOFF: _debt_payoff_rules,
    ScenarioType.INVESTMENT: _investment_rules,
    ScenarioType.EMERGENCY_FUND: _emergency_fund_rules,
    ScenarioType.CASH_HOARDING: _cash_hoarding_rules,
    ScenarioType.EXPENSE_CHANGE: _expense_change_rules,
    ScenarioType.CUSTOM: _custom_rules,
}, "validation rules")


class ScenarioValidator:
    """
    Validates a scenario through a two-stage pipeline.

    Stage 1: Schema validation (required top-level fields)
    Stage 2: Semantic validation (per-type parameter rules)
    """

    def __init__(self, salary_warning_threshold: Optional[float] = None):
        if salary_warning_threshold is None:
            salary_warning_threshold = get_settings().analysis.salary_warning_threshold
        self._salary_warning = salary_warning_threshold

    def _validate_schema(self, scenario: Scenario) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not scenario.name or not scenario.name.strip():
            issues.append(_error(
                "name",
                "Scenario name is required",
                suggested_fix="Give the scenario a short descriptive name",
                missing=True,
            ))

        if scenario.type is None:
            issues.append(_error(
                "type",
                "Scenario type is required",
                suggested_fix=f"Choose one of: {', '.join(t.value for t in ScenarioType)}",
                missing=True,
            ))

        if not scenario.parameters:
            issues.append(_error(
                "parameters",
                "Scenario parameters are required",
                missing=True,
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(self, scenario: Scenario) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation via the per-type rule table.

        Returns: (is_valid, list_of_issues)
        """
        issues = _RULES[scenario.type](scenario, self._salary_warning)
        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, scenario: Scenario) -> ValidationResult:
        """
        Run full two-stage validation.

        validation_score = max(0, 100 - 20 * errors - 5 * warnings)
        """
        schema_valid, all_issues = self._validate_schema(scenario)

        if schema_valid:
            _, semantic_issues = self._validate_semantic(scenario)
            all_issues = all_issues + semantic_issues

        errors = [i.message for i in all_issues if i.severity == "error"]
        warnings = [i.message for i in all_issues if i.severity == "warning"]
        score = max(0, 100 - 20 * len(errors) - 5 * len(warnings))

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            validation_score=score,
            issues=all_issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short plain-text summary of a validation result."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if result.errors:
            lines.append("This scenario needs fixes before it can be analyzed reliably:")
            lines.extend(f"  - {message}" for message in result.errors)
        if result.warnings:
            lines.append("Please double-check:")
            lines.extend(f"  - {message}" for message in result.warnings)
        return "\n".join(lines)
