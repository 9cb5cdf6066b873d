"""
Shared fixtures for FutureFund tests.

No test makes a network call: the LLM collaborator is replaced by
FakeInsightProvider, available through the `fake_provider` fixture.
"""

import asyncio
from typing import Optional

import pytest

from futurefund.agents import InsightProvider
from futurefund.audit import AuditLogger, InMemoryAuditSink
from futurefund.config import get_settings
from futurefund.models import (
    Account,
    FinancialContext,
    LLMInsights,
    Scenario,
    ScenarioType,
)
from futurefund.pipelines import AnalysisServices


class FakeInsightProvider(InsightProvider):
    """Scriptable stand-in for the Gemini agent."""

    def __init__(
        self,
        insights: Optional[LLMInsights] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
    ):
        self.insights = insights
        self.delay = delay
        self.error = error
        self.calls = 0

    async def generate_insights(self, scenario, top_recommendations, financial_context):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.insights


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings for every test so env changes do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_provider():
    return FakeInsightProvider


@pytest.fixture
def context():
    return FinancialContext(
        current_balance=10_000,
        monthly_income=5_000,
        monthly_expenses=3_000,
        accounts=[Account(id="chk", name="Checking", balance=10_000)],
    )


@pytest.fixture
def debt_scenario():
    return Scenario(
        id="debt1",
        name="Pay off credit card",
        type=ScenarioType.DEBT_PAYOFF,
        parameters={"debt_amount": 10_000, "monthly_payment": 600},
    )


@pytest.fixture
def job_scenario():
    return Scenario(
        id="job1",
        name="New job",
        type=ScenarioType.JOB_CHANGE,
        parameters={"current_salary": 5_000, "new_salary": 6_000, "timeline": 3},
    )


@pytest.fixture
def home_scenario():
    return Scenario(
        id="home1",
        name="Buy a house",
        type=ScenarioType.HOME_PURCHASE,
        parameters={
            "home_price": 300_000,
            "down_payment": 30_000,
            "monthly_payment": 2_000,
            "current_rent": 1_500,
            "timeline": 6,
        },
    )


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit_logger(audit_sink):
    return AuditLogger(audit_sink)


@pytest.fixture
def services(audit_logger):
    return AnalysisServices.create(audit_logger=audit_logger, seed=42)
