"""
Tests for the Gemini insight agent.

The Gemini model is replaced by a mock; nothing here reaches the network.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from futurefund.agents import CollaboratorError, GeminiInsightAgent, parse_insights
from futurefund.config import GeminiSettings


@pytest.fixture
def agent():
    return GeminiInsightAgent(GeminiSettings(api_key="test-key", model_name="gemini-test"))


@pytest.fixture
def ranked(services, context, job_scenario):
    variants = services.variations.generate(job_scenario, context)
    outcomes = services.variations.simulate_all(job_scenario, variants, context, seed=1)
    return services.ranker.rank(services.ranker.score(outcomes, context))


class TestParseInsights:
    """Tests for extracting insights from model text."""

    def test_json_inside_prose(self):
        text = 'Sure! {"insights": "Looks solid.", "optimizations": ["Start small"]} Hope that helps.'
        insights = parse_insights(text, "gemini-test")

        assert insights.insights == "Looks solid."
        assert insights.optimizations == ["Start small"]
        assert insights.alternatives == []
        assert insights.model == "gemini-test"

    def test_no_json(self):
        with pytest.raises(CollaboratorError):
            parse_insights("I cannot help with that.", "m")

    def test_malformed_json(self):
        with pytest.raises(CollaboratorError):
            parse_insights('{"insights": "unterminated}', "m")

    def test_missing_insights_text(self):
        with pytest.raises(CollaboratorError):
            parse_insights('{"optimizations": []}', "m")


class TestPrompt:
    """Tests for the prompt the agent sends."""

    def test_prompt_carries_engine_figures(self, ranked, context, job_scenario):
        prompt = GeminiInsightAgent.build_prompt(job_scenario, ranked[:3], context)

        assert "Scenario: New job (job_change)" in prompt
        assert "Current balance: $10,000.00" in prompt
        assert f"1. {ranked[0].scenario.name}" in prompt
        assert "Do NOT invent" in prompt

    def test_prompt_without_options(self, context, job_scenario):
        prompt = GeminiInsightAgent.build_prompt(job_scenario, [], context)
        assert "No ranked options" in prompt


class TestGenerateInsights:
    """Tests for the agent round trip with a mocked model."""

    @pytest.mark.asyncio
    async def test_reply_is_parsed(self, agent, ranked, context, job_scenario):
        agent._model = SimpleNamespace(generate_content_async=AsyncMock(
            return_value=SimpleNamespace(text=' {"insights": "Take the moderate offer."} ')
        ))

        insights = await agent.generate_insights(job_scenario, ranked[:3], context)

        assert insights.insights == "Take the moderate offer."
        assert insights.model == "gemini-test"

    @pytest.mark.asyncio
    async def test_request_failure_is_wrapped(self, agent, context, job_scenario):
        agent._generate = AsyncMock(side_effect=RuntimeError("503"))

        with pytest.raises(CollaboratorError, match="503"):
            await agent.generate_insights(job_scenario, [], context)
