"""
LLM Insight Agent

DESIGN DECISION: The LLM only glosses numbers the engine already computed.

CRITICAL BOUNDARIES:
- CAN: Explain the ranked options in plain language
- CAN: Suggest optimizations and alternatives to consider
- CANNOT: Change scores, ranks or any computed figure
- CANNOT: Block a pipeline (callers race it against a timeout and fall
  back to a deterministic template)

The LLM is a NARRATOR, not a CALCULATOR.
Every number in the prompt comes from the engine's own output.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from futurefund.config import GeminiSettings, get_settings
from futurefund.models import FinancialContext, LLMInsights, RankedOption, Scenario


logger = structlog.get_logger(__name__)


class CollaboratorError(Exception):
    """The LLM collaborator failed or returned something unusable."""
    pass


class InsightProvider(ABC):
    """
    Contract for anything that can gloss a set of recommendations.

    Implementations may be slow or fail; callers must not depend on them.
    """

    @abstractmethod
    async def generate_insights(
        self,
        scenario: Scenario,
        top_recommendations: list[RankedOption],
        financial_context: FinancialContext,
    ) -> Optional[LLMInsights]:
        """Return insights, or None when there is nothing to say."""
        pass


def parse_insights(text: str, model_name: str) -> LLMInsights:
    """
    Extract the JSON object from a model response.

    Raises:
        CollaboratorError: No JSON object, or one missing the insights text
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise CollaboratorError("Response contained no JSON object")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise CollaboratorError(f"Response JSON is malformed: {e}") from e
    if not isinstance(data, dict):
        raise CollaboratorError("Response JSON is not an object")

    try:
        return LLMInsights(
            insights=str(data.get("insights", "")).strip(),
            optimizations=[str(o) for o in data.get("optimizations") or []],
            alternatives=[str(a) for a in data.get("alternatives") or []],
            risk_assessment=data.get("risk_assessment") or {},
            model=model_name,
        )
    except (ValidationError, TypeError) as e:
        raise CollaboratorError(f"Response does not match the insights shape: {e}") from e


class GeminiInsightAgent(InsightProvider):
    """
    Insight provider backed by Google Gemini.

    RESPONSIBILITIES:
    - Build a prompt from the scenario, the top options and the context
    - Retry transient API failures
    - Parse the JSON reply into LLMInsights

    BOUNDARIES:
    - NEVER invents figures (the prompt forbids it and the caller keeps
      its own numbers)
    - ALWAYS raises CollaboratorError on failure, never returns junk
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @staticmethod
    def build_prompt(
        scenario: Scenario,
        top_recommendations: list[RankedOption],
        financial_context: FinancialContext,
    ) -> str:
        options = "\n".join(
            f"{r.rank}. {r.scenario.name}: score {r.final_score:.2f}, "
            f"monthly impact ${r.outcome.monthly_impact:,.2f}, "
            f"final balance ${r.outcome.final_balance:,.2f}, "
            f"risk {r.outcome.risk_level:.0f}%"
            for r in top_recommendations
        ) or "No ranked options"

        return f"""You are explaining financial scenario results for a personal finance app.

Scenario: {scenario.name} ({scenario.type.value if scenario.type else 'untyped'})
Description: {scenario.description or 'none'}

Financial position:
- Current balance: ${financial_context.current_balance:,.2f}
- Monthly income: ${financial_context.monthly_income:,.2f}
- Monthly expenses: ${financial_context.monthly_expenses:,.2f}
- Risk tolerance: {financial_context.risk_tolerance.value}

Top options:
{options}

Respond with ONLY a JSON object in this exact format:
{{"insights": "2-3 sentence explanation", "optimizations": ["..."], "alternatives": ["..."], "risk_assessment": {{"level": "low|medium|high", "notes": "..."}}}}

IMPORTANT: Use ONLY the figures above. Do NOT invent balances, rates or returns."""

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        return response.text.strip()

    async def generate_insights(
        self,
        scenario: Scenario,
        top_recommendations: list[RankedOption],
        financial_context: FinancialContext,
    ) -> Optional[LLMInsights]:
        prompt = self.build_prompt(scenario, top_recommendations, financial_context)
        try:
            text = await self._generate(prompt)
        except Exception as e:
            logger.warning("gemini_request_failed", error=str(e), model=self._settings.model_name)
            raise CollaboratorError(f"Gemini request failed: {e}") from e

        return parse_insights(text, self._settings.model_name)
