"""LLM collaborator package."""

from futurefund.agents.insight_agent import (
    CollaboratorError,
    GeminiInsightAgent,
    InsightProvider,
    parse_insights,
)

__all__ = [
    "CollaboratorError",
    "GeminiInsightAgent",
    "InsightProvider",
    "parse_insights",
]
