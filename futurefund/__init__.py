"""
FutureFund - Scenario Intelligence Engine

The analytical core of the FutureFund personal-finance app: a small
state-graph executor plus the scenario analysis algorithms that run on it,
coordinated by an orchestrator with caching, timeouts and progress events.

DESIGN PRINCIPLES:
1. A failing node degrades the result, it never aborts the run
2. Nothing raises past the orchestrator boundary
3. Every result is built fresh; nothing is mutated after construction
4. The LLM is optional; every insight has a rule-based fallback
"""

__version__ = "1.0.0"
__author__ = "FutureFund Team"
