"""Analysis pipelines built on the state graph engine."""

from futurefund.pipelines.advanced_modeling import build_advanced_modeling
from futurefund.pipelines.base import AnalysisServices, CachePolicy, Pipeline, require
from futurefund.pipelines.scenario_analysis import build_scenario_analysis
from futurefund.pipelines.smart_scenarios import build_smart_scenarios


def build_default_pipelines(services: AnalysisServices) -> list[Pipeline]:
    """The three shipped pipelines, in registration order."""
    return [
        build_scenario_analysis(services),
        build_smart_scenarios(services),
        build_advanced_modeling(services),
    ]


__all__ = [
    "AnalysisServices",
    "CachePolicy",
    "Pipeline",
    "build_advanced_modeling",
    "build_default_pipelines",
    "build_scenario_analysis",
    "build_smart_scenarios",
    "require",
]
