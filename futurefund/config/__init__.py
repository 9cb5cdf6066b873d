"""Configuration package."""

from futurefund.config.settings import (
    AnalysisSettings,
    EngineSettings,
    GeminiSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AnalysisSettings",
    "EngineSettings",
    "GeminiSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
