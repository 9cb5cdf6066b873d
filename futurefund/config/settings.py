"""
Configuration Management for FutureFund

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable constants of the engine live here.
Cache capacity, TTL, timeouts and the analysis thresholds are read once
at startup and validated, so a bad .env fails loudly before the first run.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Orchestrator configuration: caching, timeouts and progress."""

    model_config = SettingsConfigDict(
        env_prefix="FUTUREFUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    cache_capacity: int = Field(
        default=50,
        ge=1,
        description="Maximum entries in the LRU result cache"
    )
    result_ttl_seconds: float = Field(
        default=30 * 60,
        gt=0,
        description="Expiry for the TTL result cache used by long-running pipelines"
    )
    default_timeout_ms: int = Field(
        default=60_000,
        ge=1,
        description="Timeout applied when execute() gets no explicit timeout"
    )
    progress_interval_ms: int = Field(
        default=1_000,
        ge=1,
        description="Interval between synthetic progress events"
    )
    llm_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Upper bound on one LLM insight request"
    )


class AnalysisSettings(BaseSettings):
    """Thresholds and sizes used by the analysis components."""

    model_config = SettingsConfigDict(
        env_prefix="FUTUREFUND_ANALYSIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    monte_carlo_default_trials: int = Field(
        default=100,
        ge=1,
        description="Trials run when the caller does not ask for a count"
    )
    monte_carlo_max_trials: int = Field(
        default=100,
        ge=1,
        description="Hard cap on trials per run (raise for more precision)"
    )
    monte_carlo_seed: Optional[int] = Field(
        default=None,
        description="Seed for the trial generator; unseeded when empty"
    )
    projection_months: int = Field(
        default=12,
        ge=1,
        le=120,
        description="Length of the deterministic balance projection"
    )
    resource_commitment_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Share of free cash flow that commitments may use before conflicting"
    )
    salary_warning_threshold: float = Field(
        default=1_000_000.0,
        gt=0,
        description="New salaries above this are flagged for review"
    )

    @model_validator(mode="after")
    def check_trial_bounds(self) -> "AnalysisSettings":
        """Default trial count may not exceed the cap."""
        if self.monte_carlo_default_trials > self.monte_carlo_max_trials:
            raise ValueError(
                "monte_carlo_default_trials cannot exceed monte_carlo_max_trials"
            )
        return self


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Gemini key
    # does not block the deterministic engine.

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def analysis(self) -> AnalysisSettings:
        return AnalysisSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus an
    "<name>_error" entry for each failure. Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("engine", "analysis", "gemini"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
