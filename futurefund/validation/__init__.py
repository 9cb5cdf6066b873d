"""Scenario validation package."""

from futurefund.validation.validator import ScenarioValidator

__all__ = ["ScenarioValidator"]
