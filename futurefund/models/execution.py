"""
Execution Models

Pipeline input, run bookkeeping, progress events and the result
envelope returned by Orchestrator.execute().
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from futurefund.models.ranking import RankingConstraints
from futurefund.models.scenario import FinancialContext, Scenario


class NodeError(BaseModel):
    """A failure captured from one graph node."""

    model_config = ConfigDict(frozen=True)

    phase: str
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class PhaseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    duration_ms: float = Field(ge=0)
    success: bool


class ExecutionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    started_at: datetime = Field(default_factory=datetime.utcnow)
    phases: list[PhaseRecord] = Field(default_factory=list)
    errors: list[NodeError] = Field(default_factory=list)


# =============================================================================
# INPUT
# =============================================================================

class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("Date range end cannot be before start")
        return self


class SimulationParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    trials: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = None


class PipelineInput(BaseModel):
    """
    Everything a pipeline may read.

    `scenario` drives single-scenario pipelines; `scenarios` is the
    compound set for advanced modeling (falls back to `scenario`).
    """

    model_config = ConfigDict(frozen=True)

    scenario: Optional[Scenario] = None
    scenarios: list[Scenario] = Field(default_factory=list)
    context: Optional[FinancialContext] = None
    constraints: RankingConstraints = Field(default_factory=RankingConstraints)
    date_range: Optional[DateRange] = None
    transaction_count: int = Field(default=0, ge=0)
    simulation: SimulationParameters = Field(default_factory=SimulationParameters)

    @property
    def scenario_set(self) -> list[Scenario]:
        if self.scenarios:
            return list(self.scenarios)
        return [self.scenario] if self.scenario is not None else []


# =============================================================================
# RUNS AND PROGRESS
# =============================================================================

class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class ActiveRun(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_id: str
    pipeline: str
    started_at: datetime = Field(default_factory=datetime.utcnow)
    status: RunStatus = RunStatus.RUNNING


class ProgressEvent(BaseModel):
    """
    Synthetic progress report.

    Progress is estimated from elapsed ticks over the pipeline's
    declared phases, not measured from node completion.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    pipeline: str
    stage: str
    progress: float = Field(ge=0, le=100)
    message: str
    summary: Optional[dict[str, Any]] = None


# =============================================================================
# RESULT
# =============================================================================

class ResultMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_id: str
    pipeline: str
    execution_time_ms: float = Field(ge=0)
    cached: bool = False
    phases: list[PhaseRecord] = Field(default_factory=list)
    errors: list[NodeError] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.utcnow)


class PipelineResult(BaseModel):
    """Envelope returned by the orchestrator. Never raised, always returned."""

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Optional[dict[str, Any]] = None
    metadata: Optional[ResultMetadata] = None
    error: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @classmethod
    def ok(cls, data: dict[str, Any], metadata: ResultMetadata) -> "PipelineResult":
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def failure(
        cls,
        error: str,
        details: Optional[dict[str, Any]] = None,
    ) -> "PipelineResult":
        return cls(success=False, error=error, details=details)

    @property
    def has_errors(self) -> bool:
        return bool(self.metadata and self.metadata.errors)

    def as_cached(self) -> "PipelineResult":
        """Deep copy of this result flagged as served from cache."""
        if self.metadata is None:
            return self.model_copy(deep=True)
        return self.model_copy(
            update={"metadata": self.metadata.model_copy(update={"cached": True})},
            deep=True,
        )
