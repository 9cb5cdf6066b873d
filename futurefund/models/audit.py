"""
Audit Models for FutureFund

Every pipeline run leaves a trail of audit events: when it started, how
it ended, whether the cache answered, which nodes failed and when the
LLM collaborator fell back to templates.

DESIGN DECISION: Audit events are append-only and keyed by run id.
The run id doubles as the correlation id tying one run's events together.

Descriptions are built from fixed text and numbers only. Caller-supplied
strings such as pipeline names go in their own fields, which carry no
length limit.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Run lifecycle
    RUN_STARTED = "run_started"
    RUN_COMPLETED = "run_completed"
    RUN_FAILED = "run_failed"
    RUN_TIMED_OUT = "run_timed_out"
    RUN_CANCELLED = "run_cancelled"

    # Cache
    CACHE_HIT = "cache_hit"
    CACHE_CLEARED = "cache_cleared"

    # Degraded paths
    NODE_FAILED = "node_failed"
    COLLABORATOR_FALLBACK = "collaborator_fallback"
    PROGRESS_CALLBACK_FAILED = "progress_callback_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which run and pipeline is this about?
    pipeline: Optional[str] = Field(
        default=None,
        description="Pipeline name (e.g., 'scenario_analysis')"
    )
    run_id: Optional[str] = Field(
        default=None,
        description="Run id, also used to correlate related events"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "pipeline": self.pipeline,
            "run_id": self.run_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.run_started(run_id, "scenario_analysis")
        event = AuditEventBuilder.cache_hit(run_id, "smart_scenarios", "ttl")
    """

    @staticmethod
    def run_started(run_id: str, pipeline: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_STARTED,
            pipeline=pipeline,
            run_id=run_id,
            description="Pipeline run started",
        )

    @staticmethod
    def run_completed(
        run_id: str,
        pipeline: str,
        execution_time_ms: float,
        error_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_COMPLETED,
            severity=AuditSeverity.WARNING if error_count else AuditSeverity.INFO,
            pipeline=pipeline,
            run_id=run_id,
            description=(
                f"Pipeline run completed in {execution_time_ms:.0f}ms"
                f" with {error_count} node errors"
            ),
            details={
                "execution_time_ms": execution_time_ms,
                "error_count": error_count,
            },
        )

    @staticmethod
    def run_failed(run_id: Optional[str], pipeline: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_FAILED,
            severity=AuditSeverity.ERROR,
            pipeline=pipeline,
            run_id=run_id,
            description="Pipeline run failed",
            error_message=error_message,
        )

    @staticmethod
    def run_timed_out(run_id: str, pipeline: str, timeout_ms: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_TIMED_OUT,
            severity=AuditSeverity.WARNING,
            pipeline=pipeline,
            run_id=run_id,
            description=f"Pipeline run timed out after {timeout_ms}ms",
            details={"timeout_ms": timeout_ms},
        )

    @staticmethod
    def run_cancelled(run_id: str, pipeline: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_CANCELLED,
            pipeline=pipeline,
            run_id=run_id,
            description="Pipeline run cancelled; result discarded",
        )

    @staticmethod
    def cache_hit(run_id: str, pipeline: str, cache_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CACHE_HIT,
            severity=AuditSeverity.DEBUG,
            pipeline=pipeline,
            run_id=run_id,
            description=f"Served from {cache_name} cache",
            details={"cache": cache_name},
        )

    @staticmethod
    def cache_cleared(entries: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CACHE_CLEARED,
            description=f"Result caches cleared ({entries} entries)",
            details={"entries": entries},
        )

    @staticmethod
    def node_failed(run_id: str, pipeline: str, phase: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NODE_FAILED,
            severity=AuditSeverity.WARNING,
            pipeline=pipeline,
            run_id=run_id,
            description=f"Node {phase} failed; run continued",
            details={"phase": phase},
            error_message=message,
        )

    @staticmethod
    def collaborator_fallback(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLABORATOR_FALLBACK,
            severity=AuditSeverity.WARNING,
            description="LLM insights unavailable, used rule-based fallback",
            error_message=reason,
        )

    @staticmethod
    def progress_callback_failed(run_id: str, pipeline: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROGRESS_CALLBACK_FAILED,
            severity=AuditSeverity.WARNING,
            pipeline=pipeline,
            run_id=run_id,
            description="Progress callback raised; event dropped",
            error_message=message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        run_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            run_id=run_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
