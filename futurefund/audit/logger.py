"""
Audit Logger

DESIGN DECISION: Every pipeline run is logged from start to finish.
The audit logger:
- Is async so the orchestrator can await it between phases
- Never raises (a failing sink is logged and ignored)
- Uses the run id as the correlation id for all of a run's events
"""

from typing import Optional
from uuid import uuid4

import structlog

from futurefund.audit.sink import AuditSink
from futurefund.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional AuditSink (for callers that keep history)
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Where events are persisted.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger(__name__)

    @property
    def sink(self) -> Optional[AuditSink]:
        return self._sink

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the sink if available.

        Returns True if the sink write succeeded (or no sink configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                return await self._sink.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_run_started(self, run_id: str, pipeline: str) -> None:
        """Log the start of a pipeline run."""
        await self.log(AuditEventBuilder.run_started(run_id, pipeline))

    async def log_run_completed(
        self,
        run_id: str,
        pipeline: str,
        execution_time_ms: float,
        error_count: int,
    ) -> None:
        """Log a run that produced a result (possibly with node errors)."""
        await self.log(AuditEventBuilder.run_completed(
            run_id=run_id,
            pipeline=pipeline,
            execution_time_ms=execution_time_ms,
            error_count=error_count,
        ))

    async def log_run_failed(
        self,
        run_id: Optional[str],
        pipeline: str,
        error_message: str,
    ) -> None:
        """Log a run that returned a failure result."""
        await self.log(AuditEventBuilder.run_failed(run_id, pipeline, error_message))

    async def log_run_timed_out(self, run_id: str, pipeline: str, timeout_ms: int) -> None:
        await self.log(AuditEventBuilder.run_timed_out(run_id, pipeline, timeout_ms))

    async def log_run_cancelled(self, run_id: str, pipeline: str) -> None:
        await self.log(AuditEventBuilder.run_cancelled(run_id, pipeline))

    async def log_cache_hit(self, run_id: str, pipeline: str, cache_name: str) -> None:
        await self.log(AuditEventBuilder.cache_hit(run_id, pipeline, cache_name))

    async def log_cache_cleared(self, entries: int) -> None:
        await self.log(AuditEventBuilder.cache_cleared(entries))

    async def log_node_failed(
        self,
        run_id: str,
        pipeline: str,
        phase: str,
        message: str,
    ) -> None:
        """Log a node failure captured into the errors channel."""
        await self.log(AuditEventBuilder.node_failed(run_id, pipeline, phase, message))

    async def log_collaborator_fallback(self, reason: str) -> None:
        await self.log(AuditEventBuilder.collaborator_fallback(reason))

    async def log_progress_callback_failed(
        self,
        run_id: str,
        pipeline: str,
        message: str,
    ) -> None:
        await self.log(AuditEventBuilder.progress_callback_failed(run_id, pipeline, message))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        run_id: Optional[str] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            run_id=run_id,
        ))


def create_run_id() -> str:
    """
    Create a new run id.

    Use this at the start of each execute() call and pass it through
    every event of that run.
    """
    return uuid4().hex
