"""
Audit Sink Interface

DESIGN DECISION: Audit persistence sits behind an abstract interface.
The engine itself persists nothing; callers that want an audit trail
plug in a sink. An in-memory sink is provided for tests and for
short-lived processes that inspect their own history.
"""

from abc import ABC, abstractmethod
from typing import Optional

from futurefund.models.audit import AuditEvent, AuditEventType


class AuditSink(ABC):
    """
    Abstract interface for audit event persistence.

    Audit logs are append-only - no update or delete operations.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Returns:
            True if stored successfully
        """
        pass

    @abstractmethod
    async def get_events_by_run(self, run_id: str) -> list[AuditEvent]:
        """Get all events recorded for one run, oldest first."""
        pass


class InMemoryAuditSink(AuditSink):
    """Keeps events in a list. Bounded by `max_events` when given."""

    def __init__(self, max_events: Optional[int] = None):
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        if self._max_events is not None and len(self._events) > self._max_events:
            del self._events[: len(self._events) - self._max_events]
        return True

    async def get_events_by_run(self, run_id: str) -> list[AuditEvent]:
        return [e for e in self._events if e.run_id == run_id]

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self._events if e.event_type == event_type]
