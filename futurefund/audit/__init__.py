"""Audit logging package."""

from futurefund.audit.logger import AuditLogger, create_run_id
from futurefund.audit.sink import AuditSink, InMemoryAuditSink

__all__ = ["AuditLogger", "AuditSink", "InMemoryAuditSink", "create_run_id"]
