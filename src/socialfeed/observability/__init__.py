"""Observability module: structured JSON audit logging."""

from socialfeed.observability.audit import AuditLogger, configure_audit_logging
from socialfeed.observability.models import AuditEvent, AuditEventType

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "configure_audit_logging",
]
