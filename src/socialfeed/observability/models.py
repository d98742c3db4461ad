"""Data models for audit logging."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class AuditEventType(str, Enum):
    """Types of audit events logged by the service."""

    USER_SYNCED = "user_synced"
    COMPOSER_OPENED = "composer_opened"
    COMPOSER_CLOSED = "composer_closed"
    DIRECTORY_REFRESHED = "directory_refreshed"
    MENTION_COMMITTED = "mention_committed"
    SUBMISSION_STARTED = "submission_started"
    SUBMISSION_SUCCEEDED = "submission_succeeded"
    SUBMISSION_FAILED = "submission_failed"
    FOLLOW_CHANGED = "follow_changed"
    PROFILE_UPDATED = "profile_updated"


@dataclass
class AuditEvent:
    """A structured audit event for logging.

    Provides a consistent format for audit trail entries that can
    be serialized to JSON for structured logging.
    """

    event_type: AuditEventType
    """The type of audit event."""

    timestamp: datetime
    """When the event occurred."""

    request_id: str
    """The request ID for correlation."""

    actor: str
    """Email of the authenticated user performing the action."""

    metadata: dict[str, Any] = field(default_factory=dict)
    """Event-specific metadata."""

    def to_dict(self) -> dict[str, Any]:
        """Convert the audit event to a dictionary for JSON serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "request_id": self.request_id,
            "actor": self.actor,
            **self.metadata,
        }
