"""Structured audit logging for the social feed service.

This module provides the AuditLogger class that emits structured JSON
audit events on a dedicated logger, separate from application logs.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from socialfeed.observability.models import AuditEvent, AuditEventType

# Dedicated audit logger - separate from application logs
audit_logger = logging.getLogger("socialfeed.audit")

# Error messages are truncated before they reach the audit trail
MAX_REASON_LENGTH = 200


class AuditLogger:
    """Structured audit logger bound to one request and actor.

    Usage:
        audit = AuditLogger(request_id="req-123", actor="alice@example.com")
        audit.log_composer_opened(session_id="c-1")
        audit.log_submission_succeeded(session_id="c-1", post_id="42", ...)
    """

    def __init__(
        self,
        request_id: str,
        actor: str,
        enabled: bool = True,
    ) -> None:
        """Initialize the audit logger.

        Args:
            request_id: The request ID for correlation.
            actor: Email of the authenticated user.
            enabled: Whether audit logging is enabled.
        """
        self._request_id = request_id
        self._actor = actor
        self._enabled = enabled

    def _emit(self, event_type: AuditEventType, **metadata: Any) -> None:
        if not self._enabled:
            return

        event = AuditEvent(
            event_type=event_type,
            timestamp=datetime.now(UTC),
            request_id=self._request_id,
            actor=self._actor,
            metadata=metadata,
        )
        try:
            audit_logger.info(json.dumps(event.to_dict(), default=str))
        except (TypeError, ValueError) as e:
            # Don't let audit logging failures affect request processing
            logging.getLogger(__name__).warning("Failed to emit audit event: %s", e)

    def log_user_synced(self, user_id: str, created: bool) -> None:
        """Log that the directory row for the actor was checked or created."""
        self._emit(AuditEventType.USER_SYNCED, user_id=user_id, created=created)

    def log_composer_opened(self, session_id: str) -> None:
        """Log that a composer session was opened."""
        self._emit(AuditEventType.COMPOSER_OPENED, session_id=session_id)

    def log_composer_closed(self, session_id: str) -> None:
        """Log that a composer session was discarded."""
        self._emit(AuditEventType.COMPOSER_CLOSED, session_id=session_id)

    def log_directory_refreshed(self, session_id: str, entry_count: int) -> None:
        """Log an explicit directory refresh."""
        self._emit(
            AuditEventType.DIRECTORY_REFRESHED,
            session_id=session_id,
            entry_count=entry_count,
        )

    def log_mention_committed(self, session_id: str, user_id: str) -> None:
        """Log that a suggestion was committed as a mention."""
        self._emit(AuditEventType.MENTION_COMMITTED, session_id=session_id, user_id=user_id)

    def log_submission_started(
        self,
        session_id: str,
        mention_count: int,
        image_count: int,
    ) -> None:
        """Log the start of a post submission."""
        self._emit(
            AuditEventType.SUBMISSION_STARTED,
            session_id=session_id,
            mention_count=mention_count,
            image_count=image_count,
        )

    def log_submission_succeeded(self, session_id: str, post_id: str, duration_ms: float) -> None:
        """Log a completed post submission."""
        self._emit(
            AuditEventType.SUBMISSION_SUCCEEDED,
            session_id=session_id,
            post_id=post_id,
            duration_ms=round(duration_ms, 2),
        )

    def log_submission_failed(
        self,
        session_id: str,
        reason: str,
        post_id: str | None = None,
    ) -> None:
        """Log a failed post submission.

        Args:
            session_id: The composer session.
            reason: The underlying failure reason (truncated).
            post_id: The post id if the post row was written before the failure.
        """
        metadata: dict[str, Any] = {
            "session_id": session_id,
            "reason": reason[:MAX_REASON_LENGTH] if reason else "Unknown error",
        }
        if post_id is not None:
            metadata["post_id"] = post_id
            metadata["partial_write"] = True

        self._emit(AuditEventType.SUBMISSION_FAILED, **metadata)

    def log_follow_changed(self, follower_id: str, followee_id: str, following: bool) -> None:
        """Log a follow or unfollow."""
        self._emit(
            AuditEventType.FOLLOW_CHANGED,
            follower_id=follower_id,
            followee_id=followee_id,
            following=following,
        )

    def log_profile_updated(self, user_id: str) -> None:
        """Log a profile edit."""
        self._emit(AuditEventType.PROFILE_UPDATED, user_id=user_id)


def configure_audit_logging(level: str = "INFO") -> None:
    """Configure the audit logger with its own stream handler.

    Args:
        level: The logging level for audit events.
    """
    audit_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Only add handler if not already configured
    if not audit_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(getattr(logging, level.upper(), logging.INFO))

        # Simple format - the message is already JSON
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)

        audit_logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    audit_logger.propagate = False
