"""In-memory composer session store with TTL expiration."""

import logging
import threading
import uuid

from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import Identity
from socialfeed.composer.session import DEFAULT_MAX_IMAGES, ComposerSession

logger = logging.getLogger(__name__)


class ComposerStore:
    """Thread-safe in-memory store of open composer sessions.

    Sessions are keyed by a generated session id and expire after a
    configurable period of inactivity.

    Note: This implementation is suitable for single-instance deployments.
    """

    def __init__(self, timeout_minutes: int = 60, max_images: int = DEFAULT_MAX_IMAGES) -> None:
        """Initialize the composer store.

        Args:
            timeout_minutes: Number of idle minutes before a session expires.
            max_images: Number of images each composer may hold.
        """
        self._sessions: dict[str, ComposerSession] = {}
        self._lock = threading.Lock()
        self._timeout_minutes = timeout_minutes
        self._max_images = max_images

    @property
    def timeout_minutes(self) -> int:
        """Get the session timeout in minutes."""
        return self._timeout_minutes

    def create(self, identity: Identity, backend: BackendClient) -> ComposerSession:
        """Open a new, empty composer session for an identity."""
        session = ComposerSession(
            session_id=str(uuid.uuid4()),
            identity=identity,
            backend=backend,
            max_images=self._max_images,
        )
        with self._lock:
            self._sessions[session.session_id] = session

        logger.debug(
            "Opened composer (session_id=%s, author=%s)",
            session.session_id,
            identity.email,
        )
        return session

    def get(self, session_id: str) -> ComposerSession | None:
        """Get a session by id.

        Returns None if the session doesn't exist or has expired, removing
        expired sessions as they are found.
        """
        with self._lock:
            session = self._sessions.get(session_id)

            if session is None:
                return None

            if session.is_expired(self._timeout_minutes):
                logger.debug(
                    "Composer expired (session_id=%s, last_activity=%s)",
                    session_id,
                    session.last_activity.isoformat(),
                )
                del self._sessions[session_id]
                return None

            session.touch()
            return session

    def delete(self, session_id: str) -> bool:
        """Discard a session.

        Returns:
            True if the session was deleted, False if not found.
        """
        with self._lock:
            if session_id in self._sessions:
                logger.debug("Discarding composer (session_id=%s)", session_id)
                del self._sessions[session_id]
                return True
            return False

    def cleanup_expired(self) -> int:
        """Remove all expired sessions.

        Returns:
            Number of sessions removed.
        """
        with self._lock:
            expired_ids = [
                session_id
                for session_id, session in self._sessions.items()
                if session.is_expired(self._timeout_minutes)
            ]
            for session_id in expired_ids:
                del self._sessions[session_id]

        if expired_ids:
            logger.info("Cleaned up %d expired composer sessions", len(expired_ids))

        return len(expired_ids)

    def count(self) -> int:
        """Get the number of open sessions."""
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions."""
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
            if count:
                logger.info("Cleared %d composer sessions", count)
