"""Exceptions shared across the social feed service."""


class SocialFeedError(Exception):
    """Base class for errors raised by the social feed service."""


class InvalidState(SocialFeedError):
    """Raised when an operation is invoked in a state that cannot support it.

    This is a programmer error (the UI and the composer state disagree), so
    callers should fail fast rather than swallow it.
    """


class DirectoryUnavailable(SocialFeedError):
    """Raised when the user directory cannot be fetched from the backend."""


class SubmissionFailed(SocialFeedError):
    """Raised when any step of a post submission fails.

    The post may have been partially written (``post_id`` is set once the
    post row exists); the submission is still reported as failed as a whole.
    """

    def __init__(
        self,
        message: str,
        post_id: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.post_id = post_id
        self.cause = cause


class UserNotFound(SocialFeedError):
    """Raised when the authenticated identity has no directory row."""
