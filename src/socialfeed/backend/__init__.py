"""Client and models for the hosted backend-as-a-service."""

from socialfeed.backend.client import BackendClient, BackendError
from socialfeed.backend.models import DirectoryEntry, Identity, PostImage, PostRecord
from socialfeed.backend.retry import RetryConfig, call_with_retry, is_retryable_error

__all__ = [
    "BackendClient",
    "BackendError",
    "DirectoryEntry",
    "Identity",
    "PostImage",
    "PostRecord",
    "RetryConfig",
    "call_with_retry",
    "is_retryable_error",
]
