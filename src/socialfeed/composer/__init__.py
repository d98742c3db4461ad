"""Post composer sessions."""

from socialfeed.composer.session import ComposerSession, PendingImage
from socialfeed.composer.store import ComposerStore

__all__ = ["ComposerSession", "ComposerStore", "PendingImage"]
