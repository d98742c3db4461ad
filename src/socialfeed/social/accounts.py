"""Directory row management for authenticated identities."""

import logging

from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import DirectoryEntry, Identity

logger = logging.getLogger(__name__)


async def ensure_user(backend: BackendClient, identity: Identity) -> tuple[DirectoryEntry, bool]:
    """Make sure the identity has a row in the user directory.

    Existing rows are left untouched, so a renamed profile is not
    overwritten by the identity provider's name on the next login.

    Returns:
        The directory entry and whether it was created by this call.
    """
    existing = await backend.get_user_by_email(identity.email)
    if existing is not None:
        return existing, False

    entry = await backend.upsert_user(identity)
    logger.info("Created directory entry %s for %s", entry.user_id, identity.email)
    return entry, True
