"""Directory lookup for mention suggestions."""

import asyncio
import logging
from collections.abc import Sequence

from socialfeed.backend.client import BackendClient, BackendError
from socialfeed.backend.models import DirectoryEntry
from socialfeed.errors import DirectoryUnavailable
from socialfeed.mentions.tokenizer import MENTION_PREFIX

logger = logging.getLogger(__name__)


def search_directory(entries: Sequence[DirectoryEntry], prefix: str) -> list[DirectoryEntry]:
    """Find entries whose display name starts with the prefix, ignoring case.

    A single leading ``@`` is stripped from the prefix. Matches keep the
    directory order; a blank prefix matches nothing.
    """
    if prefix.startswith(MENTION_PREFIX):
        prefix = prefix[len(MENTION_PREFIX) :]
    if not prefix.strip():
        return []

    needle = prefix.casefold()
    return [entry for entry in entries if entry.display_name.casefold().startswith(needle)]


class DirectoryCache:
    """Read-through snapshot of the user directory for one composer session.

    The directory is fetched from the backend on first use and kept until
    :meth:`refresh` is called explicitly.
    """

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend
        self._entries: list[DirectoryEntry] | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        """Whether a snapshot has been fetched."""
        return self._entries is not None

    async def entries(self) -> list[DirectoryEntry]:
        """Get the directory snapshot, fetching it on first use.

        Raises:
            DirectoryUnavailable: If the backend fetch fails.
        """
        async with self._lock:
            if self._entries is None:
                self._entries = await self._fetch()
            return self._entries

    async def refresh(self) -> list[DirectoryEntry]:
        """Replace the snapshot with a fresh fetch.

        On failure the previous snapshot is kept.

        Raises:
            DirectoryUnavailable: If the backend fetch fails.
        """
        async with self._lock:
            self._entries = await self._fetch()
            return self._entries

    async def search(self, prefix: str) -> list[DirectoryEntry]:
        """Search the snapshot for display names starting with ``prefix``."""
        return search_directory(await self.entries(), prefix)

    async def get(self, user_id: str) -> DirectoryEntry | None:
        """Look up an entry by user id in the snapshot."""
        for entry in await self.entries():
            if entry.user_id == user_id:
                return entry
        return None

    async def _fetch(self) -> list[DirectoryEntry]:
        try:
            entries = await self._backend.list_users()
        except BackendError as e:
            logger.warning("Failed to fetch user directory: %s", e)
            raise DirectoryUnavailable(f"User directory unavailable: {e}") from e

        logger.debug("Fetched user directory (%d entries)", len(entries))
        return entries
