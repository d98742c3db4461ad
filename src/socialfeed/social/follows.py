"""Follow graph operations and the suggested-people list."""

import logging

from socialfeed.backend.client import BackendClient
from socialfeed.errors import InvalidState
from socialfeed.social.models import SuggestedUser

logger = logging.getLogger(__name__)


class FollowService:
    """Follow, unfollow and list follow edges for users."""

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def following_ids(self, user_id: str) -> set[str]:
        """Ids of the users ``user_id`` follows."""
        return set(await self._backend.list_followees(user_id))

    async def follow(self, follower_id: str, followee_id: str) -> None:
        """Follow a user; following yourself is refused.

        Raises:
            InvalidState: If follower and followee are the same user.
        """
        if follower_id == followee_id:
            raise InvalidState("Users cannot follow themselves")
        await self._backend.follow(follower_id, followee_id)
        logger.info("%s followed %s", follower_id, followee_id)

    async def unfollow(self, follower_id: str, followee_id: str) -> None:
        """Stop following a user."""
        await self._backend.unfollow(follower_id, followee_id)
        logger.info("%s unfollowed %s", follower_id, followee_id)

    async def toggle(self, follower_id: str, followee_id: str) -> bool:
        """Flip the follow edge and return whether it now exists."""
        if followee_id in await self.following_ids(follower_id):
            await self.unfollow(follower_id, followee_id)
            return False
        await self.follow(follower_id, followee_id)
        return True

    async def suggested_users(self, user_id: str, limit: int = 5) -> list[SuggestedUser]:
        """The most recently joined users other than ``user_id``.

        The newest ``limit`` users are fetched and the current user is then
        removed, so at most ``limit`` entries come back.
        """
        recent = await self._backend.list_recent_users(limit)
        following = await self.following_ids(user_id)
        return [
            SuggestedUser(user=entry, following=entry.user_id in following)
            for entry in recent
            if entry.user_id != user_id
        ]
