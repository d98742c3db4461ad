"""Profile view and editing."""

from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import DirectoryEntry
from socialfeed.errors import InvalidState, UserNotFound
from socialfeed.social.models import Profile


class ProfileService:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def get_profile(self, email: str) -> Profile:
        """Load a user's profile with follow counts and their own posts.

        Raises:
            UserNotFound: If the email has no directory row.
        """
        user = await self._backend.get_user_by_email(email)
        if user is None:
            raise UserNotFound(f"User not found: {email}")

        return Profile(
            user=user,
            follower_count=await self._backend.count_followers(user.user_id),
            following_count=await self._backend.count_following(user.user_id),
            posts=await self._backend.list_posts_by_authors([user.user_id]),
        )

    async def update_profile(self, user_id: str, name: str, bio: str) -> DirectoryEntry:
        """Change the display name and bio of a user.

        Raises:
            InvalidState: If the new name is blank.
        """
        if not name.strip():
            raise InvalidState("Display name cannot be empty")
        return await self._backend.update_profile(user_id, name.strip(), bio)
