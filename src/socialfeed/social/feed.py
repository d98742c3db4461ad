"""News feed assembly: posts from followed users, newest first."""

import logging

from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import DirectoryEntry, PostRecord
from socialfeed.errors import UserNotFound
from socialfeed.mentions import ConfirmedMention, render, to_html
from socialfeed.social.models import FeedPost

logger = logging.getLogger(__name__)


class FeedService:
    """Builds the feed of a user from the posts of the users they follow."""

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def load_feed(self, email: str) -> list[FeedPost]:
        """Load the feed for the user with the given email.

        Each post carries its author, its mentioned users (one entry per
        user) and its content rendered into mention segments.

        Raises:
            UserNotFound: If the email has no directory row.
            BackendError: If a backend read fails.
        """
        user = await self._backend.get_user_by_email(email)
        if user is None:
            raise UserNotFound(f"User not found: {email}")

        followee_ids = await self._backend.list_followees(user.user_id)
        if not followee_ids:
            return []

        posts = await self._backend.list_posts_by_authors(followee_ids)

        mentioned_ids = list(dict.fromkeys(uid for post in posts for uid in post.mention_user_ids))
        mentioned = {
            entry.user_id: entry for entry in await self._backend.list_users_by_ids(mentioned_ids)
        }

        logger.debug(
            "Loaded feed for %s (followees=%d, posts=%d)",
            user.user_id,
            len(followee_ids),
            len(posts),
        )
        return [self._build(post, mentioned) for post in posts]

    @staticmethod
    def _build(post: PostRecord, mentioned: dict[str, DirectoryEntry]) -> FeedPost:
        users = [mentioned[uid] for uid in dict.fromkeys(post.mention_user_ids) if uid in mentioned]
        segments = render(
            post.content,
            [ConfirmedMention(user_id=u.user_id, display_name=u.display_name) for u in users],
        )
        return FeedPost(
            post=post,
            author=post.author,
            mentions=users,
            segments=segments,
            content_html=to_html(segments),
        )
