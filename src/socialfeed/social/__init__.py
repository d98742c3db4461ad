"""Feed, follow graph and profile services."""

from socialfeed.social.accounts import ensure_user
from socialfeed.social.feed import FeedService
from socialfeed.social.follows import FollowService
from socialfeed.social.models import FeedPost, Profile, SuggestedUser
from socialfeed.social.profile import ProfileService

__all__ = [
    "FeedPost",
    "FeedService",
    "FollowService",
    "Profile",
    "ProfileService",
    "SuggestedUser",
    "ensure_user",
]
