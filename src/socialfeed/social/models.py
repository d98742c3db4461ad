"""Response models for feed, follow and profile views."""

from pydantic import BaseModel, Field

from socialfeed.backend.models import DirectoryEntry, PostRecord
from socialfeed.mentions.models import RenderedSegment


class FeedPost(BaseModel):
    """A post ready for display in the feed."""

    post: PostRecord
    author: DirectoryEntry | None = None
    mentions: list[DirectoryEntry] = Field(default_factory=list)
    segments: list[RenderedSegment] = Field(default_factory=list)
    content_html: str = ""


class SuggestedUser(BaseModel):
    """A user offered in the "suggested people" list."""

    user: DirectoryEntry
    following: bool = False


class Profile(BaseModel):
    """A user's profile page."""

    user: DirectoryEntry
    follower_count: int = 0
    following_count: int = 0
    posts: list[PostRecord] = Field(default_factory=list)
