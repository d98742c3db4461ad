"""Request and response models for the HTTP API."""

from typing import Annotated

from pydantic import BaseModel, Field

from socialfeed.backend.models import DirectoryEntry
from socialfeed.composer import ComposerSession
from socialfeed.mentions import ConfirmedMention, MentionCandidate, RenderedSegment, to_html

# Maximum post content length to prevent oversized payloads
MAX_CONTENT_LENGTH = 10000


class TextUpdate(BaseModel):
    """A keystroke: the full composer content and the caret position."""

    content: Annotated[str, Field(max_length=MAX_CONTENT_LENGTH)]
    caret: Annotated[int, Field(ge=0)]


class TitleUpdate(BaseModel):
    title: Annotated[str, Field(max_length=300)]


class MentionSelect(BaseModel):
    user_id: Annotated[str, Field(min_length=1)]


class ProfileUpdate(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=200)]
    bio: Annotated[str, Field(max_length=2000)] = ""


class ComposerView(BaseModel):
    """Snapshot of a composer session returned after every change."""

    session_id: str
    title: str
    content: str
    caret: int
    candidate: MentionCandidate | None = None
    mentions: list[ConfirmedMention] = Field(default_factory=list)
    segments: list[RenderedSegment] = Field(default_factory=list)
    content_html: str = ""
    image_count: int = 0
    submitting: bool = False

    @classmethod
    def from_session(cls, session: ComposerSession) -> "ComposerView":
        """Build the view of a session, rendering its preview."""
        segments = session.preview()
        return cls(
            session_id=session.session_id,
            title=session.title,
            content=session.buffer.content,
            caret=session.buffer.caret,
            candidate=session.candidate,
            mentions=list(session.mentions),
            segments=segments,
            content_html=to_html(segments),
            image_count=len(session.images),
            submitting=session.submitting,
        )


class SuggestionsView(BaseModel):
    """Directory suggestions for the current candidate.

    ``stale`` is set when the candidate changed while the lookup ran and the
    results were discarded.
    """

    candidate: MentionCandidate | None = None
    suggestions: list[DirectoryEntry] = Field(default_factory=list)
    stale: bool = False


class SubmitResult(BaseModel):
    post_id: str
