"""Composer session: the state behind one open post composer.

All mutations happen on the event loop in input order. The only awaits are
directory lookups and submission, and both are written so that whatever
the user typed in the meantime wins: stale suggestions are dropped and a
second submission is refused while one is in flight.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from socialfeed.backend.client import BackendClient, BackendError
from socialfeed.backend.models import DirectoryEntry, Identity
from socialfeed.errors import DirectoryUnavailable, InvalidState, SubmissionFailed
from socialfeed.mentions import (
    CommitResult,
    ConfirmedMention,
    DirectoryCache,
    MentionCandidate,
    RenderedSegment,
    TextBuffer,
    commit_mention,
    detect_candidate,
    render,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGES = 4


@dataclass(frozen=True)
class PendingImage:
    """An image attached to the composer but not uploaded yet."""

    filename: str
    data: bytes


class ComposerSession:
    """State of one post composer, from opening to submit or cancel."""

    def __init__(
        self,
        session_id: str,
        identity: Identity,
        backend: BackendClient,
        directory: DirectoryCache | None = None,
        max_images: int = DEFAULT_MAX_IMAGES,
    ) -> None:
        """Initialize an empty composer.

        Args:
            session_id: Identifier of this composer session.
            identity: The authenticated author.
            backend: Client for the hosted backend.
            directory: Directory snapshot for suggestions. A new
                session-scoped cache is created when omitted.
            max_images: Number of images that may be attached at once.
        """
        self.session_id = session_id
        self.identity = identity
        self._backend = backend
        self.directory = directory or DirectoryCache(backend)
        self.max_images = max_images

        self.title = ""
        self.buffer = TextBuffer()
        self.mentions: list[ConfirmedMention] = []
        self.images: list[PendingImage] = []

        self._candidate: MentionCandidate | None = None
        self._suggestions: list[DirectoryEntry] = []
        self._submitting = False

        self.created_at = datetime.now()
        self.last_activity = self.created_at

    @property
    def candidate(self) -> MentionCandidate | None:
        """The mention currently being typed, if any."""
        return self._candidate

    @property
    def suggestions(self) -> list[DirectoryEntry]:
        """Suggestions for the current candidate."""
        return list(self._suggestions)

    @property
    def submitting(self) -> bool:
        """Whether a submission is in flight."""
        return self._submitting

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = datetime.now()

    def is_expired(self, timeout_minutes: int) -> bool:
        """Check if the session has been idle longer than the timeout."""
        return datetime.now() > self.last_activity + timedelta(minutes=timeout_minutes)

    def set_title(self, title: str) -> None:
        """Replace the post title."""
        self.title = title

    def update(self, content: str, caret: int) -> MentionCandidate | None:
        """Apply a keystroke: replace the buffer and re-detect the candidate.

        Suggestions for a previous candidate are cleared as soon as the
        candidate changes.

        Raises:
            ValueError: If the caret lies outside the content.
        """
        self.buffer = TextBuffer(content=content, caret=caret)
        candidate = detect_candidate(content, caret)
        if candidate != self._candidate:
            self._suggestions = []
        self._candidate = candidate
        return candidate

    async def suggest(self) -> list[DirectoryEntry] | None:
        """Look up suggestions for the current candidate.

        A directory failure produces an empty list rather than an error so
        typing is never blocked. If the candidate changes while the lookup is
        in flight, the results are discarded.

        Returns:
            The suggestions applied, or None if they were superseded.
        """
        candidate = self._candidate
        if candidate is None:
            self._suggestions = []
            return []

        try:
            results = await self.directory.search(candidate.query)
        except DirectoryUnavailable as e:
            logger.warning("No suggestions for %r: %s", candidate.text, e)
            results = []

        if candidate != self._candidate:
            logger.debug("Dropping stale suggestions for %r", candidate.text)
            return None

        self._suggestions = results
        return list(results)

    def select(self, entry: DirectoryEntry) -> CommitResult:
        """Commit a suggestion into the buffer and record the mention.

        Raises:
            InvalidState: If no ``@`` precedes the caret.
        """
        result = commit_mention(self.buffer.content, self.buffer.caret, entry)
        self.buffer = TextBuffer(content=result.new_content, caret=result.new_caret)
        self.mentions.append(result.mention)
        self._candidate = None
        self._suggestions = []
        return result

    async def select_user(self, user_id: str) -> CommitResult:
        """Commit the user with the given id, from suggestions or the directory.

        Raises:
            InvalidState: If the user is unknown or no ``@`` precedes the caret.
        """
        entry = next((e for e in self._suggestions if e.user_id == user_id), None)
        if entry is None:
            try:
                entry = await self.directory.get(user_id)
            except DirectoryUnavailable as e:
                raise InvalidState(f"Cannot resolve user {user_id}: {e}") from e
        if entry is None:
            raise InvalidState(f"User {user_id} is not in the directory")
        return self.select(entry)

    def preview(self) -> list[RenderedSegment]:
        """Render the current buffer with its mentions highlighted."""
        return render(self.buffer.content, self.mentions)

    def check_image_capacity(self) -> None:
        """Raise InvalidState if no further image can be attached."""
        if len(self.images) >= self.max_images:
            raise InvalidState(f"At most {self.max_images} images can be attached")

    def add_image(self, filename: str, data: bytes) -> int:
        """Attach an image and return the number of attached images.

        Raises:
            ValueError: If the filename is empty.
            InvalidState: If the composer already holds ``max_images`` images.
        """
        if not filename:
            raise ValueError("Image filename is required")
        self.check_image_capacity()
        self.images.append(PendingImage(filename=filename, data=data))
        return len(self.images)

    def remove_image(self, index: int) -> None:
        """Detach the image at ``index``.

        Raises:
            InvalidState: If there is no image at that position.
        """
        if not 0 <= index < len(self.images):
            raise InvalidState(f"No attached image at position {index}")
        del self.images[index]

    def reset(self) -> None:
        """Clear everything the user composed."""
        self.title = ""
        self.buffer = TextBuffer()
        self.mentions = []
        self.images = []
        self._candidate = None
        self._suggestions = []

    def _clear_submitted(
        self,
        title: str,
        content: str,
        mentions: list[ConfirmedMention],
        images: list[PendingImage],
    ) -> None:
        """Clear what was just posted, keeping edits made while it was in flight."""
        if (
            self.title == title
            and self.buffer.content == content
            and self.mentions == mentions
            and self.images == images
        ):
            self.reset()
            return

        logger.info(
            "Composer edited during submission, keeping edits (session_id=%s)",
            self.session_id,
        )
        if self.title == title:
            self.title = ""
        if self.buffer.content == content and self.mentions == mentions:
            self.buffer = TextBuffer()
            self.mentions = []
            self._candidate = None
            self._suggestions = []
        submitted = {id(image) for image in images}
        self.images = [image for image in self.images if id(image) not in submitted]

    async def submit(self) -> str:
        """Submit the composed post.

        Writes happen in order: the post row, then each image upload and its
        ``post_images`` row, then one mention row per confirmed mention. Any
        failure fails the whole submission; rows already written are left in
        place and the composer keeps its content so the user can retry.
        On success the submitted title, text and images are cleared; anything
        edited while the submission was in flight is kept.

        Returns:
            The id of the created post.

        Raises:
            InvalidState: If a submission is already in flight or the title
                or content is empty.
            SubmissionFailed: If any backend step fails.
        """
        if self._submitting:
            raise InvalidState("A submission is already in progress")
        if not self.title.strip() or not self.buffer.content.strip():
            raise InvalidState("Title and content are required")

        title = self.title
        content = self.buffer.content
        mentions = list(self.mentions)
        images = list(self.images)
        post_id: str | None = None

        self._submitting = True
        try:
            author = await self._backend.get_user_by_email(self.identity.email)
            if author is None:
                raise SubmissionFailed("Error creating post: User not found")

            post_id = await self._backend.create_post(title, content, author.user_id)

            for image in images:
                image_url = await self._backend.upload_image(image.data, image.filename)
                await self._backend.add_post_image(post_id, image_url)

            for mention in mentions:
                await self._backend.add_mention(post_id, mention.user_id)
        except BackendError as e:
            logger.error(
                "Submission failed (session_id=%s, post_id=%s): %s",
                self.session_id,
                post_id,
                e,
            )
            raise SubmissionFailed(f"Error creating post: {e}", post_id=post_id, cause=e) from e
        except SubmissionFailed:
            raise
        except Exception as e:
            logger.exception(
                "Unexpected submission error (session_id=%s, post_id=%s)",
                self.session_id,
                post_id,
            )
            raise SubmissionFailed(f"Error creating post: {e}", post_id=post_id, cause=e) from e
        finally:
            self._submitting = False

        logger.info(
            "Created post %s (session_id=%s, images=%d, mentions=%d)",
            post_id,
            self.session_id,
            len(images),
            len(mentions),
        )
        self._clear_submitted(title, content, mentions, images)
        return post_id
