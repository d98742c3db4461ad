"""Value types for mention composition and rendering."""

from dataclasses import dataclass


@dataclass
class TextBuffer:
    """The plain-text content being composed and the caret position in it."""

    content: str = ""
    caret: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.caret <= len(self.content):
            raise ValueError(
                f"caret {self.caret} outside content of length {len(self.content)}"
            )


@dataclass(frozen=True)
class MentionCandidate:
    """An in-progress ``@name`` token ending at the caret.

    Attributes:
        text: The token text including the leading ``@``.
        start: Offset of the ``@`` in the content.
        end: Offset just past the token (the caret).
    """

    text: str
    start: int
    end: int

    @property
    def query(self) -> str:
        """The token text without its leading ``@``."""
        return self.text[1:]


@dataclass(frozen=True)
class ConfirmedMention:
    """A mention committed by selecting a user from the directory."""

    user_id: str
    display_name: str


@dataclass(frozen=True)
class RenderedSegment:
    """A contiguous run of text tagged as mention or plain text."""

    text: str
    is_mention: bool = False


@dataclass(frozen=True)
class CommitResult:
    """Outcome of committing a selected user into the text buffer."""

    new_content: str
    new_caret: int
    mention: ConfirmedMention
