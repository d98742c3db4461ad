"""@mention detection and commit for the post composer.

Detection runs on every keystroke, so it is a single backwards scan from the
caret with no regex compilation or directory access.
"""

import logging

from socialfeed.backend.models import DirectoryEntry
from socialfeed.errors import InvalidState
from socialfeed.mentions.models import CommitResult, ConfirmedMention, MentionCandidate

logger = logging.getLogger(__name__)

MENTION_PREFIX = "@"


def _check_caret(content: str, caret: int) -> None:
    if not 0 <= caret <= len(content):
        raise ValueError(f"caret {caret} outside content of length {len(content)}")


def detect_candidate(content: str, caret: int) -> MentionCandidate | None:
    """Detect an in-progress @mention ending at the caret.

    The last whitespace-delimited run before the caret is a candidate when it
    starts with ``@`` and has at least one character after it. Additional
    ``@`` characters inside the run are kept literally.

    Examples:
        ("hello @al", 9) -> MentionCandidate("@al", 6, 9)
        ("hello @", 7) -> None (nothing typed after the @)
        ("hello @al ", 10) -> None (caret follows whitespace)
        ("mail@al", 7) -> None (run does not start with @)
        ("@a@b", 4) -> MentionCandidate("@a@b", 0, 4)

    Args:
        content: The full text being composed.
        caret: The caret offset into ``content``.

    Returns:
        The candidate, or None when no mention is being typed.

    Raises:
        ValueError: If the caret lies outside the content.
    """
    _check_caret(content, caret)

    start = caret
    while start > 0 and not content[start - 1].isspace():
        start -= 1

    run = content[start:caret]
    if len(run) < 2 or not run.startswith(MENTION_PREFIX):
        return None

    return MentionCandidate(text=run, start=start, end=caret)


def commit_mention(content: str, caret: int, selected: DirectoryEntry) -> CommitResult:
    """Replace the active candidate with the selected user's display name.

    The span from the last ``@`` before the caret up to the caret becomes
    ``@{display_name} `` and the caret moves just past the trailing space.
    Text after the caret is preserved.

    Args:
        content: The full text being composed.
        caret: The caret offset into ``content``.
        selected: The directory entry chosen from the suggestions.

    Returns:
        The new content, the new caret and the mention to record.

    Raises:
        InvalidState: If no ``@`` precedes the caret.
        ValueError: If the caret lies outside the content.
    """
    _check_caret(content, caret)

    at = content.rfind(MENTION_PREFIX, 0, caret)
    if at < 0:
        raise InvalidState(f"No active mention before caret offset {caret}")

    inserted = f"{MENTION_PREFIX}{selected.display_name} "
    new_content = content[:at] + inserted + content[caret:]
    mention = ConfirmedMention(user_id=selected.user_id, display_name=selected.display_name)

    logger.debug("Committed mention of %s at offset %d", selected.user_id, at)

    return CommitResult(
        new_content=new_content,
        new_caret=at + len(inserted),
        mention=mention,
    )
