"""Mention-aware segmentation of post text for display.

Rendering never changes the text: it splits it into segments and tags the
ones that are mentions. Presentation code decides how to highlight them.
"""

import html
from collections.abc import Iterable, Sequence

from socialfeed.mentions.models import ConfirmedMention, RenderedSegment
from socialfeed.mentions.tokenizer import MENTION_PREFIX

MENTION_CSS_CLASS = "mention"


def _ordered_names(mentions: Iterable[ConfirmedMention]) -> list[str]:
    """Distinct display names, longest first, ties in first-appearance order."""
    seen: dict[str, None] = {}
    for mention in mentions:
        if mention.display_name:
            seen.setdefault(mention.display_name, None)
    # sorted() is stable, so equal lengths keep first-appearance order
    return sorted(seen, key=len, reverse=True)


def render(content: str, mentions: Sequence[ConfirmedMention]) -> list[RenderedSegment]:
    """Split content into plain and mention segments.

    Every literal occurrence of ``@{display_name}`` is a mention, matched as a
    plain substring rather than a whole token. Longer names claim their
    occurrences first so that ``@Al`` never splits an ``@Alice``; an
    occurrence overlapping text already claimed by a longer name is skipped.

    Examples:
        render("hi @Alice and @Al", [Alice, Al]) ->
            ["hi ", "@Alice"*, " and ", "@Al"*]   (* = mention)
        render("no mentions", []) -> ["no mentions"]
        render("", [Alice]) -> [""]

    Args:
        content: The raw post text.
        mentions: The confirmed mentions of the post, duplicates allowed.

    Returns:
        Ordered segments whose texts concatenate back to ``content``.
    """
    # claimed[i] is True when content[i] belongs to a claimed mention
    claimed = [False] * len(content)
    spans: list[tuple[int, int]] = []

    for name in _ordered_names(mentions):
        token = MENTION_PREFIX + name
        pos = content.find(token)
        while pos >= 0:
            end = pos + len(token)
            if any(claimed[pos:end]):
                pos = content.find(token, pos + 1)
                continue
            claimed[pos:end] = [True] * len(token)
            spans.append((pos, end))
            pos = content.find(token, end)

    if not spans:
        return [RenderedSegment(text=content, is_mention=False)]

    segments: list[RenderedSegment] = []
    cursor = 0
    for start, end in sorted(spans):
        if start > cursor:
            segments.append(RenderedSegment(text=content[cursor:start], is_mention=False))
        segments.append(RenderedSegment(text=content[start:end], is_mention=True))
        cursor = end
    if cursor < len(content):
        segments.append(RenderedSegment(text=content[cursor:], is_mention=False))

    return segments


def segments_text(segments: Iterable[RenderedSegment]) -> str:
    """Join segments back into the raw text they were rendered from."""
    return "".join(segment.text for segment in segments)


def mention_names(segments: Iterable[RenderedSegment]) -> list[str]:
    """Display names highlighted in the segments, in text order."""
    return [segment.text[len(MENTION_PREFIX) :] for segment in segments if segment.is_mention]


def to_html(segments: Iterable[RenderedSegment], css_class: str = MENTION_CSS_CLASS) -> str:
    """Render segments as escaped HTML with mention segments wrapped in a span.

    All segment text is escaped, so markup typed into a post is shown
    literally instead of being interpreted.
    """
    parts: list[str] = []
    for segment in segments:
        text = html.escape(segment.text)
        if segment.is_mention:
            parts.append(f'<span class="{html.escape(css_class)}">{text}</span>')
        else:
            parts.append(text)
    return "".join(parts)
