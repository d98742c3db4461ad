"""Mention tokenizer, renderer and directory lookup."""

from socialfeed.mentions.directory import DirectoryCache, search_directory
from socialfeed.mentions.models import (
    CommitResult,
    ConfirmedMention,
    MentionCandidate,
    RenderedSegment,
    TextBuffer,
)
from socialfeed.mentions.renderer import mention_names, render, segments_text, to_html
from socialfeed.mentions.tokenizer import commit_mention, detect_candidate

__all__ = [
    "CommitResult",
    "ConfirmedMention",
    "DirectoryCache",
    "MentionCandidate",
    "RenderedSegment",
    "TextBuffer",
    "commit_mention",
    "detect_candidate",
    "mention_names",
    "render",
    "search_directory",
    "segments_text",
    "to_html",
]
