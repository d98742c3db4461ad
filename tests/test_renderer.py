"""Tests for mention rendering."""

from socialfeed.mentions import ConfirmedMention, RenderedSegment, render, segments_text
from socialfeed.mentions.renderer import mention_names, to_html

ALICE = ConfirmedMention(user_id="u1", display_name="Alice")
AL = ConfirmedMention(user_id="u2", display_name="Al")
BOB = ConfirmedMention(user_id="u3", display_name="Bob")


class TestRender:
    """Tests for render."""

    def test_longest_name_first(self):
        """Test that '@Alice' is not split by the shorter '@Al'."""
        segments = render("hi @Alice and @Al", [ALICE, AL])

        assert segments == [
            RenderedSegment("hi ", False),
            RenderedSegment("@Alice", True),
            RenderedSegment(" and ", False),
            RenderedSegment("@Al", True),
        ]

    def test_order_of_mentions_does_not_matter_for_prefixes(self):
        """Test that listing the short name first gives the same result."""
        assert render("hi @Alice and @Al", [AL, ALICE]) == render("hi @Alice and @Al", [ALICE, AL])

    def test_all_occurrences(self):
        """Test that every occurrence is highlighted."""
        segments = render("@Bob @Bob!", [BOB])

        assert segments == [
            RenderedSegment("@Bob", True),
            RenderedSegment(" ", False),
            RenderedSegment("@Bob", True),
            RenderedSegment("!", False),
        ]

    def test_substring_match_is_not_token_bounded(self):
        """Test that a mention inside a longer word still matches."""
        segments = render("@Bobby", [BOB])
        assert segments == [RenderedSegment("@Bob", True), RenderedSegment("by", False)]

    def test_empty_content(self):
        """Test empty content."""
        assert render("", [ALICE]) == [RenderedSegment("", False)]

    def test_no_mentions(self):
        """Test that content without mentions is one plain segment."""
        assert render("just text", []) == [RenderedSegment("just text", False)]

    def test_mentions_without_occurrences(self):
        """Test mentions that never appear in the text."""
        assert render("hello there", [ALICE]) == [RenderedSegment("hello there", False)]

    def test_name_without_at_is_plain(self):
        """Test that a bare name is not highlighted."""
        assert render("Alice said hi", [ALICE]) == [RenderedSegment("Alice said hi", False)]

    def test_duplicate_mentions(self):
        """Test that duplicate confirmed mentions do not duplicate segments."""
        assert render("@Bob", [BOB, BOB]) == [RenderedSegment("@Bob", True)]

    def test_markup_is_opaque(self):
        """Test that markup in content is left as text."""
        content = "<b>@Bob</b>"
        segments = render(content, [BOB])

        assert segments == [
            RenderedSegment("<b>", False),
            RenderedSegment("@Bob", True),
            RenderedSegment("</b>", False),
        ]

    def test_adjacent_mentions(self):
        """Test mentions with nothing between them."""
        segments = render("@Bob@Al", [BOB, AL])
        assert segments == [RenderedSegment("@Bob", True), RenderedSegment("@Al", True)]

    def test_equal_length_names_keep_first_appearance(self):
        """Test that equal-length names are all matched."""
        ab = ConfirmedMention(user_id="a", display_name="ab")
        bc = ConfirmedMention(user_id="b", display_name="bc")
        assert render("@ab@bc", [bc, ab]) == [
            RenderedSegment("@ab", True),
            RenderedSegment("@bc", True),
        ]

    def test_empty_display_name_ignored(self):
        """Test that an empty name never highlights a bare '@'."""
        empty = ConfirmedMention(user_id="x", display_name="")
        assert render("a @ b", [empty]) == [RenderedSegment("a @ b", False)]


class TestRenderInvariants:
    """Concatenation and idempotence over a range of inputs."""

    CASES = [
        ("", []),
        ("hi @Alice and @Al", [ALICE, AL]),
        ("@Al@Alice@Al", [AL, ALICE]),
        ("@@Bob @Bo", [BOB]),
        ("no mentions at all", [ALICE, BOB]),
        ("@Alice@Alice", [ALICE]),
    ]

    def test_concatenation_equals_content(self):
        for content, mentions in self.CASES:
            assert segments_text(render(content, mentions)) == content

    def test_idempotent(self):
        for content, mentions in self.CASES:
            first = render(content, mentions)
            assert render(segments_text(first), mentions) == first


class TestPresentationHelpers:
    """Tests for mention_names and to_html."""

    def test_mention_names(self):
        segments = render("hi @Alice and @Al", [ALICE, AL])
        assert mention_names(segments) == ["Alice", "Al"]

    def test_to_html_escapes_and_wraps(self):
        segments = render("<i>@Bob</i>", [BOB])
        assert to_html(segments) == '&lt;i&gt;<span class="mention">@Bob</span>&lt;/i&gt;'

    def test_to_html_custom_class(self):
        segments = render("@Bob", [BOB])
        assert to_html(segments, css_class="hl") == '<span class="hl">@Bob</span>'
