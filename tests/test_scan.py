"""Tests for mdcite.scan module."""

import pytest

from mdcite.config import CitationConfig
from mdcite.scan import (
    CitationMatcher,
    MarkerConsistencyError,
    ReferenceEntry,
    UnmatchedMarkerError,
    count_sup_tags,
    parse_entry,
    parse_reference_section,
    scan,
    scan_citations,
    scan_links,
)

OPEN = "<!--begin sup text-->"
CLOSE = "<!--end sup text-->"


class TestScanLinks:
    def test_links_in_order(self):
        links = scan_links("See [A](http://a.com) and [B](http://b.com).")
        assert [(l.index, l.text, l.url) for l in links] == [
            (0, "A", "http://a.com"),
            (1, "B", "http://b.com"),
        ]
        assert links[0].raw == "[A](http://a.com)"

    def test_images_skipped(self):
        links = scan_links("See ![alt](img.png) and [real](http://x).")
        assert len(links) == 1
        assert links[0].text == "real"
        assert links[0].index == 0

    def test_no_links(self):
        assert scan_links("Plain text with no links at all.") == []

    def test_locate_skips_image_with_same_brackets(self):
        text = "![a](u) and [a](u)"
        link = scan_links(text)[0]
        assert link.locate(text) == 12

    def test_locate_from_offset(self):
        text = "[A](u) and [A](u)"
        link = scan_links(text)[1]
        assert link.locate(text) == 0
        assert link.locate(text, 1) == 11
        assert link.locate(text, 12) == -1


class TestCountSupTags:
    def test_counts_every_tag(self):
        assert count_sup_tags("a<sup>1</sup> b<sup></sup> c<sup>12</sup>") == 3

    def test_ignores_other_tags(self):
        assert count_sup_tags("x<sub>1</sub> <sup>a</sup>") == 0


class TestParseEntry:
    def test_comment_text(self):
        entry = parse_entry("1. http://a.com <!--Alpha beta-->", 4)
        assert entry == ReferenceEntry(ordinal=4, url="http://a.com", text="Alpha beta")

    def test_plain_text(self):
        entry = parse_entry("3. http://a.com Alpha", 1)
        assert entry.text == "Alpha"

    def test_missing_text_defaults_to_url(self):
        entry = parse_entry("  2.   http://a.com  ", 1)
        assert entry.url == "http://a.com"
        assert entry.text == "http://a.com"

    def test_not_an_entry(self):
        assert parse_entry("Some paragraph.", 1) is None
        assert parse_entry("## Heading", 1) is None


class TestParseReferenceSection:
    def test_absent(self):
        assert parse_reference_section("# Doc\n\nNo section here.\n") is None

    def test_parses_entries_and_span(self):
        text = (
            "# Doc\n\nBody<sup>1</sup>\n\n"
            "## 文内链接\n\n"
            "1. http://a <!--Alpha beta-->\n"
            "2. http://b\n"
            "\n## Next\n"
        )
        section = parse_reference_section(text)
        assert section.level == 2
        assert section.heading == "## 文内链接"
        assert section.entries == [
            ReferenceEntry(1, "http://a", "Alpha beta"),
            ReferenceEntry(2, "http://b", "http://b"),
        ]
        assert text[section.start:section.end] == (
            "## 文内链接\n\n1. http://a <!--Alpha beta-->\n2. http://b\n"
        )

    def test_ordinals_follow_position(self):
        text = "# 文内链接\n\n1. u1 <!--A-->\n1. u2 <!--B-->\n1. u3 <!--C-->\n"
        section = parse_reference_section(text)
        assert [e.ordinal for e in section.entries] == [1, 2, 3]

    def test_stops_at_paragraph(self):
        text = "# 文内链接\n1. http://a <!--A-->\nTrailing paragraph\n"
        section = parse_reference_section(text)
        assert len(section.entries) == 1
        assert text[section.end:] == "Trailing paragraph\n"

    def test_empty_section(self):
        text = "Body\n\n# 文内链接\n"
        section = parse_reference_section(text)
        assert section.entries == []
        assert text[section.start:section.end] == "# 文内链接\n"

    def test_crlf_heading(self):
        section = parse_reference_section("# 文内链接\r\n\r\n1. u <!--A-->\r\n")
        assert section.heading == "# 文内链接"
        assert section.entries == [ReferenceEntry(1, "u", "A")]

    def test_custom_title(self):
        config = CitationConfig(section_title="References")
        text = "Body\n\n## References\n\n1. http://a <!--A-->\n"
        assert parse_reference_section(text) is None
        section = parse_reference_section(text, config)
        assert section.entries[0].url == "http://a"


class TestCitationMatcher:
    def test_matches_embedded_text(self):
        text = f"x {OPEN}A{CLOSE}<sup>3</sup> y"
        matcher = CitationMatcher.for_text("A")
        assert matcher.locate(text) == 2
        assert matcher.match(text).group(0) == f"{OPEN}A{CLOSE}<sup>3</sup>"

    def test_matches_bare_tag(self):
        matcher = CitationMatcher.for_text("A")
        assert matcher.locate("x <sup>3</sup>") == 2

    def test_search_starts_at_offset(self):
        text = "<sup>1</sup> <sup>2</sup>"
        matcher = CitationMatcher.for_text("A")
        assert matcher.locate(text, 1) == 13
        assert matcher.locate(text, 14) == -1

    def test_text_across_lines(self):
        text = f"{OPEN}two\nwords{CLOSE}<sup>1</sup>"
        match = CitationMatcher.for_text("two words").match(text)
        assert match.group(0) == text
        assert match.group(1) == "two\nwords"

    def test_text_is_escaped(self):
        text = f"{OPEN}a.b (c)*{CLOSE}<sup>1</sup>"
        matcher = CitationMatcher.for_text("a.b (c)*")
        assert matcher.match(text).group(0) == text


class TestScanCitations:
    def test_no_markers_no_section(self):
        assert scan_citations("Plain text.") == []

    def test_pairs_markers_with_entries(self):
        text = (
            f"One{OPEN}A{CLOSE}<sup>1</sup> two<sup>2</sup>\n\n"
            "# 文内链接\n\n1. u1 <!--A-->\n1. u2 <!--B-->\n"
        )
        citations = scan_citations(text)
        assert [(c.index, c.url, c.text) for c in citations] == [
            (0, "u1", "A"),
            (1, "u2", "B"),
        ]

    def test_more_entries_than_markers(self):
        text = (
            "x<sup>1</sup> y<sup>2</sup>\n\n"
            "# 文内链接\n\n1. a <!--A-->\n1. b <!--B-->\n1. c <!--C-->\n"
        )
        with pytest.raises(MarkerConsistencyError) as exc_info:
            scan_citations(text)
        assert exc_info.value.tags == 2
        assert exc_info.value.entries == 3

    def test_markers_without_section(self):
        with pytest.raises(MarkerConsistencyError):
            scan_citations("Orphan<sup>1</sup>")

    def test_alias(self):
        assert UnmatchedMarkerError is MarkerConsistencyError


class TestScan:
    def test_collects_everything(self):
        text = "[L](ul) and x<sup>1</sup>\n\n# 文内链接\n\n1. u1 <!--A-->\n"
        result = scan(text)
        assert result.text == text
        assert [l.text for l in result.links] == ["L"]
        assert [c.text for c in result.citations] == ["A"]
        assert result.section.level == 1

    def test_consistency_checked(self):
        with pytest.raises(MarkerConsistencyError):
            scan("[L](ul) x<sup>1</sup>")
