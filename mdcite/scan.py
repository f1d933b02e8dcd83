"""Marker discovery: inline links, superscript citations, reference section.

Every record produced here is derived from one snapshot of the document
text. Pending occurrences are re-found later by their textual shape via
`locate()`, never by offsets cached from the snapshot.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from mdcite.config import DEFAULT_CONFIG, CitationConfig

# Optional leading "!" so image syntax is consumed (and then skipped)
# instead of leaving its bracket part to be matched as a link.
LINK_PATTERN = re.compile(r"!?\[([^\[\]]+)\]\(([^)]+)\)")
SUP_TAG_PATTERN = re.compile(r"<sup>\d*</sup>")
ENTRY_PATTERN = re.compile(r"^\d+\.\s+(\S+)(?:\s+(.*))?$")
COMMENT_PATTERN = re.compile(r"^<!--\s*(.*?)\s*-->$", re.S)


class CitationError(Exception):
    """Base class for conversion failures."""


class MarkerConsistencyError(CitationError):
    """Superscript markers in the body disagree with the reference section."""

    def __init__(self, message: str, tags: int | None = None, entries: int | None = None):
        super().__init__(message)
        self.tags = tags
        self.entries = entries

    @classmethod
    def count_mismatch(cls, tags: int, entries: int) -> MarkerConsistencyError:
        return cls(
            f"Unmatched markdown link: {tags} <sup> marker(s) in the body "
            f"but {entries} reference entr{'y' if entries == 1 else 'ies'}",
            tags=tags,
            entries=entries,
        )


UnmatchedMarkerError = MarkerConsistencyError


@dataclass(frozen=True)
class ReferenceEntry:
    ordinal: int
    url: str
    text: str


@dataclass(frozen=True)
class ReferenceSection:
    """The heading plus entry lines that back the citation ordinals.

    `start`/`end` delimit the heading line through the last entry line
    (including its newline). Blank lines after the last entry are not
    part of the section.
    """

    heading: str
    level: int
    entries: list[ReferenceEntry]
    start: int
    end: int


@dataclass(frozen=True)
class LinkOccurrence:
    index: int
    text: str
    url: str
    raw: str

    def locate(self, text: str, start: int = 0) -> int:
        """Position of `raw` at or after `start`, never inside an image."""
        match = re.compile(r"(?<!!)" + re.escape(self.raw)).search(text, start)
        return match.start() if match else -1


@dataclass(frozen=True)
class CitationMatcher:
    """Re-finds a citation marker by shape in a text that keeps changing."""

    pattern: re.Pattern

    @classmethod
    def for_text(cls, text: str, config: CitationConfig = DEFAULT_CONFIG) -> CitationMatcher:
        # Group 1 keeps the body's own spelling of the text, line breaks included.
        words = r"\s+".join(re.escape(word) for word in text.split())
        prefix = (
            re.escape(config.text_open) + rf"\s*({words})\s*"
            + re.escape(config.text_close)
        )
        return cls(re.compile(rf"(?:{prefix})?<sup>\d*</sup>"))

    def match(self, text: str, start: int = 0) -> re.Match | None:
        return self.pattern.search(text, start)

    def locate(self, text: str, start: int = 0) -> int:
        match = self.match(text, start)
        return match.start() if match else -1


@dataclass(frozen=True)
class CitationOccurrence:
    index: int
    url: str
    text: str
    matcher: CitationMatcher

    def locate(self, text: str, start: int = 0) -> int:
        return self.matcher.locate(text, start)


@dataclass(frozen=True)
class Scan:
    """Everything one conversion needs from the current document text."""

    text: str
    links: list[LinkOccurrence] = field(default_factory=list)
    citations: list[CitationOccurrence] = field(default_factory=list)
    section: ReferenceSection | None = None


def scan_links(text: str) -> list[LinkOccurrence]:
    """Find `[text](url)` links in document order, skipping images."""
    links: list[LinkOccurrence] = []
    for match in LINK_PATTERN.finditer(text):
        if match.group(0).startswith("!"):
            continue
        links.append(LinkOccurrence(
            index=len(links),
            text=match.group(1),
            url=match.group(2),
            raw=match.group(0),
        ))
    return links


def count_sup_tags(text: str) -> int:
    """Count raw `<sup>N</sup>` tags, whether or not they parse as citations."""
    return len(SUP_TAG_PATTERN.findall(text))


def _heading_pattern(title: str) -> re.Pattern:
    return re.compile(rf"^(#{{1,6}})[^\n]*?{re.escape(title)}[^\n]*$", re.M)


def parse_entry(line: str, ordinal: int) -> ReferenceEntry | None:
    """Parse one `N. url <!--text-->` line, or None if it is not an entry."""
    match = ENTRY_PATTERN.match(line.strip())
    if match is None:
        return None
    url, cell = match.group(1), match.group(2)
    if cell is None:
        return ReferenceEntry(ordinal=ordinal, url=url, text=url)
    cell = cell.strip()
    comment = COMMENT_PATTERN.match(cell)
    return ReferenceEntry(
        ordinal=ordinal,
        url=url,
        text=comment.group(1) if comment else cell,
    )


def parse_reference_section(
    text: str, config: CitationConfig | None = None,
) -> ReferenceSection | None:
    """Locate the reference section and parse its entries.

    The section runs from the first heading containing the section title
    through the following entry lines. Blank lines between entries are
    allowed; any other line (a new heading included) ends it.
    """
    config = config or DEFAULT_CONFIG
    heading = _heading_pattern(config.section_title).search(text)
    if heading is None:
        return None

    pos = heading.end()
    if text.startswith("\n", pos):
        pos += 1
    end = pos

    entries: list[ReferenceEntry] = []
    for line in text[pos:].splitlines(keepends=True):
        if not line.strip():
            pos += len(line)
            continue
        entry = parse_entry(line, len(entries) + 1)
        if entry is None:
            break
        entries.append(entry)
        pos += len(line)
        end = pos

    return ReferenceSection(
        heading=heading.group(0).rstrip("\r"),
        level=len(heading.group(1)),
        entries=entries,
        start=heading.start(),
        end=end,
    )


def body_text(text: str, section: ReferenceSection | None) -> str:
    """The document text with the reference section cut out."""
    if section is None:
        return text
    return text[:section.start] + text[section.end:]


def scan_citations(
    text: str,
    config: CitationConfig | None = None,
    section: ReferenceSection | None = None,
) -> list[CitationOccurrence]:
    """Pair each body `<sup>` marker with its reference entry, in order.

    Raises:
        MarkerConsistencyError: the number of markers differs from the
            number of reference entries.
    """
    config = config or DEFAULT_CONFIG
    if section is None:
        section = parse_reference_section(text, config)
    entries = section.entries if section else []
    tags = count_sup_tags(body_text(text, section))

    if tags != len(entries):
        raise MarkerConsistencyError.count_mismatch(tags, len(entries))

    return [
        CitationOccurrence(
            index=i,
            url=entry.url,
            text=entry.text,
            matcher=CitationMatcher.for_text(entry.text, config),
        )
        for i, entry in enumerate(entries)
    ]


def scan(text: str, config: CitationConfig | None = None) -> Scan:
    """Scan a document, running the consistency check first."""
    config = config or DEFAULT_CONFIG
    section = parse_reference_section(text, config)
    citations = scan_citations(text, config, section)
    return Scan(
        text=text,
        links=scan_links(text),
        citations=citations,
        section=section,
    )
