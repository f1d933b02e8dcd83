"""Link <-> superscript citation conversion.

Converts inline markdown links to numbered superscript citations:
    [text](url)  ->  <!--begin sup text-->text<!--end sup text--><sup>1</sup>
    ...
    # 文内链接

    1. url <!--text-->

and back again. Links and existing citations are consumed in document
order by a two-pointer merge, so ordinals always follow the text.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

from mdcite import section
from mdcite.config import DEFAULT_CONFIG, CitationConfig
from mdcite.scan import (
    CitationOccurrence,
    LinkOccurrence,
    MarkerConsistencyError,
    ReferenceEntry,
    Scan,
    scan,
)


class Direction(Enum):
    CITATIONS = "citations"
    LINKS = "links"


@dataclass(frozen=True)
class MergeState:
    """Accumulator threaded through `step`.

    `cursor` is the end of the last replacement. Everything before it has
    already been converted, so pending markers are only searched after it.
    """

    text: str
    output: tuple[ReferenceEntry, ...] = ()
    link_pos: int = 0
    citation_pos: int = 0
    cursor: int = 0

    def pending(self, links: Sequence, citations: Sequence) -> bool:
        return self.link_pos < len(links) or self.citation_pos < len(citations)


def _replacement(
    text: str, url: str, ordinal: int, direction: Direction, config: CitationConfig,
) -> str:
    if direction is Direction.CITATIONS:
        return config.sup(text, ordinal)
    return f"[{text}]({url})"


def step(
    state: MergeState,
    links: Sequence[LinkOccurrence],
    citations: Sequence[CitationOccurrence],
    direction: Direction,
    config: CitationConfig | None = None,
) -> MergeState:
    """Consume whichever pending occurrence comes first in the live text.

    Ties go to the citation. The marker keeps the text as spelled in the
    body; the reference entry gets it on one line. Returns `state`
    unchanged once both lists are exhausted.
    """
    config = config or DEFAULT_CONFIG
    citation = citations[state.citation_pos] if state.citation_pos < len(citations) else None
    link = links[state.link_pos] if state.link_pos < len(links) else None
    if citation is None and link is None:
        return state

    sup_match = None
    if citation is not None:
        sup_match = citation.matcher.match(state.text, state.cursor)
        if sup_match is None:
            raise MarkerConsistencyError(
                f"Citation {citation.index + 1} ({citation.url}) could not be located"
            )

    idx_l = -1
    if link is not None:
        idx_l = link.locate(state.text, state.cursor)
        if idx_l < 0:
            raise MarkerConsistencyError(f"Link {link.raw!r} could not be located")

    take_citation = link is None or (sup_match is not None and sup_match.start() <= idx_l)
    if take_citation:
        start, end = sup_match.span()
        url, text = citation.url, sup_match.group(1) or citation.text
    else:
        start, end = idx_l, idx_l + len(link.raw)
        url, text = link.url, link.text

    ordinal = len(state.output) + 1
    new = _replacement(text, url, ordinal, direction, config)
    entry = ReferenceEntry(ordinal=ordinal, url=url, text=" ".join(text.split()))

    return replace(
        state,
        text=state.text[:start] + new + state.text[end:],
        output=state.output + (entry,),
        link_pos=state.link_pos + (0 if take_citation else 1),
        citation_pos=state.citation_pos + (1 if take_citation else 0),
        cursor=start + len(new),
    )


def merge(
    scanned: Scan, direction: Direction, config: CitationConfig | None = None,
) -> MergeState:
    """Run `step` until every link and citation has been consumed."""
    state = MergeState(text=scanned.text)
    while state.pending(scanned.links, scanned.citations):
        state = step(state, scanned.links, scanned.citations, direction, config)
    return state


def to_citations(markdown: str, config: CitationConfig | None = None) -> str:
    """Convert inline links to superscript citations.

    Existing citations are renumbered along with the new ones and the
    reference section is rewritten (or appended) to match.

    Raises:
        MarkerConsistencyError: body markers and reference entries disagree.
    """
    config = config or DEFAULT_CONFIG
    scanned = scan(markdown, config)
    if not scanned.links and not scanned.citations:
        return markdown

    state = merge(scanned, Direction.CITATIONS, config)
    return section.upsert(state.text, state.output, config)


def to_links(markdown: str, config: CitationConfig | None = None) -> str:
    """Convert superscript citations back to inline links.

    The reference section is removed.

    Raises:
        MarkerConsistencyError: body markers and reference entries disagree.
    """
    config = config or DEFAULT_CONFIG
    scanned = scan(markdown, config)
    state = merge(scanned, Direction.LINKS, config)
    return section.remove(state.text, config)
