"""Conversion settings: section title, entry template, comment markers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from mdcite.scan import ReferenceEntry

SECTION_TITLE = "文内链接"
TEXT_OPEN = "<!--begin sup text-->"
TEXT_CLOSE = "<!--end sup text-->"


def literal_entry(ordinal: int, entry: ReferenceEntry) -> str:
    """Render an entry with a literal `1.` marker.

    Markdown renderers auto-number ordered lists, so every line starts
    with `1.` regardless of its position.
    """
    return f"1. {entry.url} <!--{entry.text}-->"


def numbered_entry(ordinal: int, entry: ReferenceEntry) -> str:
    """Render an entry with its real ordinal."""
    return f"{ordinal}. {entry.url} <!--{entry.text}-->"


@dataclass(frozen=True)
class CitationConfig:
    """Settings shared by the scanner, the section model and the engine."""

    section_title: str = SECTION_TITLE
    entry_template: Callable[[int, ReferenceEntry], str] = literal_entry
    text_open: str = TEXT_OPEN
    text_close: str = TEXT_CLOSE

    def sup(self, text: str, ordinal: int) -> str:
        """Canonical citation marker carrying its display text."""
        return f"{self.text_open}{text}{self.text_close}<sup>{ordinal}</sup>"


DEFAULT_CONFIG = CitationConfig()
