"""Reference section: render, update in place, append, remove."""

from __future__ import annotations

import re
from typing import Sequence

from mdcite.config import DEFAULT_CONFIG, CitationConfig
from mdcite.scan import ReferenceEntry, parse_reference_section

HEADING_PATTERN = re.compile(r"^(#{1,6})(?:[ \t\r]|$)", re.M)


def heading_level(text: str) -> int:
    """Depth of the first heading in the document, 1 if there is none."""
    match = HEADING_PATTERN.search(text)
    return len(match.group(1)) if match else 1


def line_ending(text: str) -> str:
    """`\\r\\n` for CRLF documents, `\\n` otherwise."""
    return "\r\n" if "\r\n" in text else "\n"


def render(
    entries: Sequence[ReferenceEntry],
    config: CitationConfig | None = None,
    level: int = 1,
    heading: str | None = None,
    newline: str = "\n",
) -> str:
    """Render the section: heading, blank line, one line per entry.

    `heading` reuses an existing heading line verbatim; otherwise one is
    built from `level` and the configured title.
    """
    config = config or DEFAULT_CONFIG
    if heading is None:
        heading = f"{'#' * level} {config.section_title}"
    lines = [heading, ""]
    lines.extend(config.entry_template(entry.ordinal, entry) for entry in entries)
    return newline.join(lines) + newline


def upsert(
    text: str,
    entries: Sequence[ReferenceEntry],
    config: CitationConfig | None = None,
) -> str:
    """Rewrite the section's entries, or append a new section at the end."""
    config = config or DEFAULT_CONFIG
    newline = line_ending(text)
    section = parse_reference_section(text, config)

    if section is not None:
        block = render(entries, config, heading=section.heading, newline=newline)
        return text[:section.start] + block + text[section.end:]

    block = render(entries, config, level=heading_level(text), newline=newline)
    body = text.rstrip("\r\n")
    if not body:
        return block
    return f"{body}{newline}{newline}{block}"


def remove(text: str, config: CitationConfig | None = None) -> str:
    """Delete the section heading and its entry lines."""
    section = parse_reference_section(text, config or DEFAULT_CONFIG)
    if section is None:
        return text

    newline = line_ending(text)
    before, after = text[:section.start], text[section.end:]

    # Trailing section: drop the blank lines that separated it.
    if not after.strip():
        return before.rstrip("\r\n") + newline if before.strip() else ""

    if before.endswith(newline * 2):
        after = after.lstrip("\r\n")
    return before + after
