"""Document access: read the full text, write the full replacement."""

from __future__ import annotations

from pathlib import Path

import click

STDIO = "-"


def save_markdown(content: str, output_path: Path) -> None:
    """Save markdown content to file, line endings as given."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8", newline="")


class Document:
    """A markdown document backed by a file or by stdin/stdout.

    Usage:
        doc = Document("notes.md", in_place=True)
        doc.replace_text(to_citations(doc.get_text()))
    """

    def __init__(
        self,
        source: str = STDIO,
        output_path: str | None = None,
        in_place: bool = False,
    ):
        self.source = source
        self.target: Path | None = None
        if in_place:
            self.target = Path(source)
        elif output_path:
            self.target = Path(output_path)

    def get_text(self) -> str:
        if self.source == STDIO:
            return click.get_text_stream("stdin").read()
        with open(self.source, encoding="utf-8", newline="") as f:
            return f.read()

    def replace_text(self, new_text: str) -> Path | None:
        """Write `new_text` as the whole document. Returns the file written, if any."""
        if self.target is None:
            click.echo(new_text, nl=False)
            return None
        save_markdown(new_text, self.target)
        return self.target
