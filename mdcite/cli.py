"""mdcite CLI - Click command definitions and main entry point."""

from __future__ import annotations

import click
import orjson
from rich.console import Console

from mdcite.citations import to_citations, to_links
from mdcite.config import SECTION_TITLE, CitationConfig, literal_entry, numbered_entry
from mdcite.document import STDIO, Document
from mdcite.scan import CitationError, parse_reference_section, scan

console = Console(stderr=True)

source_argument = click.argument(
    "source", type=click.Path(exists=True, dir_okay=False, allow_dash=True),
)
title_option = click.option(
    "--title", default=SECTION_TITLE, show_default=True,
    help="Heading text of the reference section",
)


def output_options(func):
    func = click.option("-v", "--verbose", is_flag=True, help="Verbose progress output")(func)
    func = click.option("-i", "--in-place", is_flag=True, help="Rewrite SOURCE")(func)
    func = click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False),
                        default=None, help="Output file. Omit for stdout.")(func)
    return func


@click.group()
@click.version_option(package_name="mdcite")
def main():
    """Toggle markdown between inline links and superscript citations.

    \b
    Examples:
        mdcite to-sups notes.md -i        # [text](url) -> text<sup>1</sup>
        mdcite to-links notes.md -i       # and back
        mdcite refs notes.md              # reference entries as JSON
        cat notes.md | mdcite to-sups -   # stdin -> stdout
    """


@main.command("to-sups")
@source_argument
@output_options
@title_option
@click.option("--numbered", is_flag=True,
              help="Print real ordinals instead of a literal '1.' per entry")
def to_sups_command(
    source: str, output_path: str | None, in_place: bool, verbose: bool,
    title: str, numbered: bool,
):
    """Convert inline links in SOURCE to numbered citations."""
    config = CitationConfig(
        section_title=title,
        entry_template=numbered_entry if numbered else literal_entry,
    )
    _run(source, output_path, in_place, verbose, config, to_citations)


@main.command("to-links")
@source_argument
@output_options
@title_option
def to_links_command(
    source: str, output_path: str | None, in_place: bool, verbose: bool, title: str,
):
    """Convert citations in SOURCE back to inline links."""
    _run(source, output_path, in_place, verbose, CitationConfig(section_title=title), to_links)


@main.command("refs")
@source_argument
@title_option
def refs_command(source: str, title: str):
    """Print the reference entries of SOURCE as JSON."""
    text = Document(source).get_text()
    ref_section = parse_reference_section(text, CitationConfig(section_title=title))
    entries = ref_section.entries if ref_section else []
    click.echo(orjson.dumps(entries, option=orjson.OPT_INDENT_2).decode())


@main.command("check")
@source_argument
@title_option
def check_command(source: str, title: str):
    """Verify that SOURCE's citation markers match its reference section."""
    text = Document(source).get_text()
    try:
        scanned = scan(text, CitationConfig(section_title=title))
    except CitationError as e:
        raise click.ClickException(str(e)) from e
    console.print(
        f"[green]OK:[/green] {len(scanned.links)} link(s), "
        f"{len(scanned.citations)} citation(s)",
    )


def _run(
    source: str, output_path: str | None, in_place: bool, verbose: bool,
    config: CitationConfig, convert,
) -> None:
    """Read SOURCE, convert it, and write the result in one go."""
    if in_place and output_path:
        raise click.UsageError("--in-place and --output are mutually exclusive")
    if in_place and source == STDIO:
        raise click.UsageError("--in-place needs a file, not stdin")

    doc = Document(source, output_path=output_path, in_place=in_place)
    text = doc.get_text()

    try:
        if verbose:
            scanned = scan(text, config)
            console.print(
                f"[dim]Found {len(scanned.links)} link(s), "
                f"{len(scanned.citations)} citation(s)[/dim]",
            )
        new_text = convert(text, config)
    except CitationError as e:
        raise click.ClickException(str(e)) from e

    if new_text == text and verbose:
        console.print("[dim]Nothing to convert[/dim]")

    saved = doc.replace_text(new_text)
    if saved is not None:
        console.print(f"[green]Saved:[/green] {saved}")


if __name__ == "__main__":
    main()
