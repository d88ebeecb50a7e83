"""Lithe CLI Main Entry Point

Lithe - literate documents to HTML
Renders Markdown prose with knitr-style code chunks into a single page.

Usage:
    lithe render chapter.Rmd                   # Write chapter.html
    lithe render chapter.Rmd -o out/ch.html    # Write elsewhere
    lithe render chapter.Rmd --dry-run         # Print HTML to stdout
    lithe render chapter.Rmd --engine r="Rscript -"
    lithe blocks chapter.Rmd                   # Show parsed blocks
    lithe cache clear chapter.Rmd              # Drop cached chunk output
    lithe --version                            # Show version
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer

from lithe._version import __version__
from lithe.cli.commands import blocks_command, cache_clear_command, render_command
from lithe.cli.commands.utils import setup_logging


class CodeFolding(str, Enum):
    none = "none"
    show = "show"
    hide = "hide"


typer_app = typer.Typer(no_args_is_help=True)
cache_app = typer.Typer(no_args_is_help=True, help="Manage the fragment cache.")
typer_app.add_typer(cache_app, name="cache")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"lithe {__version__}")
        raise typer.Exit()


@typer_app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Render literate documents to HTML."""
    setup_logging(verbose)


@typer_app.command("render")
def render(
    source: Path = typer.Argument(..., help="Literate document to render."),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output file (default: <source>.html)."
    ),
    cache: Optional[bool] = typer.Option(
        None, "--cache/--no-cache", help="Reuse cached chunk output."
    ),
    digits: Optional[int] = typer.Option(
        None, "--digits", help="Numeric display precision."
    ),
    code_folding: Optional[CodeFolding] = typer.Option(
        None, "--code-folding", help="Initial visibility of code blocks."
    ),
    comment: Optional[str] = typer.Option(
        None, "--comment", help="Prefix for echoed output lines."
    ),
    engine: Optional[List[str]] = typer.Option(
        None,
        "-e",
        "--engine",
        help="Evaluator for a language, as LANG=COMMAND. Repeatable.",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print HTML without writing a file."
    ),
) -> None:
    """Render a document to HTML.

    \b
    Examples:
        lithe render chapter.Rmd
        lithe render chapter.Rmd --cache --code-folding hide
        lithe render chapter.Rmd -e r="Rscript -" -e python="python3 -"
    """
    render_command(
        source,
        output=output,
        cache=cache,
        digits=digits,
        code_folding=code_folding.value if code_folding is not None else None,
        comment=comment,
        engines=engine,
        dry_run=dry_run,
    )


@typer_app.command("blocks")
def blocks(
    source: Path = typer.Argument(..., help="Literate document to parse."),
) -> None:
    """Parse a document and list its blocks."""
    blocks_command(source)


@cache_app.command("clear")
def cache_clear(
    source: Path = typer.Argument(..., help="Document whose cache to clear."),
) -> None:
    """Delete the fragment cache for a document."""
    cache_clear_command(source)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
