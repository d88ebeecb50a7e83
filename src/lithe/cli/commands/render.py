"""Render command - build a literate document into HTML"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import typer

from lithe.build import build
from lithe.compiler.evaluator import parse_engine_specs
from lithe.exceptions import LitheError

from .utils import exit_with_error, handle_error

log = logging.getLogger(__name__)


def render_command(
    source: Path,
    output: Optional[Path] = None,
    cache: Optional[bool] = None,
    digits: Optional[int] = None,
    code_folding: Optional[str] = None,
    comment: Optional[str] = None,
    engines: Optional[list[str]] = None,
    dry_run: bool = False,
) -> None:
    """Render `source` and write (or print) the HTML."""
    if not source.exists():
        exit_with_error(f"File not found: {source}", 1)

    overrides: dict[str, Any] = {}
    if cache is not None:
        overrides["cache"] = cache
    if digits is not None:
        overrides["digits"] = digits
    if code_folding is not None:
        overrides["code_folding"] = code_folding
    if comment is not None:
        overrides["comment"] = comment

    try:
        engine_map = parse_engine_specs(engines or [])
    except ValueError as e:
        exit_with_error(str(e), 2)

    try:
        result = build(
            source,
            output=output,
            overrides=overrides,
            engines=engine_map,
            write=not dry_run,
        )
    except (LitheError, OSError) as e:
        handle_error(e)

    if dry_run:
        typer.echo(result.html, nl=False)
    else:
        typer.echo(f"Wrote {result.output}")
