"""Cache commands - manage the fragment cache"""

from __future__ import annotations

from pathlib import Path

import typer

from lithe.build import clear_cache
from lithe.exceptions import LitheError

from .utils import exit_with_error, handle_error


def cache_clear_command(source: Path) -> None:
    """Remove the fragment cache used by `source`."""
    if not source.exists():
        exit_with_error(f"File not found: {source}", 1)

    try:
        root = clear_cache(source)
    except (LitheError, OSError) as e:
        handle_error(e)

    typer.echo(f"Cleared {root}")
