"""Shared utilities for CLI commands"""

from __future__ import annotations

import logging
import os
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from lithe.exceptions import LitheError

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the lithe CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - includes, cache hits, written files
    - Debug (LITHE_DEBUG=1): DEBUG level - shows everything
    """
    if os.environ.get("LITHE_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=bool(os.environ.get("LITHE_DEBUG")),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("lithe")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)


def handle_error(error: Exception) -> NoReturn:
    """Report a lithe error (or an unexpected one) and exit."""
    if isinstance(error, LitheError):
        exit_with_error(error.message, error.exit_code)
    exit_with_error(f"Unexpected error: {error}", 1)
