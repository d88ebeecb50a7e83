"""Blocks command - show how a document parses"""

from __future__ import annotations

from pathlib import Path

from rich.table import Table

from lithe.ast.parser import Parser
from lithe.ast.spec import CodeBlock, IncludeDirective, ProseBlock
from lithe.exceptions import LitheError

from .utils import console, exit_with_error, handle_error


def blocks_command(source: Path) -> None:
    """List the blocks of a document without rendering it."""
    if not source.exists():
        exit_with_error(f"File not found: {source}", 1)

    try:
        document = Parser().parse_file(source)
    except (LitheError, OSError) as e:
        handle_error(e)

    if not document.blocks:
        console.print("[yellow]No blocks found[/yellow]")
        return

    table = Table(title=document.title)
    table.add_column("#", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("Label")
    table.add_column("Language")
    table.add_column("Execute")
    table.add_column("Line", justify="right")
    table.add_column("Detail")

    for index, block in enumerate(document.blocks, start=1):
        if isinstance(block, ProseBlock):
            first = block.text.strip().splitlines()[0]
            if len(first) > 40:
                first = first[:37] + "..."
            table.add_row(str(index), "prose", "", "", "", str(block.line), first)
        elif isinstance(block, IncludeDirective):
            table.add_row(
                str(index),
                "include",
                block.label or "",
                block.language,
                "[green]yes[/green]" if block.execute else "no",
                str(block.line),
                block.path,
            )
        elif isinstance(block, CodeBlock):
            table.add_row(
                str(index),
                "code",
                block.label or "",
                block.language,
                "[green]yes[/green]" if block.execute else "no",
                str(block.line),
                f"{len(block.code.splitlines())} lines",
            )

    console.print(table)
