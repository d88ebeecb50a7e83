"""Rendered document IR - fragments produced by one render pass."""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union


@dataclass(frozen=True)
class ProseFragment:
    """Prose already translated to HTML."""

    html: str


@dataclass(frozen=True)
class CodeFragment:
    """A code chunk, with evaluated output if it was executed."""

    language: str
    code: str
    label: str = ""
    output: str = ""
    echo: bool = True
    source: str = ""  # include path the code came from, if any


Fragment = Union[ProseFragment, CodeFragment]


@dataclass(frozen=True)
class RenderedDocument:
    """Result of rendering a Document. A new render makes a new one."""

    fragments: Tuple[Fragment, ...]
    title: str = "Untitled"
    meta: Dict[str, Any] = field(default_factory=dict)
    code_folding: str = "none"

    def to_html(self) -> str:
        """Render the full HTML page."""
        from lithe.compiler.page import render_page

        return render_page(self)
