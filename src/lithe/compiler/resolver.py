"""Resolver - turns include directives into code blocks."""

from __future__ import annotations

import logging
from pathlib import Path

from lithe.ast.spec import CodeBlock, IncludeDirective
from lithe.exceptions import MissingFileError

log = logging.getLogger(__name__)


class Resolver:
    """Resolves include paths relative to a document's directory.

    Absolute paths are used as-is. No extension inference is done: the
    path must name the file exactly.
    """

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = base_dir or Path.cwd()

    def resolve_path(self, directive: IncludeDirective) -> Path:
        p = Path(directive.path).expanduser()
        if not p.is_absolute():
            p = self.base_dir / p

        if not p.exists():
            raise MissingFileError(p, label=directive.label)
        if not p.is_file():
            raise MissingFileError(p, label=directive.label, reason="not a file")
        return p

    def read(self, directive: IncludeDirective) -> str:
        """Read the full contents of an included file."""
        path = self.resolve_path(directive)
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise MissingFileError(path, label=directive.label, reason=str(e)) from e

        log.debug("Included %s (%d bytes)", path, len(content))
        return content

    def splice(self, directive: IncludeDirective) -> CodeBlock:
        """Replace an include directive with a code block of the file's text."""
        content = self.read(directive)
        return CodeBlock(
            language=directive.language,
            code=content.rstrip("\n"),
            execute=directive.execute,
            label=directive.label,
            options=dict(directive.options),
            line=directive.line,
        )
