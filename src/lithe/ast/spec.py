from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class ProseBlock:
    """Narrative text between code chunks."""

    text: str
    line: int = 1


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code chunk.

    `execute` is set for knitr-style chunks (```{r}) unless eval=FALSE,
    and never for plain fences (```python).
    """

    language: str
    code: str
    execute: bool = False
    label: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    line: int = 1


@dataclass(frozen=True)
class IncludeDirective:
    """A reference to an external file to splice in as a code block."""

    path: str
    language: str = ""
    execute: bool = False
    label: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    line: int = 1


Block = Union[ProseBlock, CodeBlock, IncludeDirective]


@dataclass(frozen=True)
class Document:
    """A parsed literate document. Blocks are kept in source order."""

    blocks: Tuple[Block, ...]
    meta: Dict[str, Any] = field(default_factory=dict)
    base_dir: Path = field(default_factory=Path.cwd)
    source_path: Optional[Path] = None

    @property
    def title(self) -> str:
        title = self.meta.get("title")
        if title:
            return str(title)
        if self.source_path is not None:
            return self.source_path.stem
        return "Untitled"
