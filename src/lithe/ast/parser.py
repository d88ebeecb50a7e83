from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from lithe.ast.chunk import parse_header
from lithe.ast.spec import Block, CodeBlock, Document, IncludeDirective, ProseBlock
from lithe.exceptions import MalformedDirectiveError, UnterminatedBlockError

log = logging.getLogger(__name__)

FENCE_OPEN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
FRONT_MATTER_DELIMS = ("---",)
FRONT_MATTER_CLOSERS = ("---", "...")
INCLUDE_PREFIX = re.compile(r"^\s*\{\{<\s*include\b")
INCLUDE_LINE = re.compile(r"^\s*\{\{<\s*include\s+(?P<path>\S.*?)\s*>\}\}\s*$")

SUFFIX_LANGUAGES = {
    ".stan": "stan",
    ".py": "python",
    ".r": "r",
    ".sh": "bash",
    ".jl": "julia",
    ".sql": "sql",
}


def language_for(path: str) -> str:
    """Guess the display language of an included file from its suffix."""
    return SUFFIX_LANGUAGES.get(Path(path).suffix.lower(), "")


class Parser:
    """Splits literate source text into a Document of ordered blocks."""

    def parse(
        self,
        text: str,
        base_dir: Optional[Path] = None,
        source_path: Optional[Path] = None,
    ) -> Document:
        """Parse source text.

        Args:
            text: Full document source.
            base_dir: Directory that relative include paths resolve against.
            source_path: Path the text was read from, if any.

        Returns:
            The parsed Document.

        Raises:
            UnterminatedBlockError: A fence or front matter is never closed.
            MalformedDirectiveError: A chunk header or include is invalid.
        """
        lines = text.splitlines()
        meta, start = self._parse_front_matter(lines)

        blocks: List[Block] = []
        prose: List[str] = []
        prose_start = start + 1
        labels: Set[str] = set()
        chunk_count = 0

        def flush_prose() -> None:
            body = "\n".join(prose).strip("\n")
            if body.strip():
                blocks.append(ProseBlock(text=body, line=prose_start))
            prose.clear()

        i = start
        while i < len(lines):
            line = lines[i]
            lineno = i + 1

            fence = FENCE_OPEN.match(line)
            if fence:
                marker = fence.group("fence")
                close = self._find_fence_close(lines, i + 1, marker)
                if close is None:
                    raise UnterminatedBlockError("code fence", lineno)

                flush_prose()
                body = "\n".join(lines[i + 1 : close])
                info = fence.group("info").strip()

                if info.startswith("{"):
                    chunk_count += 1
                    auto_label = self._auto_label(chunk_count, labels)
                    block = self._make_chunk(info, body, lineno, auto_label)
                    self._register_label(block, labels, lineno)
                else:
                    language = info.split()[0] if info else ""
                    block = CodeBlock(language=language, code=body, line=lineno)
                blocks.append(block)

                i = close + 1
                prose_start = i + 1
                continue

            if INCLUDE_PREFIX.match(line):
                m = INCLUDE_LINE.match(line)
                if not m:
                    raise MalformedDirectiveError(
                        f"malformed include directive {line.strip()!r}", lineno
                    )
                path = m.group("path").strip().strip("\"'")
                if not path or "\x00" in path:
                    raise MalformedDirectiveError(
                        "include directive names no usable path", lineno
                    )

                flush_prose()
                chunk_count += 1
                block = IncludeDirective(
                    path=path,
                    language=language_for(path),
                    label=self._auto_label(chunk_count, labels),
                    line=lineno,
                )
                self._register_label(block, labels, lineno)
                blocks.append(block)
                i += 1
                prose_start = i + 1
                continue

            prose.append(line)
            i += 1

        flush_prose()

        log.debug("Parsed %d blocks (%d chunks)", len(blocks), chunk_count)
        return Document(
            blocks=tuple(blocks),
            meta=meta,
            base_dir=base_dir or Path.cwd(),
            source_path=source_path,
        )

    def parse_file(self, filepath: str | Path) -> Document:
        """Read and parse a document; includes resolve next to it."""
        path = Path(filepath).resolve()
        text = read_file(path)
        return self.parse(text, base_dir=path.parent, source_path=path)

    def _parse_front_matter(self, lines: List[str]) -> tuple[Dict[str, Any], int]:
        """Return (metadata, index of first body line)."""
        if not lines or lines[0].strip() not in FRONT_MATTER_DELIMS:
            return {}, 0

        for j in range(1, len(lines)):
            if lines[j].strip() in FRONT_MATTER_CLOSERS:
                break
        else:
            raise UnterminatedBlockError("front matter", 1)

        source = "\n".join(lines[1:j])
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as exc:
            raise MalformedDirectiveError(f"invalid front matter YAML: {exc}", 1) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedDirectiveError("front matter must be a mapping", 1)
        return data, j + 1

    @staticmethod
    def _find_fence_close(lines: List[str], start: int, marker: str) -> Optional[int]:
        closer = re.compile(rf"^ {{0,3}}{re.escape(marker[0])}{{{len(marker)},}}\s*$")
        for j in range(start, len(lines)):
            if closer.match(lines[j]):
                return j
        return None

    def _make_chunk(self, info: str, body: str, lineno: int, auto_label: str) -> Block:
        header = parse_header(info, lineno)
        label = header.label or auto_label
        eval_opt = header.options.pop("eval", None)

        if header.include_path is not None:
            if body.strip():
                raise MalformedDirectiveError(
                    "a chunk that includes a file must have an empty body", lineno
                )
            return IncludeDirective(
                path=header.include_path,
                language=header.language,
                execute=eval_opt is True,
                label=label,
                options=header.options,
                line=lineno,
            )

        return CodeBlock(
            language=header.language,
            code=body,
            execute=True if eval_opt is None else bool(eval_opt),
            label=label,
            options=header.options,
            line=lineno,
        )

    @staticmethod
    def _auto_label(count: int, labels: Set[str]) -> str:
        # numbers an author already used as explicit labels are skipped
        while f"unnamed-chunk-{count}" in labels:
            count += 1
        return f"unnamed-chunk-{count}"

    @staticmethod
    def _register_label(block: Block, labels: Set[str], lineno: int) -> None:
        label = getattr(block, "label", None)
        if label is None:
            return
        if label in labels:
            raise MalformedDirectiveError(f"duplicate chunk label {label!r}", lineno)
        labels.add(label)


def read_file(filepath: str | Path) -> str:
    with open(filepath, "r", encoding="utf-8") as file:
        return file.read()


def parse(
    text: str, base_dir: Optional[Path] = None, source_path: Optional[Path] = None
) -> Document:
    """Parse source text with a default Parser."""
    return Parser().parse(text, base_dir=base_dir, source_path=source_path)


def parse_file(filepath: str | Path) -> Document:
    """Parse a document file with a default Parser."""
    return Parser().parse_file(filepath)
