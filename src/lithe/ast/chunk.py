"""Chunk header parsing for knitr-style fences.

    ```{r label, cache=TRUE, eval=FALSE}
    ```{stan, output.var="model", file="model.stan"}

Values understand R literals (TRUE/FALSE/T/F/NA/NULL), numbers and quoted
strings. Anything else is kept as the raw expression text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lithe.exceptions import MalformedDirectiveError

QUOTED = re.compile(r"""^(?P<q>["'])(?P<body>.*)(?P=q)$""", re.DOTALL)
READ_LINES = re.compile(r"""^readLines\(\s*(?P<q>["'])(?P<path>.*?)(?P=q)\s*\)$""")
IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

_LITERALS: Dict[str, Any] = {
    "TRUE": True,
    "T": True,
    "FALSE": False,
    "F": False,
    "NA": None,
    "NULL": None,
}


@dataclass
class ChunkHeader:
    """Parsed contents of a ```{...} header."""

    language: str
    label: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    include_path: Optional[str] = None


def split_args(text: str, line: int) -> List[str]:
    """Split on top-level commas, respecting quotes and parentheses."""
    args: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    depth = 0

    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
            if depth < 0:
                raise MalformedDirectiveError("unbalanced ')' in chunk header", line)
        elif ch == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    if quote:
        raise MalformedDirectiveError("unterminated string in chunk header", line)
    if depth != 0:
        raise MalformedDirectiveError("unbalanced '(' in chunk header", line)

    args.append("".join(current).strip())
    return args


def parse_value(raw: str) -> Any:
    """Convert an option value to a Python value."""
    raw = raw.strip()
    if raw in _LITERALS:
        return _LITERALS[raw]

    m = QUOTED.match(raw)
    if m:
        return m.group("body")

    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        pass

    return raw


def _unquote(raw: str) -> str:
    m = QUOTED.match(raw.strip())
    return m.group("body") if m else raw.strip()


def _include_path(key: str, raw: str, line: int) -> str:
    raw = raw.strip()
    if key == "file":
        m = QUOTED.match(raw)
        if not m:
            raise MalformedDirectiveError(
                f"file= expects a quoted path, got {raw!r}", line
            )
        path = m.group("body")
    else:
        m = READ_LINES.match(raw)
        if not m:
            raise MalformedDirectiveError(
                f'code= only supports readLines("path"), got {raw!r}', line
            )
        path = m.group("path")

    if not path.strip():
        raise MalformedDirectiveError(f"{key}= names an empty path", line)
    if "\x00" in path:
        raise MalformedDirectiveError(f"{key}= path contains a NUL byte", line)
    return path


def parse_header(info: str, line: int) -> ChunkHeader:
    """Parse the inside of a braced chunk header, e.g. `r setup, cache=TRUE`."""
    inner = info.strip()
    if not (inner.startswith("{") and inner.endswith("}")):
        raise MalformedDirectiveError(f"malformed chunk header {info!r}", line)
    inner = inner[1:-1].strip()
    if not inner:
        raise MalformedDirectiveError("chunk header names no language", line)

    args = split_args(inner, line)
    head = args[0].split(None, 1)
    if not head:
        raise MalformedDirectiveError("chunk header names no language", line)

    language = head[0].lower()
    if not IDENTIFIER.match(language):
        raise MalformedDirectiveError(f"invalid chunk language {head[0]!r}", line)

    header = ChunkHeader(language=language)
    if len(head) > 1:
        header.label = _unquote(head[1])

    for position, arg in enumerate(args[1:], start=1):
        if not arg:
            raise MalformedDirectiveError("empty option in chunk header", line)

        if "=" not in arg:
            # {r, setup} names the label positionally
            if position == 1 and header.label is None:
                header.label = _unquote(arg)
                continue
            raise MalformedDirectiveError(f"option {arg!r} has no value", line)

        key, raw = arg.split("=", 1)
        key = key.strip()
        if not IDENTIFIER.match(key):
            raise MalformedDirectiveError(f"invalid option name {key!r}", line)

        if key in ("file", "code"):
            if header.include_path is not None:
                raise MalformedDirectiveError(
                    "chunk header includes more than one file", line
                )
            header.include_path = _include_path(key, raw, line)
        elif key == "label":
            header.label = str(parse_value(raw))
        else:
            header.options[key] = parse_value(raw)

    if header.label is not None and not header.label.strip():
        raise MalformedDirectiveError("chunk label is empty", line)

    return header
