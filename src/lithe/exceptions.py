"""Lithe Exceptions

Error taxonomy for parsing and rendering literate documents.
"""

from __future__ import annotations

from pathlib import Path


class LitheError(Exception):
    """Base exception for all lithe errors."""

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# =============================================================================
# Parse errors
# =============================================================================


class ParseError(LitheError):
    """Raised when source text cannot be split into blocks."""

    exit_code = 2

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class UnterminatedBlockError(ParseError):
    """Raised when a fence or front matter block is opened but never closed."""

    def __init__(self, what: str, line: int) -> None:
        self.what = what
        super().__init__(f"{what} opened here is never closed", line=line)


class MalformedDirectiveError(ParseError):
    """Raised when a chunk header or include directive cannot be understood."""

    pass


# =============================================================================
# Render errors
# =============================================================================


class RenderError(LitheError):
    """Raised when a parsed document cannot be rendered."""

    def __init__(self, message: str, label: str | None = None) -> None:
        self.label = label
        if label is not None:
            message = f"chunk '{label}': {message}"
        super().__init__(message)


class MissingFileError(RenderError):
    """Raised when an included path does not resolve to a readable file."""

    def __init__(self, path: Path | str, label: str | None = None, reason: str = "") -> None:
        self.path = Path(path)
        detail = f"included file not found: {path}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail, label=label)


class CacheMismatchError(RenderError):
    """Raised when a cached fragment no longer matches its source."""

    def __init__(self, label: str, expected: str, found: str) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"cached fingerprint {found} does not match {expected}", label=label
        )


class ExecutionFailureError(RenderError):
    """Raised when the evaluator fails on an executable chunk."""

    pass


# =============================================================================
# Evaluator errors
# =============================================================================


class ExecutionError(Exception):
    """Raised by evaluators when a chunk cannot be executed."""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


# =============================================================================
# Configuration errors
# =============================================================================


class ConfigError(LitheError):
    """Raised when render options or the project config are invalid."""

    exit_code = 2
