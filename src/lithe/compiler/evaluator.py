"""Evaluators - pluggable execution of code chunks.

The renderer never runs code itself. Callers pass an object with an
`evaluate(code, context)` method; anything that raises ExecutionError on
failure and returns the captured text on success will do.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Mapping, Protocol, Union

from lithe.exceptions import ExecutionError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvalContext:
    """What an evaluator knows about the chunk it runs."""

    language: str
    label: str
    digits: int = 7


class Evaluator(Protocol):
    """Runs one chunk. Evaluators may also define `identity(language)`,
    a string naming the engine; cached output is keyed on it."""

    def evaluate(self, code: str, context: EvalContext) -> str: ...


class SubprocessEvaluator:
    """Runs chunks through external interpreters, one process per chunk.

    Example:
        SubprocessEvaluator({"r": "Rscript -", "python": "python3 -"})

    The code is written to the interpreter's stdin and its stdout returned.
    LITHE_DIGITS and LITHE_CHUNK are exported to the child.
    """

    def __init__(
        self,
        engines: Mapping[str, Union[str, List[str]]],
        timeout: float | None = None,
    ):
        self.engines: Dict[str, List[str]] = {}
        for language, cmd in engines.items():
            argv = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
            if not argv:
                raise ValueError(f"Empty command for engine '{language}'")
            self.engines[language.lower()] = argv
        self.timeout = timeout

    def identity(self, language: str) -> str:
        """Command line that runs `language`; part of the cache fingerprint."""
        argv = self.engines.get(language.lower())
        return shlex.join(argv) if argv else ""

    def evaluate(self, code: str, context: EvalContext) -> str:
        argv = self.engines.get(context.language.lower())
        if argv is None:
            raise ExecutionError(f"no engine configured for language '{context.language}'")

        env = dict(os.environ)
        env["LITHE_DIGITS"] = str(context.digits)
        env["LITHE_CHUNK"] = context.label

        log.debug("Evaluating chunk %s with %s", context.label, argv)
        try:
            result = subprocess.run(
                argv,
                input=code,
                capture_output=True,
                text=True,
                env=env,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExecutionError(f"engine not found: {argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise ExecutionError(f"engine timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise ExecutionError(
                f"{argv[0]} exited with code {result.returncode}",
                stderr=result.stderr,
            )
        return result.stdout


def parse_engine_specs(specs: List[str]) -> Dict[str, str]:
    """Parse CLI-style `lang=command` engine specs."""
    engines: Dict[str, str] = {}
    for spec in specs:
        if "=" not in spec:
            raise ValueError(f"Engine spec must look like LANG=COMMAND, got {spec!r}")
        language, cmd = spec.split("=", 1)
        language, cmd = language.strip(), cmd.strip()
        if not language or not cmd:
            raise ValueError(f"Engine spec must look like LANG=COMMAND, got {spec!r}")
        engines[language] = cmd
    return engines
