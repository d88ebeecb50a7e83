from __future__ import annotations

from pathlib import Path

import pytest

from lithe.compiler.evaluator import EvalContext
from lithe.exceptions import ExecutionError


class RecordingEvaluator:
    """Echoes chunk code back as output and records every call."""

    def __init__(self, fail_on: str | None = None):
        self.calls: list[EvalContext] = []
        self.fail_on = fail_on

    def evaluate(self, code: str, context: EvalContext) -> str:
        self.calls.append(context)
        if self.fail_on is not None and self.fail_on in code:
            raise ExecutionError("boom", stderr="Error in eval\nobject not found\n")
        return f"ran {context.language}: {code}\n"


@pytest.fixture
def evaluator() -> RecordingEvaluator:
    return RecordingEvaluator()


@pytest.fixture
def write(tmp_path: Path):
    """Write a file under tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
