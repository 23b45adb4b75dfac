"""
changelog.py

Responsibility: The append-only execution log shared across invocations.

The runner only ever calls `append(line)`; it never reads the log back. The
caller owns the log and passes it in, so tests can substitute an in-memory
implementation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class ExecutionLog(Protocol):
    def append(self, line: str) -> None: ...


class FileExecutionLog:
    """
    Append lines to a plain-text file (one line per logged action).

    The file is opened per append and never truncated. There is no locking:
    concurrent invocations may interleave.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8", newline="\n") as fh:
            fh.write(line.rstrip("\n") + "\n")

    def __repr__(self) -> str:
        return f"FileExecutionLog({str(self.path)!r})"
