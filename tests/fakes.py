# tests/fakes.py

from __future__ import annotations

import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path


class ListLog:
    """In-memory ExecutionLog."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def append(self, line: str) -> None:
        self.lines.append(line)


class RecordingExecutor:
    """
    Records every command instead of running it.

    `failures` maps a program name (argv[0]) or a full command line to the
    exit code it should fail with. `hooks` run for matching argv[0] and can
    simulate side effects (e.g. creating the venv directory).
    """

    def __init__(
        self,
        failures: Mapping[str, int] | None = None,
        hooks: Mapping[str, Callable[[list[str], Path], None]] | None = None,
    ) -> None:
        self.failures = dict(failures or {})
        self.hooks = dict(hooks or {})
        self.calls: list[tuple[list[str], Path, Mapping[str, str] | None]] = []

    @property
    def argvs(self) -> list[list[str]]:
        return [argv for argv, _cwd, _env in self.calls]

    def run(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str] | None = None) -> None:
        argv = list(argv)
        self.calls.append((argv, cwd, env))
        code = self.failures.get(" ".join(argv), self.failures.get(argv[0]))
        if code:
            raise subprocess.CalledProcessError(code, argv)
        hook = self.hooks.get(argv[0])
        if hook is not None:
            hook(argv, cwd)


def create_venv(argv: list[str], cwd: Path) -> None:
    """Hook for `<python> -m venv <dir>`: create the directory layout."""
    if argv[1:3] == ["-m", "venv"]:
        (cwd / argv[3] / "bin").mkdir(parents=True, exist_ok=True)
