"""
steps.py

Responsibility: The units a task's action is made of, and how they execute.

Each step runs against a `StepContext` that carries everything it may touch:
the project directory, template variables, the execution log and the
executor used for external commands. Steps never reach for ambient state.

Filesystem conditionals are explicit preconditions evaluated when the step
runs (not when the graph is built), returning a tri-state `Presence`.
"""

from __future__ import annotations

import enum
import logging
import os
import shutil
import stat
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from projman.changelog import ExecutionLog
from projman.render import render_argv, render_text

logger = logging.getLogger(__name__)

# Exit status shells use for "command not found".
EXIT_NOT_FOUND = 127


class StepExecutionError(RuntimeError):
    def __init__(self, *, task: str, step: str, returncode: int, detail: str = "") -> None:
        self.task = task
        self.step = step
        self.returncode = returncode
        self.detail = detail
        msg = f"Task {task!r} failed at step [{step}] (exit code {returncode})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class Executor(Protocol):
    def run(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str] | None = None) -> None:
        """Run argv to completion; raise CalledProcessError on non-zero exit."""
        ...


class SubprocessExecutor:
    """
    Run commands with inherited stdio so interactive tools keep their terminal.
    """

    def run(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str] | None = None) -> None:
        subprocess.run(list(argv), cwd=str(cwd), env=None if env is None else dict(env), check=True)


@dataclass(frozen=True)
class StepContext:
    project_dir: Path
    log: ExecutionLog
    executor: Executor
    variables: Mapping[str, Any] = field(default_factory=dict)
    venv_dir: Path | None = None
    task: str = ""


class Presence(enum.Enum):
    ABSENT = "absent"
    PRESENT = "present"
    ERROR = "error"


@dataclass(frozen=True)
class FileExists:
    path: str

    def describe(self) -> str:
        return f"file {self.path} exists"

    def evaluate(self, ctx: StepContext) -> Presence:
        return _probe(ctx.project_dir / render_text(self.path, ctx.variables), want_dir=False)


@dataclass(frozen=True)
class DirExists:
    path: str

    def describe(self) -> str:
        return f"directory {self.path} exists"

    def evaluate(self, ctx: StepContext) -> Presence:
        return _probe(ctx.project_dir / render_text(self.path, ctx.variables), want_dir=True)


def _probe(path: Path, *, want_dir: bool) -> Presence:
    try:
        st = path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return Presence.ABSENT
    except OSError:
        logger.debug("stat failed for %s", path, exc_info=True)
        return Presence.ERROR
    return Presence.PRESENT if stat.S_ISDIR(st.st_mode) == want_dir else Presence.ABSENT


class Step:
    """Base class: subclasses implement `describe()` and `_run()`."""

    log: tuple[str, ...] = ()

    def describe(self) -> str:
        raise NotImplementedError

    def _run(self, ctx: StepContext) -> None:
        raise NotImplementedError

    def execute(self, ctx: StepContext) -> None:
        self._run(ctx)
        # Log lines are only written once the step has succeeded.
        for line in self.log:
            try:
                ctx.log.append(render_text(line, ctx.variables))
            except OSError as e:
                raise self._fail(ctx, 1, f"cannot append to {ctx.log!r}: {e}") from e

    def _fail(self, ctx: StepContext, returncode: int, detail: str = "", *, step: str | None = None) -> StepExecutionError:
        return StepExecutionError(task=ctx.task, step=step or self.describe(), returncode=returncode, detail=detail)


def venv_environ(venv_dir: Path, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """
    Environment for commands that run inside the virtual environment.

    Only VIRTUAL_ENV and PATH are adjusted; this is not a full activation.
    """
    env = dict(os.environ if base is None else base)
    scripts = venv_dir / ("Scripts" if os.name == "nt" else "bin")
    env["VIRTUAL_ENV"] = str(venv_dir)
    env["PATH"] = os.pathsep.join(p for p in (str(scripts), env.get("PATH", "")) if p)
    env.pop("PYTHONHOME", None)
    return env


@dataclass(frozen=True)
class Command(Step):
    argv: tuple[str, ...]
    log: tuple[str, ...] = ()
    in_venv: bool = False

    def describe(self) -> str:
        return " ".join(self.argv)

    def _run(self, ctx: StepContext) -> None:
        argv = render_argv(self.argv, ctx.variables)
        env = None
        if self.in_venv and ctx.venv_dir is not None:
            env = venv_environ(ctx.venv_dir)
        cmdline = " ".join(argv)
        logger.debug("Running: %s (cwd=%s)", cmdline, ctx.project_dir)
        try:
            ctx.executor.run(argv, cwd=ctx.project_dir, env=env)
        except subprocess.CalledProcessError as e:
            raise self._fail(ctx, e.returncode, step=cmdline) from e
        except FileNotFoundError as e:
            raise self._fail(ctx, EXIT_NOT_FOUND, f"command not found: {argv[0]}", step=cmdline) from e
        except PermissionError as e:
            raise self._fail(ctx, 126, f"permission denied: {argv[0]}", step=cmdline) from e


@dataclass(frozen=True)
class MakeDirs(Step):
    paths: tuple[str, ...]
    log: tuple[str, ...] = ()

    def describe(self) -> str:
        return "mkdir -p " + " ".join(self.paths)

    def _run(self, ctx: StepContext) -> None:
        for rel in self.paths:
            path = ctx.project_dir / render_text(rel, ctx.variables)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise self._fail(ctx, 1, f"{path}: {e}") from e


@dataclass(frozen=True)
class RemovePaths(Step):
    """
    Remove literal paths, then glob matches at the project root, then
    recursive matches anywhere below it. Missing paths are fine.

    Literal paths may be absolute and are never treated as globs.
    """

    patterns: tuple[str, ...] = ()
    recursive: tuple[str, ...] = ()
    log: tuple[str, ...] = ()
    literal: tuple[str, ...] = ()

    def describe(self) -> str:
        parts = ["rm -rf", *self.patterns, *self.literal]
        if self.recursive:
            parts += ["**/" + p for p in self.recursive]
        return " ".join(parts)

    def _run(self, ctx: StepContext) -> None:
        root = ctx.project_dir
        literal = [root / render_text(rel, ctx.variables) for rel in self.literal]
        if any(p.resolve() == root.resolve() for p in literal):
            raise self._fail(ctx, 1, "refusing to remove the project directory")
        self._remove_all(ctx, literal)
        for pattern in self.patterns:
            self._remove_all(ctx, self._glob(ctx, root.glob, pattern))
        # Scanned after the top-level removals so deleted trees are not walked.
        for pattern in self.recursive:
            self._remove_all(ctx, self._glob(ctx, root.rglob, pattern))

    def _glob(self, ctx: StepContext, glob, pattern: str) -> list[Path]:
        rendered = render_text(pattern, ctx.variables)
        try:
            return sorted(glob(rendered))
        except (NotImplementedError, ValueError) as e:
            raise self._fail(ctx, 1, f"bad pattern {rendered!r}: {e}") from e
        except OSError as e:
            raise self._fail(ctx, 1, f"{rendered}: {e}") from e

    def _remove_all(self, ctx: StepContext, targets: list[Path]) -> None:
        for path in targets:
            try:
                _remove(path)
            except OSError as e:
                raise self._fail(ctx, 1, f"{path}: {e}") from e
            logger.debug("Removed %s", path)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


@dataclass(frozen=True)
class Echo(Step):
    message: str

    def describe(self) -> str:
        return f"echo {self.message}"

    def _run(self, ctx: StepContext) -> None:
        logger.info(render_text(self.message, ctx.variables))


@dataclass(frozen=True)
class Print(Step):
    """Write text to stdout (listings meant for the user, not the log stream)."""

    text: str

    def describe(self) -> str:
        return "print"

    def _run(self, ctx: StepContext) -> None:
        sys.stdout.write(self.text if self.text.endswith("\n") else self.text + "\n")
        sys.stdout.flush()


@dataclass(frozen=True)
class NotImplementedStep(Step):
    """
    A placeholder action: reports that nothing is defined and records the
    attempt. It performs no real work and does not fail the run.
    """

    message: str
    log: tuple[str, ...] = ()

    def describe(self) -> str:
        return "not implemented"

    def _run(self, ctx: StepContext) -> None:
        logger.warning(render_text(self.message, ctx.variables))


@dataclass(frozen=True)
class Conditional(Step):
    """
    Run the steps of the first branch whose precondition is PRESENT.

    If no branch matches, `otherwise` is reported and the step succeeds.
    A precondition that evaluates to ERROR fails the step.
    """

    branches: tuple[tuple[Any, tuple[Step, ...]], ...]
    otherwise: str = ""

    def describe(self) -> str:
        return "if " + " / elif ".join(cond.describe() for cond, _ in self.branches)

    def _run(self, ctx: StepContext) -> None:
        for cond, steps in self.branches:
            presence = cond.evaluate(ctx)
            logger.debug("Precondition %s: %s", cond.describe(), presence.value)
            if presence is Presence.ERROR:
                raise StepExecutionError(
                    task=ctx.task, step=cond.describe(), returncode=1, detail="could not evaluate precondition"
                )
            if presence is Presence.PRESENT:
                for step in steps:
                    step.execute(ctx)
                return
        if self.otherwise:
            logger.info(render_text(self.otherwise, ctx.variables))
