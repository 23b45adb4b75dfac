# tests/conftest.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from projman.config import ProjectConfig
from projman.logging_setup import _ConsoleFormatter
from projman.runner import TaskRunner
from projman.steps import StepContext
from projman.tasks import build_default_graph

from .fakes import ListLog, RecordingExecutor, create_venv


@pytest.fixture()
def log() -> ListLog:
    return ListLog()


@pytest.fixture()
def executor() -> RecordingExecutor:
    return RecordingExecutor(hooks={"python3": create_venv})


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    d = tmp_path / "project"
    d.mkdir()
    return d


@pytest.fixture()
def config() -> ProjectConfig:
    return ProjectConfig()


@pytest.fixture()
def make_context(project_dir: Path, log: ListLog, executor: RecordingExecutor, config: ProjectConfig):
    def _make(**kwargs) -> StepContext:
        base = dict(
            project_dir=project_dir,
            log=log,
            executor=executor,
            variables=config.variables(project_dir),
            venv_dir=config.venv_dir(project_dir),
        )
        base.update(kwargs)
        return StepContext(**base)

    return _make


@pytest.fixture()
def default_runner(make_context) -> TaskRunner:
    """The real default graph wired to fakes (no subprocesses, in-memory log)."""
    return TaskRunner(build_default_graph(), make_context())


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """`cli.main()` reconfigures the root logger; undo that after each test."""
    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if isinstance(h.formatter, _ConsoleFormatter):
            root.removeHandler(h)
    root.setLevel(level)
