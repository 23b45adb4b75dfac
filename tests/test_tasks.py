# tests/test_tasks.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from projman.runner import PrerequisiteFailure, TaskRunner
from projman.tasks import build_default_graph

from .fakes import RecordingExecutor


def _venv_bin(project_dir: Path) -> Path:
    return project_dir.resolve() / "venv" / "bin"


def test_all_runs_the_chain_once_each(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    result = default_runner.run("all")
    assert result.executed == ["setup", "venv", "install", "build", "test", "all"]
    # Only venv runs a command: no manifest, no setup.py; the tests dir comes from setup.
    assert executor.argvs[0] == ["python3", "-m", "venv", "venv"]
    assert executor.argvs[1] == [str(_venv_bin(project_dir) / "python"), "-m", "pytest", "tests"]
    assert len(executor.argvs) == 2
    assert log.lines == [
        "### Added",
        "- Initial project structure (src, tests, docs directories)",
        "- Created virtual environment",
        "- Ran test suite",
    ]


def test_all_matches_running_the_chain_by_hand(make_context, project_dir: Path) -> None:
    chain = ["setup", "venv", "install", "build", "test"]
    via_all = TaskRunner(build_default_graph(), make_context()).run("all").executed
    by_hand = TaskRunner(build_default_graph(), make_context()).run(*chain).executed
    assert [n for n in via_all if n != "all"] == by_hand == chain


def test_install_prefers_requirements(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    (project_dir / "requirements.txt").write_text("requests\n", encoding="utf-8")
    (project_dir / "setup.py").write_text("", encoding="utf-8")
    default_runner.run("install")
    assert executor.argvs[-1] == [str(_venv_bin(project_dir) / "pip"), "install", "-r", "requirements.txt"]
    assert log.lines[-1] == "- Installed dependencies from requirements.txt"


def test_install_falls_back_to_editable(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    (project_dir / "setup.py").write_text("", encoding="utf-8")
    default_runner.run("install")
    assert executor.argvs[-1] == [str(_venv_bin(project_dir) / "pip"), "install", "-e", "."]
    assert log.lines[-1] == "- Installed project in editable mode"


def test_install_without_manifest_is_not_an_error(default_runner: TaskRunner, executor, log, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="projman"):
        result = default_runner.run("install")
    assert result.executed == ["venv", "install"]
    assert len(executor.argvs) == 1
    assert log.lines == ["- Created virtual environment"]
    assert "No requirements.txt or setup.py found." in caplog.text


def test_update_upgrades(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    (project_dir / "requirements.txt").write_text("requests\n", encoding="utf-8")
    default_runner.run("update")
    assert executor.argvs[-1] == [
        str(_venv_bin(project_dir) / "pip"),
        "install",
        "--upgrade",
        "-r",
        "requirements.txt",
    ]
    assert log.lines[-1] == "- Updated dependencies from requirements.txt"


def test_build_runs_setup_py(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    (project_dir / "setup.py").write_text("", encoding="utf-8")
    default_runner.run("build")
    assert executor.argvs[-1] == [str(_venv_bin(project_dir) / "python"), "setup.py", "build"]
    assert log.lines[-1] == "- Built the project"


def test_run_invokes_entry_point_without_logging(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    (project_dir / "main.py").write_text("print('hi')\n", encoding="utf-8")
    default_runner.run("run")
    assert executor.argvs[-1] == [str(_venv_bin(project_dir) / "python"), "main.py"]
    assert log.lines == ["- Created virtual environment"]


def test_failing_venv_blocks_install(make_context, project_dir: Path, log) -> None:
    (project_dir / "requirements.txt").write_text("requests\n", encoding="utf-8")
    executor = RecordingExecutor(failures={"python3": 1})
    runner = TaskRunner(build_default_graph(), make_context(executor=executor))
    with pytest.raises(PrerequisiteFailure) as exc:
        runner.run("install")
    assert exc.value.prerequisite == "venv"
    assert exc.value.returncode == 1
    assert executor.argvs == [["python3", "-m", "venv", "venv"]]
    assert log.lines == []


def test_clean_then_install_recreates_venv(default_runner: TaskRunner, project_dir: Path, executor, log) -> None:
    default_runner.run("install")
    assert (project_dir / "venv").is_dir()
    (project_dir / "build").mkdir()
    (project_dir / "dist").mkdir()
    (project_dir / ".pytest_cache").mkdir()
    (project_dir / "src" / "__pycache__").mkdir(parents=True)

    default_runner.run("clean")
    for name in ("venv", "build", "dist", ".pytest_cache"):
        assert not (project_dir / name).exists()
    assert not (project_dir / "src" / "__pycache__").exists()
    assert log.lines[-1] == "- Cleaned build artifacts and virtual environment"

    default_runner.run("install")
    assert (project_dir / "venv").is_dir()
    assert executor.argvs.count(["python3", "-m", "venv", "venv"]) == 2


def test_docker_tasks_use_image_tag(default_runner: TaskRunner, executor, log) -> None:
    default_runner.run("docker-build", "docker-run")
    assert executor.argvs == [
        ["docker", "build", "-t", "myproject:latest", "."],
        ["docker", "run", "-it", "--rm", "myproject:latest"],
    ]
    assert log.lines == ["- Built Docker image"]


def test_deploy_is_an_explicit_placeholder(default_runner: TaskRunner, executor, log, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="projman"):
        result = default_runner.run("deploy")
    assert result.executed == ["deploy"]
    assert executor.calls == []
    assert log.lines == ["- Attempted deployment (process not defined)"]
    assert "Deployment process not defined" in caplog.text


def test_help_lists_every_task(default_runner: TaskRunner, capsys, log) -> None:
    default_runner.run("help")
    out = capsys.readouterr().out
    assert out.startswith("Available tasks:\n")
    for name in build_default_graph():
        if name != "all":
            assert f"  {name} " in out
    assert "docker-build - Build Docker image" in out
    assert log.lines == []


def test_custom_scaffold_dirs(make_context, project_dir: Path, log) -> None:
    runner = TaskRunner(build_default_graph(("lib", "examples")), make_context(variables={"scaffold_dirs": "lib, examples"}))
    runner.run("setup")
    assert (project_dir / "lib").is_dir()
    assert (project_dir / "examples").is_dir()
    assert log.lines == ["### Added", "- Initial project structure (lib, examples directories)"]

