"""
cli.py

Responsibility: CLI entrypoint for projman.

High-level flow:
1) Load config (defaults -> projman.yaml -> CLI overrides)
2) Build the default task graph
3) Wire the runner: changelog file, subprocess executor, template variables
4) Run the requested tasks; map failures to exit codes

This module orchestrates behavior; it does not define any task logic:
- Graph and resolution: `graph.py`
- Task definitions: `tasks.py`
- Execution: `runner.py` / `steps.py`
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from projman import __version__
from projman.changelog import FileExecutionLog
from projman.config import ConfigError, ProjectConfig, load_config
from projman.graph import TaskGraphError, UnknownTaskError
from projman.logging_setup import setup_logging
from projman.render import RenderError
from projman.runner import PrerequisiteFailure, TaskRunner
from projman.steps import Executor, StepContext, StepExecutionError, SubprocessExecutor
from projman.tasks import build_default_graph

logger = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def exit_status(returncode: int) -> int:
    """Map a child's return code to a shell-style exit status (signal N -> 128+N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode or 1


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    return {
        "project_name": args.project_name,
        "python_interpreter_path": args.python,
        "environment_dir_name": args.venv,
        "container_image_tag": args.image,
        "changelog_path": args.changelog,
    }


def build_runner(config: ProjectConfig, project_dir: Path, executor: Executor | None = None) -> TaskRunner:
    graph = build_default_graph(config.scaffold_dirs)
    context = StepContext(
        project_dir=project_dir,
        log=FileExecutionLog(project_dir / config.changelog_path),
        executor=executor or SubprocessExecutor(),
        variables=config.variables(project_dir),
        venv_dir=config.venv_dir(project_dir),
    )
    return TaskRunner(graph, context)


def run_cmd(args: argparse.Namespace, executor: Executor | None = None) -> int:
    project_dir = Path(args.project_dir).resolve()
    config = load_config(project_dir=project_dir, config_path=args.config, overrides=_overrides(args))
    runner = build_runner(config, project_dir, executor)

    names = ["help"] if args.list else (args.tasks or ["all"])
    result = runner.run(*names)
    logger.debug("Executed tasks: %s", ", ".join(result.executed))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="projman", description="projman - project management task runner")
    p.add_argument("tasks", nargs="*", metavar="TASK", help="Tasks to run (default: all)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-l", "--list", action="store_true", help="List available tasks (same as the `help` task)")
    p.add_argument("-C", "--project-dir", default=".", help="Project directory to operate in (default: .)")
    p.add_argument("--config", default=None, help="YAML config file (default: projman.yaml in the project dir)")

    p.add_argument("--project-name", default=None, help="Project name (default: myproject)")
    p.add_argument("--python", default=None, help="Interpreter used to create the environment (default: python3)")
    p.add_argument("--venv", default=None, help="Environment directory name (default: venv)")
    p.add_argument("--image", default=None, help="Container image tag (default: <project-name>:latest)")
    p.add_argument("--changelog", default=None, help="Changelog file actions are appended to (default: CHANGELOG.md)")

    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    return p


def main(argv: list[str] | None = None, executor: Executor | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        return run_cmd(args, executor)
    except (StepExecutionError, PrerequisiteFailure) as e:
        logger.error("%s", e)
        return exit_status(e.returncode)
    except (TaskGraphError, ConfigError, RenderError) as e:
        # UnknownTaskError is a TaskGraphError; nothing has run at this point.
        if isinstance(e, UnknownTaskError):
            logger.error("%s (use --list to see available tasks)", e)
        else:
            logger.error("%s", e)
        return EXIT_USAGE
    except KeyboardInterrupt:
        logger.error("Interrupted.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
