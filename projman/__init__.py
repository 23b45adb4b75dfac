"""
projman package

This package implements a project-management task runner as a CLI-first utility.

Key responsibilities are split across modules:
- `graph.py`: the immutable task graph and prerequisite resolution
- `steps.py`: step types, run-time preconditions and the subprocess executor
- `runner.py`: executes resolved tasks once each, fail-fast
- `tasks.py`: the default tasks (setup, venv, install, build, test, ...)
- `config.py`: project settings from defaults, projman.yaml and CLI flags
- `changelog.py`: the append-only execution log
- `cli.py`: CLI entrypoint and exit-code mapping
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
