"""
tasks.py

Responsibility: The default task graph for managing a Python project.

Command arguments are Jinja2 templates rendered against
`ProjectConfig.variables()` when the step runs, so the graph itself does not
depend on a particular configuration. Filesystem checks (manifest present,
tests directory present, ...) are preconditions evaluated at run time.
"""

from __future__ import annotations

from projman.graph import Task, TaskGraph
from projman.render import render_help
from projman.steps import (
    Command,
    Conditional,
    DirExists,
    Echo,
    FileExists,
    MakeDirs,
    NotImplementedStep,
    Print,
    RemovePaths,
)

# Directories and files `clean` removes from the project root.
CLEAN_PATTERNS = ("build", "dist", "*.egg-info", ".pytest_cache")
# The environment may live outside the project or contain glob metacharacters.
CLEAN_LITERAL = ("{{ venv }}",)
CLEAN_RECURSIVE = ("*.pyc", "__pycache__")

NO_MANIFEST = "No {{ requirements_file }} or {{ setup_file }} found."


def _install_branches(*, upgrade: bool) -> Conditional:
    flag = ("--upgrade",) if upgrade else ()
    if upgrade:
        req_log = "- Updated dependencies from {{ requirements_file }}"
        setup_log = "- Updated project dependencies"
    else:
        req_log = "- Installed dependencies from {{ requirements_file }}"
        setup_log = "- Installed project in editable mode"
    return Conditional(
        branches=(
            (
                FileExists("{{ requirements_file }}"),
                (Command(("{{ venv_pip }}", "install", *flag, "-r", "{{ requirements_file }}"), log=(req_log,), in_venv=True),),
            ),
            (
                FileExists("{{ setup_file }}"),
                (Command(("{{ venv_pip }}", "install", *flag, "-e", "."), log=(setup_log,), in_venv=True),),
            ),
        ),
        otherwise=NO_MANIFEST,
    )


def default_tasks(scaffold_dirs: tuple[str, ...] = ("src", "tests", "docs")) -> list[Task]:
    tasks = [
        Task(
            "all",
            prerequisites=("setup", "venv", "install", "build", "test"),
            description="Set up, install, build and test the project",
        ),
        Task(
            "setup",
            steps=(
                MakeDirs(
                    scaffold_dirs,
                    log=("### Added", "- Initial project structure ({{ scaffold_dirs }} directories)"),
                ),
                Echo("Project setup complete."),
            ),
            description="Set up the initial project structure",
            banner="Setting up the project...",
        ),
        Task(
            "venv",
            steps=(
                Command(("{{ python }}", "-m", "venv", "{{ venv }}"), log=("- Created virtual environment",)),
                Echo("Virtual environment created. Activate with 'source {{ venv_activate }}'"),
            ),
            description="Create a virtual environment",
            banner="Creating virtual environment...",
        ),
        Task(
            "install",
            prerequisites=("venv",),
            steps=(_install_branches(upgrade=False),),
            description="Install project dependencies in the virtual environment",
            banner="Installing dependencies...",
        ),
        Task(
            "update",
            prerequisites=("venv",),
            steps=(_install_branches(upgrade=True),),
            description="Update project dependencies in the virtual environment",
            banner="Updating dependencies...",
        ),
        Task(
            "build",
            prerequisites=("venv",),
            steps=(
                Conditional(
                    branches=(
                        (
                            FileExists("{{ setup_file }}"),
                            (Command(("{{ venv_python }}", "{{ setup_file }}", "build"), log=("- Built the project",), in_venv=True),),
                        ),
                    ),
                    otherwise="No build process defined.",
                ),
            ),
            description="Build the project using the virtual environment",
            banner="Building the project...",
        ),
        Task(
            "test",
            prerequisites=("venv",),
            steps=(
                Conditional(
                    branches=(
                        (
                            DirExists("{{ tests_dir }}"),
                            (Command(("{{ venv_python }}", "-m", "pytest", "{{ tests_dir }}"), log=("- Ran test suite",), in_venv=True),),
                        ),
                    ),
                    otherwise="No tests found.",
                ),
            ),
            description="Run tests using the virtual environment",
            banner="Running tests...",
        ),
        Task(
            "run",
            prerequisites=("venv",),
            steps=(
                Conditional(
                    branches=(
                        (FileExists("{{ entry_point }}"), (Command(("{{ venv_python }}", "{{ entry_point }}"), in_venv=True),)),
                    ),
                    otherwise="No run command defined.",
                ),
            ),
            description="Run the project using the virtual environment",
            banner="Running the project...",
        ),
        Task(
            "clean",
            steps=(
                RemovePaths(
                    CLEAN_PATTERNS,
                    CLEAN_RECURSIVE,
                    literal=CLEAN_LITERAL,
                    log=("- Cleaned build artifacts and virtual environment",),
                ),
            ),
            description="Clean build artifacts and remove virtual environment",
            banner="Cleaning build artifacts and virtual environment...",
        ),
        Task(
            "docker-build",
            steps=(Command(("{{ docker }}", "build", "-t", "{{ image }}", "."), log=("- Built Docker image",)),),
            description="Build Docker image",
            banner="Building Docker image...",
        ),
        Task(
            "docker-run",
            steps=(Command(("{{ docker }}", "run", "-it", "--rm", "{{ image }}")),),
            description="Run Docker container",
            banner="Running Docker container...",
        ),
        Task(
            "deploy",
            steps=(
                NotImplementedStep(
                    "Deployment process not defined. Please implement your deployment strategy.",
                    log=("- Attempted deployment (process not defined)",),
                ),
            ),
            description="Deploy the project (placeholder)",
            banner="Deploying the project...",
        ),
    ]

    rows = [(t.name, t.description) for t in tasks if t.name != "all"]
    rows.append(("help", "Show this help message"))
    tasks.append(Task("help", steps=(Print(render_help(rows)),), description="Show this help message"))
    return tasks


def build_default_graph(scaffold_dirs: tuple[str, ...] = ("src", "tests", "docs")) -> TaskGraph:
    return TaskGraph(default_tasks(scaffold_dirs))
