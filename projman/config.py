"""
config.py

Responsibility: Load project settings into a deterministic, typed model.

Settings come from (lowest to highest precedence):
- built-in defaults (the conventional names: `myproject`, `python3`, `venv`)
- an optional YAML file (`projman.yaml` in the project directory)
- CLI overrides

Unknown keys are rejected so a misspelled option does not silently fall back
to a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILE = "projman.yaml"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ProjectConfig:
    """Names and paths the default tasks operate on."""

    project_name: str = "myproject"
    python_interpreter_path: str = "python3"
    environment_dir_name: str = "venv"
    container_image_tag: str | None = None
    changelog_path: str = "CHANGELOG.md"
    docker: str = "docker"
    scaffold_dirs: tuple[str, ...] = ("src", "tests", "docs")
    requirements_file: str = "requirements.txt"
    setup_file: str = "setup.py"
    tests_dir: str = "tests"
    entry_point: str = "main.py"

    @property
    def image(self) -> str:
        return self.container_image_tag or f"{self.project_name}:latest"

    def venv_dir(self, project_dir: Path) -> Path:
        return (project_dir / self.environment_dir_name).resolve()

    def variables(self, project_dir: Path) -> dict[str, Any]:
        """
        Template variables available to command templates.
        """
        venv = self.venv_dir(project_dir)
        scripts = venv / ("Scripts" if os.name == "nt" else "bin")
        exe = ".exe" if os.name == "nt" else ""
        return {
            "project_name": self.project_name,
            "python": self.python_interpreter_path,
            "venv": self.environment_dir_name,
            "venv_python": str(scripts / f"python{exe}"),
            "venv_pip": str(scripts / f"pip{exe}"),
            "venv_activate": str(Path(self.environment_dir_name) / scripts.name / "activate"),
            "image": self.image,
            "docker": self.docker,
            "changelog": self.changelog_path,
            "scaffold_dirs": ", ".join(self.scaffold_dirs),
            "requirements_file": self.requirements_file,
            "setup_file": self.setup_file,
            "tests_dir": self.tests_dir,
            "entry_point": self.entry_point,
        }


_KNOWN_KEYS = {f.name for f in fields(ProjectConfig)}


def _coerce(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        key = str(key).replace("-", "_")
        if key not in _KNOWN_KEYS:
            raise ConfigError(f"Unknown configuration option: {key!r}")
        if key == "scaffold_dirs":
            if isinstance(value, str):
                value = value.replace(",", " ").split()
            if not isinstance(value, (list, tuple)):
                raise ConfigError("`scaffold_dirs` must be a list of directory names.")
            out[key] = tuple(str(v).strip() for v in value if str(v).strip())
            continue
        if value is None:
            if key == "container_image_tag":
                out[key] = None
                continue
            raise ConfigError(f"`{key}` must not be empty.")
        if isinstance(value, (dict, list)):
            raise ConfigError(f"`{key}` must be a scalar value.")
        text = str(value).strip()
        if not text:
            raise ConfigError(f"`{key}` must not be empty.")
        out[key] = text
    return out


def parse_config_file(path: str | Path) -> dict[str, Any]:
    """
    Parse a YAML config file into a dict of recognized options.

    The file may be empty; otherwise its top level must be a mapping.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file does not exist: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")
    return _coerce(data)


def load_config(
    *,
    project_dir: str | Path = ".",
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ProjectConfig:
    """
    Build a `ProjectConfig` from defaults, an optional YAML file and overrides.

    If `config_path` is None, `projman.yaml` in `project_dir` is used when it
    exists. Overrides whose value is None are ignored.
    """
    cfg = ProjectConfig()

    if config_path is None:
        candidate = Path(project_dir) / DEFAULT_CONFIG_FILE
        if candidate.exists():
            config_path = candidate
    if config_path is not None:
        cfg = replace(cfg, **parse_config_file(config_path))

    if overrides:
        cleaned = {k: v for k, v in overrides.items() if v is not None}
        cfg = replace(cfg, **_coerce(cleaned))

    return cfg

