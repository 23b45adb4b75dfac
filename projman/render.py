"""
render.py

Responsibility: Render command templates and the task summary with Jinja2.

Rules:
- Undefined variables are errors (StrictUndefined); a typo in a command
  template must fail loudly rather than run a truncated command.
- Text without Jinja2 markers is returned unchanged.
- Rendering is deterministic; the help table lists tasks in graph order.

This module intentionally does NOT know about subprocesses or the runner.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError


class RenderError(RuntimeError):
    pass


_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)

HELP_TEMPLATE = """\
Available tasks:
{% for name, description in rows -%}
{{ "  %-*s - %s"|format(width, name, description) }}
{% endfor %}"""


def _has_markers(text: str) -> bool:
    return ("{{" in text) or ("{%" in text) or ("{#" in text)


def render_text(text: str, context: Mapping[str, Any]) -> str:
    if not _has_markers(text):
        return text
    try:
        return _env.from_string(text).render(**context)
    except TemplateError as e:
        raise RenderError(f"Failed rendering template: {text!r}: {e}") from e


def render_argv(argv: Iterable[str], context: Mapping[str, Any]) -> list[str]:
    """Render every argument of a command line against `context`."""
    return [render_text(arg, context) for arg in argv]


def render_help(rows: Iterable[tuple[str, str]]) -> str:
    """
    Render the task summary table from (name, description) rows.
    """
    rows = list(rows)
    width = max((len(name) for name, _ in rows), default=0)
    return _env.from_string(HELP_TEMPLATE).render(rows=rows, width=width)
