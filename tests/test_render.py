# tests/test_render.py

from __future__ import annotations

import pytest

from projman.render import RenderError, render_argv, render_help, render_text


def test_plain_text_untouched() -> None:
    assert render_text("pip install -r requirements.txt", {}) == "pip install -r requirements.txt"


def test_render_argv() -> None:
    argv = render_argv(["{{ docker }}", "build", "-t", "{{ image }}", "."], {"docker": "podman", "image": "x:1"})
    assert argv == ["podman", "build", "-t", "x:1", "."]


def test_strict_undefined() -> None:
    with pytest.raises(RenderError):
        render_text("{{ missing }}", {})


def test_help_table_is_aligned() -> None:
    out = render_help([("setup", "Set up"), ("docker-build", "Build image")])
    assert out == "Available tasks:\n  setup        - Set up\n  docker-build - Build image\n"
