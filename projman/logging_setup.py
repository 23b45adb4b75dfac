"""
logging_setup.py

Responsibility: Configure console logging for the CLI.

Call `setup_logging()` once, early, before the first log record is emitted.
"""

from __future__ import annotations

import logging
import sys

CYAN = "\033[0;36m"
NO_COLOR = "\033[0m"


class _ConsoleFormatter(logging.Formatter):
    """
    Plain messages for INFO (task banners and reports read like shell output);
    level-prefixed messages for everything else.

    Records logged with `extra={"banner": True}` are shown in cyan when
    `color` is set.
    """

    def __init__(self, *, color: bool = False) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if record.levelno == logging.INFO:
            if self.color and getattr(record, "banner", False):
                return f"{CYAN}{msg}{NO_COLOR}"
            return msg
        if record.exc_info and record.levelno >= logging.ERROR:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"
        return f"{record.levelname.lower()}: {msg}"


def _is_tty(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(level: int | str = logging.INFO) -> None:
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(_ConsoleFormatter(color=_is_tty(sys.stderr)))
    root.addHandler(ch)

    logging.captureWarnings(True)
