"""Colored console formatter for human-readable log lines.

Colors are applied only when the target stream is a terminal, and the
NO_COLOR / FORCE_COLOR conventions are respected.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Literal, TextIO


class ANSIColors:
    """ANSI escape sequences used for level colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    BRIGHT_RED = "\033[91m"


LEVEL_COLORS: dict[str, str] = {
    "DEBUG": ANSIColors.CYAN,
    "INFO": ANSIColors.GREEN,
    "WARNING": ANSIColors.YELLOW,
    "ERROR": ANSIColors.RED,
    "CRITICAL": ANSIColors.BRIGHT_RED + ANSIColors.BOLD,
}


def should_colorize(stream: TextIO | None) -> bool:
    """Decide whether ANSI colors should be written to ``stream``.

    NO_COLOR (any value) disables colors, FORCE_COLOR enables them, otherwise
    colors are used only for TTY streams.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    if stream is None:
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # Closed stream
        return False


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that colors the level name and appends run context.

    Records carrying a ``run_id`` (see ``ContextInjectingFilter``) get a
    ``[run=<id>]`` suffix so interleaved lines of concurrent runs stay
    attributable.

    Example:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColoredConsoleFormatter(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
        colorize: bool | None = None,
        level_colors: dict[str, str] | None = None,
        stream: Any = None,
    ) -> None:
        super().__init__(fmt, datefmt, style)
        self._colorize = colorize
        self._level_colors = level_colors or LEVEL_COLORS.copy()
        self._stream = stream

    def should_use_color(self) -> bool:
        if self._colorize is not None:
            return self._colorize
        return should_colorize(self._stream if self._stream is not None else sys.stderr)

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        level_color = self._level_colors.get(record.levelname, "")
        if level_color and self.should_use_color():
            record.levelname = f"{level_color}{record.levelname}{ANSIColors.RESET}"
        try:
            formatted = super().format(record)
        finally:
            record.levelname = original_levelname

        run_id = getattr(record, "run_id", None)
        if run_id:
            first, sep, rest = formatted.partition("\n")
            formatted = f"{first} [run={run_id}]{sep}{rest}"
        return formatted
