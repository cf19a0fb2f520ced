"""Colored logging formatter for console output."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PACKAGE_PREFIX = "podcast_player."


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name and dims the logger name.

    Logger names inside this package are shown without the package prefix.
    Colours are disabled when ``NO_COLOR`` is set or the stream is not a TTY.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",  # cyan
        logging.INFO: "\033[32m",  # green
        logging.WARNING: "\033[33m",  # yellow
        logging.ERROR: "\033[31m",  # red
        logging.CRITICAL: "\033[1;31m",  # bold red
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        *,
        stream: IO[str] | None = None,
        shorten_names: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt)
        self._stream = stream
        self._shorten_names = shorten_names

    def _use_color(self) -> bool:
        if os.environ.get("NO_COLOR") is not None:
            return False
        stream = self._stream or sys.stderr
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        color = self._use_color()
        shorten = self._shorten_names and record.name.startswith(_PACKAGE_PREFIX)
        if color or shorten:
            record = logging.makeLogRecord(record.__dict__)
        if shorten:
            record.name = record.name[len(_PACKAGE_PREFIX) :]
        if color:
            level_color = self.COLORS.get(record.levelno, "")
            record.levelname = f"{level_color}{record.levelname}{self.RESET}"
            record.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(record)
