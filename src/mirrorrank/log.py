# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for mirrorrank."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

DEFAULT_LOG_LEVEL = os.getenv("MIRRORRANK_LOG_LEVEL", "INFO").upper()

_RESET = "\033[0m"
_LEVEL_STYLES = {
    logging.DEBUG: ("\033[0;34m", "DEBUG"),
    logging.INFO: ("\033[0;32m", "INFO"),
    logging.WARNING: ("\033[1;33m", "WARN"),
    logging.ERROR: ("\033[0;31m", "ERROR"),
    logging.CRITICAL: ("\033[0;31m", "ERROR"),
}
_HANDLER_MARKER = "_mirrorrank_handler"
# Transport libraries that log every request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


class LevelFormatter(logging.Formatter):
    """Render records as `[LEVEL] message`, optionally colored and prefixed with a timestamp."""

    def __init__(self, color: bool = False, timestamps: bool = False):
        super().__init__(fmt="%(message)s", datefmt="%Y-%m-%dT%H:%M:%S%z")
        self.color = color
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        color, label = _LEVEL_STYLES.get(record.levelno, ("", record.levelname))
        message = super().format(record)
        line = f"{color}[{label}]{_RESET} {message}" if self.color else f"[{label}] {message}"
        if self.timestamps:
            return f"{self.formatTime(record, self.datefmt)} {line}"
        return line


def _stream_supports_color(stream) -> bool:  # noqa: ANN001
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(level: str | None = None, log_file: str | None = None, color: bool | None = None) -> None:
    """
    Configure root logging for CLI/library use.

    Console messages are leveled (and colored on a TTY). When `log_file` is
    given the same messages are mirrored into it in append mode, so the run log
    keeps a copy of every warning and error shown to the user.
    """
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, effective_level, logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(sys.stderr)
    use_color = _stream_supports_color(sys.stderr) if color is None else color
    console.setFormatter(LevelFormatter(color=use_color))
    setattr(console, _HANDLER_MARKER, True)
    root.addHandler(console)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            # Console-only; pre-flight reports the unusable output directory.
            return
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8", delay=True)
        file_handler.setFormatter(LevelFormatter(color=False, timestamps=True))
        setattr(file_handler, _HANDLER_MARKER, True)
        root.addHandler(file_handler)


__all__ = ["LevelFormatter", "setup_logging"]
