# flowhub/utils/logger.py
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

ROOT_LOGGER = "flowhub"

_FMT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_COLORS = (
    (logging.ERROR, "\033[91m"),    # red
    (logging.WARNING, "\033[93m"),  # yellow
    (logging.INFO, "\033[92m"),     # green
)


def parse_level(name: str) -> int:
    """Level number for a name like "debug"; unknown names fall back to INFO."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def env_level(default: str = "INFO") -> int:
    """Read LOG_LEVEL from env."""
    return parse_level(os.getenv("LOG_LEVEL", default))


class _ColorFormatter(logging.Formatter):
    """ANSI colors by level, only when the target stream is a terminal."""

    def __init__(self, stream: TextIO, **kwargs):
        super().__init__(**kwargs)
        self._tty = hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if not self._tty:
            return msg
        for threshold, color in _COLORS:
            if record.levelno >= threshold:
                return f"{color}{msg}\033[0m"
        return msg


def init_logger(
    level: int | None = None,
    stream: TextIO | None = None,
    log_dir: str | Path | None = None,
    file_name: str = "flowhub.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> logging.Logger:
    """
    Configure the project logger:
      - colored stream handler (stderr by default, so CLI output on stdout stays clean)
      - optional rotating file handler under `log_dir`
    Calling it again replaces the previous handlers.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level if level is not None else env_level())

    out = stream if stream is not None else sys.stderr
    sh = logging.StreamHandler(out)
    sh.setFormatter(_ColorFormatter(out, fmt=_FMT, datefmt=_DATEFMT))
    logger.addHandler(sh)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            filename=str(log_dir / file_name),
            maxBytes=file_max_mb * 1024 * 1024,
            backupCount=file_backup,
            encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter(fmt=_FMT, datefmt=_DATEFMT))
        logger.addHandler(fh)

    return logger


def get_logger(child: str) -> logging.Logger:
    """Child logger under the project logger, e.g. get_logger("registry.store")."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
