"""Logging bootstrap.

The TUI owns the terminal, so records go to a rotating log file. A stderr
handler is attached for the startup phase only and removed once the live
screen takes over.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "t9s_core"


def _parse_level(raw: str | None) -> int:
    normalized = str(raw or "INFO").strip().upper()
    level = logging.getLevelName(normalized)
    return level if isinstance(level, int) else logging.INFO


def default_log_path() -> Path:
    log_dir = Path(os.environ.get("T9S_LOG_DIR", os.path.expanduser("~/.local/share/t9s/logs")))
    return log_dir / "t9s.log"


def configure(log_path: Path | None = None) -> logging.Handler:
    """Wire file + stderr handlers; return the stderr handler so callers can detach it."""
    level = _parse_level(os.environ.get("T9S_LOG_LEVEL"))
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    path = log_path or default_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.WARNING)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(stream_handler)
    return stream_handler


def detach(handler: logging.Handler) -> None:
    logging.getLogger(ROOT_LOGGER).removeHandler(handler)
