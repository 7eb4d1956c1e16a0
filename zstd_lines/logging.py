"""
Structured JSON logger for zstd_lines.

Each component logs to ``<log dir>/<name>.jsonl`` at DEBUG and up, and to
stderr at INFO and up.  Files rotate at 10 MB, keeping 5 backups, and are
only created once something is actually written.

The log directory defaults to ``./logs``.  :func:`set_log_dir` moves it;
``zstd_lines.config`` calls it with ``paths.logs_dir`` once config.json is
loaded.
"""

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Union

DEFAULT_LOG_DIR = Path("logs")

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5
_CONSOLE_FMT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
_ROOT_NAME = "zstd_lines"

_log_dir = DEFAULT_LOG_DIR
_file_handlers: Dict[str, "JsonlFileHandler"] = {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class JsonlFileHandler(RotatingFileHandler):
    """Rotating ``.jsonl`` handler that creates its directory on first write."""

    def __init__(self, filename: Path):
        super().__init__(filename, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, delay=True)
        self.setLevel(logging.DEBUG)
        self.setFormatter(JsonFormatter())

    def retarget(self, filename: Path) -> bool:
        """Point the handler at *filename* if it has not opened a file yet."""
        if self.stream is not None:
            return False
        self.baseFilename = os.path.abspath(filename)
        return True

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def log_dir() -> Path:
    return _log_dir


def set_log_dir(path: Union[str, Path]) -> None:
    """
    Send file logs to *path* from now on.

    Loggers that have not written anything yet follow the move; a logger
    whose file is already open keeps writing there.
    """
    global _log_dir
    _log_dir = Path(path)
    for name, handler in _file_handlers.items():
        handler.retarget(_log_dir / f"{name}.jsonl")


def get_logger(name: str, *, console: bool = True) -> logging.Logger:
    """
    Return the ``zstd_lines.<name>`` logger, setting it up on first use.

    Repeated calls return the same logger without adding handlers.
    Loggers do not propagate, so caller logging setups are left alone.
    """
    logger = logging.getLogger(f"{_ROOT_NAME}.{name}")
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    handler = JsonlFileHandler(_log_dir / f"{name}.jsonl")
    _file_handlers[name] = handler
    logger.addHandler(handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FMT))
        logger.addHandler(console_handler)

    return logger
