from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from colorama import just_fix_windows_console

LOGGER_NAME = "file_sync"

LOG_MAX_BYTES = 30 * 1024 * 1024
LOG_BACKUPS = 10

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# -------------------------
# Console styling
# -------------------------

RESET = "\x1b[0m"

# Action tag -> colour. Anything ending in _FAIL is drawn in the ERROR colour.
ACTION_COLORS = {
    "COPY": "\x1b[32m",
    "DELETE": "\x1b[38;5;208m",
    "ANOMALY": "\x1b[38;5;208m",
    "SURVEY": "\x1b[33m",
    "SKIP": "\x1b[33m",
}
LEVEL_COLORS = {
    logging.WARNING: "\x1b[38;5;208m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[31m",
}
PATH_COLOR = "\x1b[97m"


class ColorizingFormatter(logging.Formatter):
    """Colours the action tag, the level name and the path of a log_action record."""

    def __init__(self, use_color: bool, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    @staticmethod
    def _paint(text: str, part: str, color: str) -> str:
        if not color or part not in text:
            return text
        return text.replace(part, f"{color}{part}{RESET}", 1)

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        if not self.use_color:
            return base

        level_color = LEVEL_COLORS.get(record.levelno, "")
        base = self._paint(base, f"| {record.levelname} |", level_color)

        action = getattr(record, "action", None)
        if action:
            color = LEVEL_COLORS[logging.ERROR] if action.endswith("_FAIL") else ACTION_COLORS.get(action, "")
            base = self._paint(base, f"{action} |", color)

        path_text = getattr(record, "path_text", None)
        if path_text:
            base = self._paint(base, path_text, PATH_COLOR)
        return base


def setup_logger(log_dir: Path, log_name: str, verbose: bool = False) -> logging.Logger:
    """
    Configure the agent logger: a rotating plain-text file under log_dir and
    a stdout stream, coloured when stdout is a terminal. A second call keeps
    the existing handlers and only applies the new level to all of them.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / log_name
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    just_fix_windows_console()

    fh = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    fh.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    fh.setLevel(level)

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    use_color = bool(getattr(sys.stdout, "isatty", None) and sys.stdout.isatty())
    ch.setFormatter(ColorizingFormatter(use_color=use_color, fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.info("Logging to: %s", log_path)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_action(
    logger: logging.Logger,
    action: str,
    message: str,
    path: Optional[Path] = None,
    level: int = logging.INFO,
) -> None:
    extra = {"action": action}
    if path is not None:
        extra["path_text"] = str(path)
    logger.log(level, f"{action} | {message}", extra=extra)
