"""Logging setup for the command line entry point.

Modules log through ``logging.getLogger(__name__)``. ``setup_logging`` attaches
a colored console handler and, when enabled, a per-day file under the logs
directory. Calling it again only changes the console level.
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from ..config import get_settings

_console_handler: Optional[logging.Handler] = None


class ColoredFormatter(logging.Formatter):
    """Colors the level name for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        record.levelname_colored = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging; ``level`` overrides the configured console level."""
    global _console_handler

    settings = get_settings()
    console_level = getattr(logging, (level or settings.log_level).upper())

    if _console_handler is not None:
        _console_handler.setLevel(console_level)
        return

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setLevel(console_level)
    _console_handler.setFormatter(ColoredFormatter(
        "%(asctime)s | %(levelname_colored)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    ))
    root.addHandler(_console_handler)

    if settings.log_to_file:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = settings.logs_dir / f"sports_edge_{datetime.now():%Y-%m-%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(file_handler)
