"""Structured logging infrastructure.

Console logs go to stderr so that stdout only carries the health report
(which may be JSON consumed by another tool).

Modules only call logging.getLogger(__name__) at import time; handlers are
installed by setup_logging once settings have loaded inside the CLI run.

Usage:
    from service_health.utils import setup_logging

    setup_logging(level="DEBUG")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from ..config import get_settings

# Track if logging has been set up
_logging_configured = False
_console_handler: Optional[logging.Handler] = None


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        record.levelname_colored = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


def setup_logging(
    name: str = "service_health",
    level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_dir: Optional[Path] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure logging with console and optional file output.

    Calling this again after the first setup only adjusts the console level,
    so the CLI can raise verbosity after modules grabbed their loggers.

    Args:
        name: Logger name (usually module __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        log_to_file: Whether to write to file. Defaults to settings.
        log_dir: Directory for log files. Defaults to settings.
        stream: Console stream. Defaults to stderr.

    Returns:
        Configured logger instance
    """
    global _logging_configured, _console_handler

    settings = get_settings()

    level = level or settings.log_level
    log_to_file = log_to_file if log_to_file is not None else settings.log_to_file
    log_dir = log_dir or settings.logs_dir

    logger = logging.getLogger(name)

    if _logging_configured:
        if _console_handler is not None:
            _console_handler.setLevel(getattr(logging, level.upper()))
        return logger

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_format = ColoredFormatter(
        "%(asctime)s | %(levelname_colored)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S"
    )
    console_handler.setFormatter(console_format)
    root_logger.addHandler(console_handler)
    _console_handler = console_handler

    # File handler (daily rotation by filename)
    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"service_health_{datetime.now():%Y-%m-%d}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_format)
        root_logger.addHandler(file_handler)

    _logging_configured = True

    return logger
