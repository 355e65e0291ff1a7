"""Logging configuration for Longbox.

One call to `setup_logging()` wires up:
- a rotating file handler (`longbox.log` in DATA_DIR, 10MB x 5)
- a Rich console handler filtered by the requested level

The scanner logs one DEBUG line per archive. On large libraries that drowns
the log file, so those lines are kept only when `verbose_scan` is set.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


LOG_FILENAME = "longbox.log"
SCANNER_LOGGER = "longbox.scanner"
REQUEST_LOGGER = "longbox.request"

_logging_initialized = False


def _get_data_dir() -> Path:
    """Return the data directory (same as config.DATA_DIR without circular import)."""
    env = os.environ.get("DATA_DIR")
    if env:
        return Path(env)
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


def setup_logging(log_level: str = "INFO", verbose_scan: bool = False) -> None:
    """Initialize logging with file and console handlers.

    Args:
        log_level: Console logging level (DEBUG, INFO, WARNING, ERROR).
            The log file always receives DEBUG.
        verbose_scan: Keep the per-archive scanner lines.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    data_dir = _get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        data_dir / LOG_FILENAME,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
        # Library file names are not guaranteed to be valid UTF-8
        errors="backslashreplace",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    console = Console(theme=Theme({"logging.level.info": "bold cyan"}))
    console_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(numeric_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger(SCANNER_LOGGER).setLevel(logging.DEBUG if verbose_scan else logging.INFO)
    logging.getLogger(REQUEST_LOGGER).setLevel(logging.INFO)

    # Silence noisy third-party loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    _logging_initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the specified module."""
    return logging.getLogger(name)
