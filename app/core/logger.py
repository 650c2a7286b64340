"""
Logging configuration for the admin plane.

Every module asks for its logger through ``get_logger(__name__)`` so that
handlers are only attached once per logger name. Loggers are created at
import time from the LOG_LEVEL / LOG_FILE environment; ``configure_logging``
re-applies the values from Settings (which also reads ``.env``) once the app
is built.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Set

DEFAULT_LOGGER_NAME = "admin-plane"

_options = {
    "level": os.environ.get("LOG_LEVEL", "INFO"),
    "log_file": os.environ.get("LOG_FILE"),
}
_logger_names: Set[str] = set()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name. If None, uses the default service name.

    Returns:
        Configured logger instance.
    """
    if name is None:
        name = DEFAULT_LOGGER_NAME

    logger_instance = logging.getLogger(name)

    if not logger_instance.handlers:
        configure_logger(logger_instance)
    _logger_names.add(name)

    return logger_instance


def configure_logger(logger_instance: logging.Logger) -> None:
    """
    Attach a stdout handler, plus a file handler when a log file is set.

    Args:
        logger_instance: Logger instance to configure.
    """
    level = str(_options["level"] or "INFO").upper()
    logger_instance.setLevel(getattr(logging, level, logging.INFO))
    logger_instance.propagate = False

    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s'
    )

    log_file = _options["log_file"]
    if log_file:
        try:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path)
            file_handler.setFormatter(formatter)
            logger_instance.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, just use console
            print(f"Warning: Could not set up file logging: {e}", file=sys.stderr)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger_instance.addHandler(console_handler)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Apply a level and optional log file to every logger handed out so far,
    and to the ones created afterwards.

    Args:
        level: Logging level name, e.g. "DEBUG".
        log_file: Path of a log file, or None for stdout only.
    """
    _options["level"] = level
    _options["log_file"] = log_file

    for name in _logger_names:
        logger_instance = logging.getLogger(name)
        for handler in list(logger_instance.handlers):
            logger_instance.removeHandler(handler)
            handler.close()
        configure_logger(logger_instance)


__all__ = ["get_logger", "configure_logger", "configure_logging"]
