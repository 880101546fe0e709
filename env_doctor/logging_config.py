"""
Logging setup for env-doctor.

Two kinds of records flow through the ``env_doctor`` logger:

- command traces (">> cmd", "-- stdout --", "-- exit -- 0") logged at DEBUG
  by ``common.vlog``; they are printed verbatim so a CI log reads like the
  commands were run by hand
- warnings and errors about configuration or a failed check, printed with a
  level prefix

Everything goes to stdout, interleaved with the report. An optional log file
receives all records with timestamps.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .common import env_flag


LOGGER_NAME = "env_doctor"
DEBUG_ENV = "ENV_DOCTOR_DEBUG"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_logger: Optional[logging.Logger] = None


def debug_enabled() -> bool:
    """True when ENV_DOCTOR_DEBUG=1 forces tracing on."""
    return env_flag(DEBUG_ENV)


def setup_logging(
    log_file: Optional[str] = None,
    verbose: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the env_doctor logger.

    Args:
        log_file: Also write every record to this file, with timestamps
        verbose: Show command traces on the console
        propagate: Pass records to the root logger (used by tests)

    Returns:
        Configured logger instance
    """
    global _logger

    trace = verbose or debug_enabled()
    console_level = logging.DEBUG if trace else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(console_level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stdout.isatty()))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = propagate

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the env_doctor logger, configuring defaults on first use."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


class ConsoleFormatter(logging.Formatter):
    """
    Plain text for traces, a coloured level prefix for everything else.
    """

    COLORS = {
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[1;31m", # Bold Red
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__("%(message)s")
        self.use_colors = use_colors

    def prefix(self, record: logging.LogRecord) -> str:
        label = f"[{record.levelname}]"
        if self.use_colors and record.levelname in self.COLORS:
            return f"{self.COLORS[record.levelname]}{label}{self.RESET}"
        return label

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno <= logging.DEBUG:
            return message
        return f"{self.prefix(record)} {message}"
