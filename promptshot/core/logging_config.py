"""
PromptShot Logging Configuration

All PromptShot loggers hang off the `promptshot` root logger, so one call to
setup_logging configures the engine, the gateway and the API together.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "promptshot"

# SDK and transport loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "urllib3")

_initialized: bool = False


def _build_handlers(
    formatter: logging.Formatter,
    log_file: Optional[Path],
    console_output: bool
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = True,
    console_output: bool = True
) -> None:
    """
    Configure the `promptshot` logger tree.

    Args:
        level: Minimum log level to capture
        log_file: Optional path to a log file, created with its parent directories
        verbose: Include line numbers and function names
        console_output: Also write to stdout
    """
    global _initialized

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(VERBOSE_FORMAT if verbose else DEFAULT_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(formatter, log_file, console_output):
        root_logger.addHandler(handler)
    root_logger.propagate = False

    # Keep SDK chatter out of the workflow log unless debugging
    noisy_level = logging.DEBUG if level == LogLevel.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    _initialized = True
    root_logger.debug(f"Logging initialized - Level: {level.name}, Verbose: {verbose}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the `promptshot` root, e.g. get_logger("workflow.engine").

    Logging is set up with defaults on first use.
    """
    if not _initialized:
        setup_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
