"""
Logging setup for dotfetch.

One package logger with a rich console handler. Commands adjust the level with
set_log_level() and may add a rotating log file with add_file_logging().
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from dotfetch.constants import (
    DEBUG_LOG_FORMAT,
    INFO_LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_NAME,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

_file_handler: Optional[RotatingFileHandler] = None


def _resolve_level(level_name: str) -> Optional[int]:
    level = getattr(logging, level_name.upper(), None)
    return level if isinstance(level, int) else None


def _formatter_for(handler: logging.Handler, level: int) -> logging.Formatter:
    # Rich renders time and level itself
    if isinstance(handler, RichHandler):
        return logging.Formatter("%(message)s")
    fmt = DEBUG_LOG_FORMAT if level < logging.INFO else INFO_LOG_FORMAT
    return logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT)


def _apply_level(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(_formatter_for(handler, level))


def set_log_level(level_name: str) -> None:
    """
    Set the dotfetch logger and every attached handler to `level_name`.

    Unknown level names are reported and ignored.
    """
    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Invalid log level name: {level_name}. Using current level.")
        return

    logger.setLevel(level)
    for handler in logger.handlers:
        _apply_level(handler, level)
    logger.debug(f"Log level set to {logging.getLevelName(level)}")


def add_file_logging(log_dir_path: Path, level_name: str = "INFO") -> None:
    """
    Write log records to `dotfetch.log` under `log_dir_path` as well as the console.

    Calling it again replaces the previous file handler. An unknown level
    name falls back to INFO.
    """
    global _file_handler
    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Invalid file log level name: {level_name}. Defaulting to INFO.")
        level = logging.INFO

    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file = log_dir_path / LOG_FILE_NAME
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    _apply_level(handler, level)

    if logger.level > level:
        logger.setLevel(level)
    logger.addHandler(handler)
    _file_handler = handler
    logger.debug(f"Writing {logging.getLevelName(level)} logs to {log_file}")


def _initialize_logger() -> None:
    """Replace any handlers with a single console handler at the level from DOTFETCH_LOG_LEVEL."""
    global _file_handler
    _file_handler = None
    logger.propagate = False
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    level = _resolve_level(level_name)

    console = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        log_time_format=LOG_DATE_FORMAT,
    )
    _apply_level(console, level if level is not None else logging.INFO)
    logger.addHandler(console)
    logger.setLevel(console.level)

    if level is None:
        logger.warning(f"Invalid {LOG_LEVEL_ENV_VAR}={level_name}; defaulting to INFO.")


_initialize_logger()
