"""
Logging setup for Book Studio.

Every module logs through `get_logger(__name__)`. Loggers get a console
handler and a rotating file handler under the project's logs/ directory.
"""
import os
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Set

from .constants import (
    LOG_LEVEL, LOG_FORMAT, LOG_FILE,
    LOG_MAX_SIZE_MB, LOG_BACKUP_COUNT
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Libraries that log every request at INFO
NOISY_LOGGERS = ('httpx', 'httpcore')

_console_level = logging.INFO
_configured: Set[str] = set()


def _log_path() -> Path:
    path = Path(os.getenv('BOOKSTUDIO_LOG_FILE', LOG_FILE))
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def setup_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get or create a configured logger.

    Usage:
        from config.logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Saved chapter 3")

    The level comes from the LOG_LEVEL environment variable when set.
    """
    logger = logging.getLogger(name or 'bookstudio')
    if logger.handlers:
        return logger

    level = os.getenv('LOG_LEVEL', LOG_LEVEL).upper()
    logger.setLevel(getattr(logging, level, logging.INFO))

    console = logging.StreamHandler()
    console.setLevel(_console_level)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    log_path = _log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    # Records are handled here; the root logger would print them twice
    logger.propagate = False
    _configured.add(logger.name)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Alias for setup_logger."""
    return setup_logger(name)


def set_console_level(level: int) -> None:
    """Change console verbosity for every logger created here (CLI --verbose)."""
    global _console_level
    _console_level = level
    for name in _configured:
        logger = logging.getLogger(name)
        if level < logger.level:
            logger.setLevel(level)
        for handler in logger.handlers:
            if not isinstance(handler, logging.handlers.RotatingFileHandler):
                handler.setLevel(level)


for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

logger = setup_logger('bookstudio')
