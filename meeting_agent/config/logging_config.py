"""
Logging setup for the meeting voice agent.

All modules log through the single application logger named by LOGGER_NAME.
Records go to stdout and, unless LOG_TO_FILE is switched off, to a size-rotated
file under LOG_DIR. Calling ``configure_logging`` again replaces the handlers
instead of stacking new ones, so the server entry point and run.py can both call it.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from meeting_agent.config.constants import LOGGER_NAME

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() not in ("0", "false", "no")
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE = LOG_DIR / "meeting_agent.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5


def _resolve_level(level: Optional[str]) -> int:
    return getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)


def _console_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    return handler


def _file_handler(formatter: logging.Formatter) -> logging.Handler:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: str = None) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        level: Level name overriding the LOG_LEVEL environment variable

    Returns:
        logging.Logger: The configured application logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_level(level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    logger.addHandler(_console_handler(formatter))

    if LOG_TO_FILE:
        try:
            logger.addHandler(_file_handler(formatter))
        except OSError as e:
            logger.warning(f"File logging disabled, cannot write to {LOG_FILE}: {e}")

    # uvicorn configures the root logger; keep our records out of it
    logger.propagate = False

    logger.debug(f"Logging configured at level {logging.getLevelName(logger.level)}")
    return logger
