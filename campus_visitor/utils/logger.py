# =======================================================================================
# campus_visitor/utils/logger.py - Logging Setup
# =======================================================================================
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from ..config import config

LOGGER_NAME = "campus_visitor"


def setup_logger(
    name: str = LOGGER_NAME,
    log_file: Optional[str] = None,
    level: Optional[int] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the package logger with a console handler and, when a log file
    is given, a rotating file handler.

    Child loggers (``logging.getLogger(__name__)`` inside the package)
    propagate here, so this only needs to run once at startup.
    """
    if level is None:
        level = logging.DEBUG if config.API_DEBUG else getattr(logging, config.LOG_LEVEL, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = log_file or config.LOG_FILE
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
