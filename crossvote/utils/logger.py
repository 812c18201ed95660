"""Logging configuration for Crossvote."""

import logging
import sys
from pathlib import Path
from typing import Optional

from crossvote.config import get_settings

ROOT_LOGGER_NAME = "crossvote"


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
) -> logging.Logger:
    """Setup and configure logger.

    Args:
        name: Logger name
        log_file: Log file path. If None, uses config value.
        log_level: Log level. If None, uses config value.

    Returns:
        Configured logger instance
    """
    settings = get_settings()

    log_file = log_file or settings.log_file
    log_level = log_level or settings.log_level
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Replace handlers, closing the old ones
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Get a child of the package logger for a module.

    Handlers live on the package logger only, so importing a module never
    configures output by itself.
    """
    if module_name == ROOT_LOGGER_NAME or module_name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(module_name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")
