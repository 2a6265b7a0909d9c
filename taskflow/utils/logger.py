"""
Logging configuration

Console output goes to stderr so stdout carries only the task listing.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union
from taskflow.config.settings import settings
from taskflow.config.constants import LOG_FORMAT, LOG_DATE_FORMAT, LOG_FILE_NAME


def setup_logger(
    name: str = "taskflow",
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Setup and configure logger

    Args:
        name: Logger name
        log_dir: Directory for the log file (defaults to TASKFLOW_LOG_DIR)

    Returns:
        Configured logger instance
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(level, logging.INFO))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    log_path = Path(log_dir if log_dir is not None else settings.TASKFLOW_LOG_DIR)
    try:
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / LOG_FILE_NAME, encoding="utf-8")
    except OSError as e:
        logger.warning(f"File logging disabled: {e}")
        return logger
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


# Global logger instance
logger = setup_logger()
