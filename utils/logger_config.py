"""
Centralized logging configuration
Small but meaningful logs with proper levels
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(levelname)s [%(name)s]: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s]: %(message)s"


def _resolve_level(level: Optional[str], debug: bool) -> int:
    if debug or os.getenv("DEBUG") == "1":
        return logging.DEBUG
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(
    level: Optional[str] = None, debug: bool = False, log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Setup centralized logging configuration

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: Enable debug mode (overrides level to DEBUG)
        log_file: Optional file path for logging

    Returns:
        Configured root logger
    """
    log_level = _resolve_level(level, debug)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # Console handler - always present
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # File handler keeps timestamps for post-run analysis
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt="%H:%M:%S")
        )
        root_logger.addHandler(file_handler)

    # Loggers created before setup keep their own level
    for name in list(logging.root.manager.loggerDict):
        existing = logging.getLogger(name)
        if existing.level != logging.NOTSET:
            existing.setLevel(log_level)

    return root_logger


def setup_logging_from_config(
    config: Dict[str, Any], debug: bool = False
) -> logging.Logger:
    """Setup logging from the 'logging' section of a config dictionary"""
    logging_config = config.get("logging", {}) or {}
    log_file = logging_config.get("file")
    return setup_logging(
        level=logging_config.get("level"),
        debug=debug,
        log_file=Path(log_file) if log_file else None,
    )


def get_logger(name: str, debug: bool = False) -> logging.Logger:
    """
    Get a logger with appropriate level

    Args:
        name: Logger name (typically __name__)
        debug: Enable debug mode for this logger

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if debug or os.getenv("DEBUG") == "1":
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    return logger


# Logging levels guide:
# DEBUG: Per-detection geometry and timing
# INFO: New victims, repeats, resets
# WARNING: Transform failures and dropped frames
# ERROR: Frame processing errors
# CRITICAL: Startup failures
