"""
Utility modules for the AprilTag victim locator
"""

from .logger_config import get_logger, setup_logging, setup_logging_from_config

__version__ = "0.1.0"

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
