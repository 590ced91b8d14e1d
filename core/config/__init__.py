"""
Configuration management for the AprilTag victim locator
"""

from .families import TAG_FAMILIES, normalize_family
from .manager import ConfigManager, load_config

__all__ = ["ConfigManager", "load_config", "TAG_FAMILIES", "normalize_family"]
