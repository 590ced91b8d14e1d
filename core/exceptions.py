"""
Error types for the tag locator
"""


class TagLocatorError(Exception):
    """Base tag locator error"""

    pass


class ConfigError(TagLocatorError):
    """Configuration error that prevents the node from starting"""

    pass
