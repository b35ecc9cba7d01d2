"""Core hookman utilities.

This module exports core utilities for use throughout the package.
"""

from hookman.core.config import Settings, get_settings
from hookman.core.logging import LoggingContext, configure_logging, get_logger

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
]
