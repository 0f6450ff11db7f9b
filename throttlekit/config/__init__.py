"""
Configuration management.
"""

from throttlekit.config.logging import get_logger, setup_logging
from throttlekit.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "get_logger", "setup_logging"]
