"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from quickserve.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from quickserve.core.exceptions import OrderingError

__all__ = ["get_settings", "setup_logging", "Settings", "EnvironmentMode", "OrderingError"]
