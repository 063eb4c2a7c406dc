"""
Vehicle Registry E2E Support Package

Configuration, typed test data and the command-line runner shared by the
Playwright test suite under ``tests/e2e``.
"""

from .exceptions import ConfigError, RegistryE2EError, TestDataError
from .settings import Settings, get_settings, load_settings

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "RegistryE2EError",
    "Settings",
    "TestDataError",
    "get_settings",
    "load_settings",
]
