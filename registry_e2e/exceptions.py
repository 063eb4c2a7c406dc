"""Errors raised while loading suite configuration and test data."""


class RegistryE2EError(Exception):
    """Base class for suite setup errors."""


class ConfigError(RegistryE2EError):
    """Invalid or missing configuration."""


class TestDataError(RegistryE2EError, ValueError):
    """Invalid or missing test data file."""

    # Keep pytest from collecting this as a test class.
    __test__ = False
