"""Dashboard exceptions"""


class ServiceError(Exception):
    """Service error."""


class ConfigurationError(Exception):
    """Invalid configuration content."""
