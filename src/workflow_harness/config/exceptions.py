"""Exceptions raised while loading and validating harness configuration."""

from typing import Any


class ConfigurationError(Exception):
    """Base exception for all configuration-related errors."""


class ConfigurationFileError(ConfigurationError):
    """Configuration file cannot be read or parsed."""

    def __init__(self, message: str, file_path: str | None = None):
        super().__init__(message)
        self.file_path = file_path


class ConfigurationValidationError(ConfigurationError):
    """Configuration values fail model validation."""

    def __init__(self, message: str, validation_errors: list[Any] | None = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []


class ConfigurationMissingError(ConfigurationError):
    """A value the harness cannot run without is absent."""

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []
