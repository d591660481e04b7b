"""Configuration management for the workflow validation harness.

Configuration is loaded once per run from model defaults, an optional YAML
file and the environment, then passed explicitly to the harness session.

Example usage:
    from workflow_harness.config import load_config, require_token

    config = load_config()
    token = require_token(config)
    owner, repo = config.github.owner, config.github.repo
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader, load_config, require_token
from .models import (
    Config,
    GitHubSettings,
    HarnessSettings,
    LogLevel,
    RetrySettings,
    SystemConfig,
    WaitSettings,
    WaitTiming,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationMissingError",
    "ConfigurationValidationError",
    "GitHubSettings",
    "HarnessSettings",
    "LogLevel",
    "RetrySettings",
    "SystemConfig",
    "WaitSettings",
    "WaitTiming",
    "load_config",
    "require_token",
]
