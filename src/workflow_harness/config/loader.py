"""Configuration loading.

The loading hierarchy is:
1. Default values from Pydantic models
2. Configuration file (YAML), when one is given or discovered
3. Environment variables (GITHUB_TOKEN, TEST_REPO)
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import (
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .models import Config

TOKEN_ENV_VAR = "GITHUB_TOKEN"
REPOSITORY_ENV_VAR = "TEST_REPO"
CONFIG_PATH_ENV_VAR = "HARNESS_CONFIG_PATH"
DEFAULT_CONFIG_FILENAME = "harness.yaml"


class ConfigurationLoader:
    """Handles loading and validation of configuration from various sources."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        """Initialize configuration loader.

        Args:
            environ: Environment mapping, defaults to ``os.environ``
        """
        self._environ = os.environ if environ is None else environ
        self._config_file_path: Path | None = None

    @property
    def config_file_path(self) -> Path | None:
        """Get the path to the loaded configuration file."""
        return self._config_file_path

    def read_file(self, config_path: str | Path) -> dict[str, Any]:
        """Read a YAML configuration file into a dictionary.

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
        """
        config_path = Path(config_path)

        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}",
                file_path=str(config_path),
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", file_path=str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", file_path=str(config_path)
            ) from e

        if config_data is None:
            return {}
        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration root must be a mapping", file_path=str(config_path)
            )

        self._config_file_path = config_path.resolve()
        return config_data

    def find_config_file(self) -> Path | None:
        """Find configuration file.

        Search order:
        1. HARNESS_CONFIG_PATH environment variable
        2. harness.yaml in the current working directory
        """
        env_path = self._environ.get(CONFIG_PATH_ENV_VAR)
        if env_path:
            return Path(env_path)

        candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        return None

    def apply_environment(self, config_data: dict[str, Any]) -> dict[str, Any]:
        """Overlay GITHUB_TOKEN and TEST_REPO onto the github section."""
        github = dict(config_data.get("github") or {})

        token = self._environ.get(TOKEN_ENV_VAR)
        if token:
            github["token"] = token

        repository = self._environ.get(REPOSITORY_ENV_VAR)
        if repository:
            github["repository"] = repository

        merged = dict(config_data)
        if github:
            merged["github"] = github
        return merged

    def load(self, config_path: str | Path | None = None) -> Config:
        """Load configuration from defaults, file and environment.

        Args:
            config_path: Explicit path to a YAML file; auto-discovered if None

        Returns:
            Validated configuration

        Raises:
            ConfigurationFileError: If an explicit or discovered file is unusable
            ConfigurationValidationError: If configuration validation fails
        """
        path = Path(config_path) if config_path else self.find_config_file()
        config_data = self.read_file(path) if path else {}
        config_data = self.apply_environment(config_data)

        try:
            return Config(**config_data)
        except ValidationError as e:
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}", validation_errors=e.errors()
            ) from e
        except ValueError as e:
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}"
            ) from e


def load_config(
    config_path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> Config:
    """Load configuration from file (optional) and environment."""
    return ConfigurationLoader(environ).load(config_path)


def require_token(config: Config) -> str:
    """Return the configured token.

    Raises:
        ConfigurationMissingError: If no token is configured
    """
    token = config.github.token
    if not token or not token.strip():
        raise ConfigurationMissingError(
            f"{TOKEN_ENV_VAR} environment variable is required",
            missing_fields=["github.token"],
        )
    return token
