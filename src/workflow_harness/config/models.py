"""Pydantic configuration models for the workflow validation harness.

This module defines the configuration schema with type safety, validation
and environment variable substitution support. Models are organized by
concern:
- Config: Root configuration containing all sections
- GitHubSettings: Target repository, token and HTTP settings
- RetrySettings: Gateway retry policy for rate-limited calls
- HarnessSettings: Fixture marker, labels and cleanup behaviour
- WaitSettings: Eventual-consistency poll timings per operation type
- SystemConfig: Logging

Environment variables are substituted using the format ${VAR_NAME} with
optional defaults: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_TEST_REPOSITORY = "hiranotomo/giflearn-test"


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Raises:
            ValueError: If required environment variable is missing
        """
        if not isinstance(values, dict):
            return values

        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ValueError(f"Required environment variable '{var_name}' not found")

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                return re.sub(pattern, replacer, value)
            if isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            if isinstance(value, list):
                return [substitute_value(item) for item in value]
            return value

        return {key: substitute_value(value) for key, value in values.items()}


class SystemConfig(BaseConfigModel):
    """Process-wide settings."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="System-wide logging level"
    )


class GitHubSettings(BaseConfigModel):
    """Target repository and API access."""

    token: str | None = Field(
        default=None, description="GitHub token with repo and workflow scopes"
    )

    repository: str = Field(
        default=DEFAULT_TEST_REPOSITORY,
        description="Disposable target repository as owner/name",
    )

    base_url: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )

    timeout: int = Field(
        default=30, ge=1, le=300, description="Per-request timeout in seconds"
    )

    user_agent: str = Field(
        default="Workflow-Validation-Harness/1.0", description="User-Agent header"
    )

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Validate owner/name format."""
        parts = v.strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Repository must be in owner/name format, got '{v}'")
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate API URL scheme."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("GitHub base URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def owner(self) -> str:
        """Repository owner."""
        return self.repository.split("/")[0]

    @property
    def repo(self) -> str:
        """Repository name."""
        return self.repository.split("/")[1]


class RetrySettings(BaseConfigModel):
    """Gateway retry policy for rate-limited calls."""

    max_attempts: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the initial request for rate-limited calls",
    )

    default_retry_after: float = Field(
        default=60.0,
        ge=0,
        le=3600,
        description="Wait in seconds when the server gives no retry advice",
    )

    backoff_factor: float = Field(
        default=1.0,
        ge=1.0,
        le=10.0,
        description="Multiplier applied to the default wait per attempt",
    )


class HarnessSettings(BaseConfigModel):
    """Fixture conventions and run behaviour."""

    test_marker: str = Field(
        default="[TEST]", description="Prefix for every created issue title"
    )

    automation_label: str = Field(
        default="test-automation", description="Label attached to every test issue"
    )

    default_branch: str = Field(
        default="main", description="Branch pull requests are opened against"
    )

    cleanup_after_tests: bool = Field(
        default=True, description="Reverse created resources after the run"
    )

    agents_dir: str = Field(
        default=".claude/agents", description="Directory of autorun agent profiles"
    )

    @field_validator("test_marker", "automation_label", "default_branch")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank values."""
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()


class WaitTiming(BaseConfigModel):
    """Bounded poll timing for one operation type."""

    initial: float = Field(default=15.0, ge=0, description="First sleep in seconds")
    interval: float = Field(default=10.0, ge=0, description="Sleep between polls")
    timeout: float = Field(default=60.0, ge=0, description="Overall deadline")

    @model_validator(mode="after")
    def validate_window(self) -> "WaitTiming":
        """Initial wait must fit inside the deadline."""
        if self.initial > self.timeout:
            raise ValueError("initial wait cannot exceed timeout")
        return self

    def settle(self) -> "WaitTiming":
        """Single poll after the initial wait, for asserting an absence."""
        return WaitTiming(initial=self.initial, interval=self.interval, timeout=self.initial)


class WaitSettings(BaseConfigModel):
    """Poll timings per kind of asynchronous effect."""

    check_run: WaitTiming = Field(
        default_factory=lambda: WaitTiming(initial=15, interval=10, timeout=90)
    )
    label: WaitTiming = Field(
        default_factory=lambda: WaitTiming(initial=15, interval=10, timeout=60)
    )
    comment: WaitTiming = Field(
        default_factory=lambda: WaitTiming(initial=10, interval=10, timeout=60)
    )
    milestone: WaitTiming = Field(
        default_factory=lambda: WaitTiming(initial=10, interval=5, timeout=60)
    )
    workflow_run: WaitTiming = Field(
        default_factory=lambda: WaitTiming(initial=30, interval=30, timeout=60)
    )


class Config(BaseConfigModel):
    """Root configuration."""

    system: SystemConfig = Field(default_factory=SystemConfig)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    harness: HarnessSettings = Field(default_factory=HarnessSettings)
    waits: WaitSettings = Field(default_factory=WaitSettings)
