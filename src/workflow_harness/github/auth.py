"""GitHub authentication handlers."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .exceptions import GitHubAuthenticationError

TOKEN_ENV_VAR = "GITHUB_TOKEN"


@dataclass(frozen=True)
class AuthToken:
    """Authentication token as sent to the API."""

    token: str
    token_type: str = "Bearer"

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}

    def __repr__(self) -> str:
        return f"AuthToken(token='***', token_type={self.token_type!r})"


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        pass


class PersonalAccessTokenAuth(AuthProvider):
    """Personal Access Token authentication provider."""

    def __init__(self, token: str):
        """Initialize PAT authentication.

        Args:
            token: GitHub Personal Access Token
        """
        if not token or not token.strip():
            raise GitHubAuthenticationError("Personal Access Token is required")
        self._token = AuthToken(token=token.strip(), token_type="token")  # nosec B106

    @classmethod
    def from_env(cls, variable: str = TOKEN_ENV_VAR) -> "PersonalAccessTokenAuth":
        """Build the provider from an environment variable."""
        return cls(os.getenv(variable, ""))

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token
