"""GitHub API gateway package."""

from .auth import AuthProvider, AuthToken, PersonalAccessTokenAuth
from .classifier import (
    ClassifiedError,
    ErrorKind,
    build_error,
    classify_response,
    parse_retry_after,
)
from .client import GitHubClient, GitHubClientConfig, GitHubResponse
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
    GitHubSecondaryRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .retry import (
    RetryPolicy,
    rate_limit_only,
    server_advised_backoff,
)

__all__ = [
    "AuthProvider",
    "AuthToken",
    "ClassifiedError",
    "ErrorKind",
    "GitHubAuthenticationError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubNotFoundError",
    "GitHubPermissionError",
    "GitHubRateLimitError",
    "GitHubResponse",
    "GitHubSecondaryRateLimitError",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GitHubValidationError",
    "PersonalAccessTokenAuth",
    "RetryPolicy",
    "build_error",
    "classify_response",
    "parse_retry_after",
    "rate_limit_only",
    "server_advised_backoff",
]
