"""GitHub API client exceptions."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .classifier import ClassifiedError


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
        classification: "ClassifiedError | None" = None,
    ):
        """Initialize GitHub error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from GitHub API
            classification: Classifier verdict for the failed call
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}
        self.classification = classification


class GitHubRateLimitError(GitHubError):
    """Raised when the primary rate limit is exhausted after all retries."""

    def __init__(
        self,
        message: str,
        reset_time: int | None = None,
        remaining: int = 0,
        limit: int = 0,
        attempts: int = 0,
        status_code: int | None = None,
        classification: "ClassifiedError | None" = None,
    ):
        """Initialize rate limit error.

        Args:
            message: Error message
            reset_time: Unix timestamp when rate limit resets
            remaining: Remaining API calls
            limit: Total rate limit
            attempts: Number of requests made before giving up
            status_code: HTTP status code of the last response
            classification: Classifier verdict for the last response
        """
        super().__init__(message, status_code, classification=classification)
        self.reset_time = reset_time
        self.remaining = remaining
        self.limit = limit
        self.attempts = attempts


class GitHubSecondaryRateLimitError(GitHubRateLimitError):
    """Raised when abuse-detection throttling persists after all retries."""

    pass


class GitHubPermissionError(GitHubError):
    """Raised when the token is not allowed to perform the request."""

    pass


class GitHubAuthenticationError(GitHubPermissionError):
    """Raised when authentication fails."""

    pass


class GitHubNotFoundError(GitHubError):
    """Raised when resource is not found."""

    pass


class GitHubValidationError(GitHubError):
    """Raised when request validation fails."""

    pass


class GitHubServerError(GitHubError):
    """Raised when GitHub server returns 5xx error."""

    pass


class GitHubConnectionError(GitHubError):
    """Raised when connection to GitHub fails."""

    pass


class GitHubTimeoutError(GitHubError):
    """Raised when request times out."""

    pass
