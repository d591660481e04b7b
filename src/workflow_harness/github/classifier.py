"""Classification of failed GitHub API responses.

The classifier turns a non-2xx response into a ``ClassifiedError`` and maps
that verdict onto the exception hierarchy in :mod:`.exceptions`. It is a pure
function of status code, message and headers so the retry decision can be
tested without a network.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import (
    GitHubAuthenticationError,
    GitHubError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
    GitHubSecondaryRateLimitError,
    GitHubServerError,
    GitHubValidationError,
)

REQUIRED_SCOPES = ("repo", "workflow")


class ErrorKind(str, Enum):
    """Taxonomy of API failures."""

    RATE_LIMITED = "rate_limited"
    SECONDARY_RATE_LIMITED = "secondary_rate_limited"
    VALIDATION = "validation"
    PERMISSION = "permission"
    SERVER = "server"
    UNKNOWN = "unknown"


RATE_LIMIT_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.SECONDARY_RATE_LIMITED})


@dataclass(frozen=True)
class ClassifiedError:
    """Classifier verdict for one failed call."""

    status_code: int
    kind: ErrorKind
    message: str = ""
    retry_after: float | None = None

    @property
    def is_rate_limit(self) -> bool:
        """Check if the failure is one of the rate-limit classes."""
        return self.kind in RATE_LIMIT_KINDS


def _header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup for plain dicts."""
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = _header(headers, name)
    return int(value) if value and value.isdigit() else None


def parse_retry_after(
    headers: Mapping[str, str], now: float | None = None
) -> float | None:
    """Extract the server-advised wait from response headers.

    ``Retry-After`` wins over ``X-RateLimit-Reset``. Returns None when neither
    header carries a usable value.
    """
    retry_after = _header(headers, "Retry-After")
    if retry_after is not None:
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            pass

    reset = _header(headers, "X-RateLimit-Reset")
    if reset is not None:
        try:
            current = time.time() if now is None else now
            return max(0.0, float(reset) - current)
        except ValueError:
            pass

    return None


def classify_response(
    status_code: int,
    message: str = "",
    headers: Mapping[str, str] | None = None,
    now: float | None = None,
) -> ClassifiedError:
    """Classify a non-2xx response.

    Args:
        status_code: HTTP status code
        message: Error message from the response body
        headers: Response headers
        now: Current unix time, for deterministic reset arithmetic

    Returns:
        ClassifiedError describing the failure
    """
    headers = headers or {}
    lowered = message.lower()
    exhausted = _header(headers, "X-RateLimit-Remaining") == "0"
    secondary = "secondary rate limit" in lowered or "abuse" in lowered

    if status_code == 429 or (
        status_code == 403 and (secondary or exhausted or "rate limit" in lowered)
    ):
        if secondary or (status_code == 429 and not exhausted):
            kind = ErrorKind.SECONDARY_RATE_LIMITED
        else:
            kind = ErrorKind.RATE_LIMITED
        return ClassifiedError(
            status_code, kind, message, parse_retry_after(headers, now)
        )

    if status_code in (401, 403):
        return ClassifiedError(status_code, ErrorKind.PERMISSION, message)

    if status_code == 422:
        return ClassifiedError(status_code, ErrorKind.VALIDATION, message)

    if status_code >= 500:
        return ClassifiedError(status_code, ErrorKind.SERVER, message)

    return ClassifiedError(status_code, ErrorKind.UNKNOWN, message)


def build_error(
    classified: ClassifiedError,
    response_data: dict[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    attempts: int = 0,
) -> GitHubError:
    """Map a classification onto the matching exception instance."""
    headers = headers or {}
    status = classified.status_code
    message = classified.message or f"HTTP {status}"

    if classified.is_rate_limit:
        error_cls = (
            GitHubSecondaryRateLimitError
            if classified.kind == ErrorKind.SECONDARY_RATE_LIMITED
            else GitHubRateLimitError
        )
        return error_cls(
            f"Rate limit exceeded after {attempts} attempt(s): {message}",
            reset_time=_int_header(headers, "X-RateLimit-Reset"),
            remaining=_int_header(headers, "X-RateLimit-Remaining") or 0,
            limit=_int_header(headers, "X-RateLimit-Limit") or 0,
            attempts=attempts,
            status_code=status,
            classification=classified,
        )

    if classified.kind == ErrorKind.PERMISSION:
        error_cls = (
            GitHubAuthenticationError if status == 401 else GitHubPermissionError
        )
        return error_cls(
            f"{message}. Token lacks required permissions; "
            f"required scopes: {', '.join(REQUIRED_SCOPES)}. "
            "Check your GITHUB_TOKEN permissions.",
            status,
            response_data,
            classified,
        )

    if classified.kind == ErrorKind.VALIDATION:
        return GitHubValidationError(
            f"Validation failed: {message}. "
            "Check input data (branch name, commit message, etc.)",
            status,
            response_data,
            classified,
        )

    if classified.kind == ErrorKind.SERVER:
        return GitHubServerError(message, status, response_data, classified)

    if status == 404:
        return GitHubNotFoundError(message, status, response_data, classified)

    return GitHubError(message, status, response_data, classified)
