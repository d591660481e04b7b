"""Retry policy for the GitHub gateway."""

from collections.abc import Callable
from dataclasses import dataclass, field

from .classifier import ClassifiedError

DEFAULT_RETRY_AFTER = 60.0

BackoffFn = Callable[[int, ClassifiedError], float]
RetryablePredicate = Callable[[ClassifiedError], bool]


def rate_limit_only(error: ClassifiedError) -> bool:
    """Retry primary and secondary rate limits, nothing else."""
    return error.is_rate_limit


def server_advised_backoff(
    default_retry_after: float = DEFAULT_RETRY_AFTER, backoff_factor: float = 1.0
) -> BackoffFn:
    """Build a backoff function honouring the server's advice.

    Uses ``retry_after`` when the response carried one, otherwise
    ``default_retry_after * backoff_factor ** (attempt - 1)``.
    """

    def backoff(attempt: int, error: ClassifiedError) -> float:
        if error.retry_after is not None:
            return error.retry_after
        return default_retry_after * backoff_factor ** (attempt - 1)

    return backoff


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour injected into the gateway.

    ``max_attempts`` counts retries after the initial request, so a policy
    with ``max_attempts=3`` sends at most four requests.
    """

    max_attempts: int = 3
    backoff_fn: BackoffFn = field(default_factory=server_advised_backoff)
    retryable_predicate: RetryablePredicate = rate_limit_only

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    def should_retry(self, attempt: int, error: ClassifiedError) -> bool:
        """Decide whether retry number ``attempt`` (1-based) may be made."""
        return attempt <= self.max_attempts and self.retryable_predicate(error)

    def wait_time(self, attempt: int, error: ClassifiedError) -> float:
        """Seconds to wait before retry number ``attempt``."""
        return max(0.0, self.backoff_fn(attempt, error))

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """Policy that surfaces every failure immediately."""
        return cls(max_attempts=0)
