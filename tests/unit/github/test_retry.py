"""
Unit tests for the retry policy value object.

Why: Retry behaviour must be inspectable without a network; the gateway
     only asks the policy whether and how long to wait.

What: Tests RetryPolicy decisions and the backoff helpers.

How: Feeds ClassifiedError instances directly into the policy.
"""

import pytest

from workflow_harness.github.classifier import ClassifiedError, ErrorKind
from workflow_harness.github.retry import (
    DEFAULT_RETRY_AFTER,
    RetryPolicy,
    rate_limit_only,
    server_advised_backoff,
)

RATE_LIMITED = ClassifiedError(403, ErrorKind.RATE_LIMITED, retry_after=12.0)
SECONDARY = ClassifiedError(429, ErrorKind.SECONDARY_RATE_LIMITED)
SERVER = ClassifiedError(500, ErrorKind.SERVER)


class TestRetryPolicy:
    """Test RetryPolicy."""

    def test_defaults(self) -> None:
        policy = RetryPolicy()

        assert policy.max_attempts == 3
        assert policy.retryable_predicate is rate_limit_only

    def test_retries_rate_limits_up_to_ceiling(self) -> None:
        """
        Why: Three retries after the initial request, then surface the error
        What: should_retry is true for retries 1-3 and false for the 4th
        How: Asks the policy for each retry number in turn
        """
        policy = RetryPolicy(max_attempts=3)

        assert [policy.should_retry(n, RATE_LIMITED) for n in range(1, 5)] == [
            True,
            True,
            True,
            False,
        ]

    @pytest.mark.parametrize(
        "kind", [ErrorKind.SERVER, ErrorKind.VALIDATION, ErrorKind.PERMISSION, ErrorKind.UNKNOWN]
    )
    def test_non_rate_limit_kinds_are_never_retried(self, kind: ErrorKind) -> None:
        assert not RetryPolicy().should_retry(1, ClassifiedError(400, kind))

    def test_custom_predicate(self) -> None:
        policy = RetryPolicy(retryable_predicate=lambda e: e.kind == ErrorKind.SERVER)

        assert policy.should_retry(1, SERVER)
        assert not policy.should_retry(1, RATE_LIMITED)

    def test_no_retry(self) -> None:
        assert not RetryPolicy.no_retry().should_retry(1, RATE_LIMITED)

    def test_negative_attempts_rejected(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=-1)

    def test_wait_time_uses_backoff_and_never_negative(self) -> None:
        policy = RetryPolicy(backoff_fn=lambda attempt, error: -5.0)

        assert policy.wait_time(1, RATE_LIMITED) == 0.0


class TestServerAdvisedBackoff:
    """Test server_advised_backoff."""

    def test_prefers_server_advice(self) -> None:
        assert server_advised_backoff()(1, RATE_LIMITED) == 12.0

    def test_falls_back_to_default(self) -> None:
        assert server_advised_backoff()(1, SECONDARY) == DEFAULT_RETRY_AFTER

    def test_backoff_factor_grows_per_attempt(self) -> None:
        backoff = server_advised_backoff(default_retry_after=2.0, backoff_factor=3.0)

        assert [backoff(n, SECONDARY) for n in (1, 2, 3)] == [2.0, 6.0, 18.0]
