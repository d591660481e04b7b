"""
Unit tests for the throttled GitHub gateway.

Why: Ensure the client retries only rate-limited calls, within the
     configured ceiling, and raises classified errors for everything else.

What: Tests GitHubClient.request and a sample of its convenience methods.

How: Uses aioresponses to script HTTP responses and patches asyncio.sleep
     so backoff waits are recorded instead of slept.
"""

import re
from collections.abc import AsyncIterator, Iterator
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
from aioresponses import aioresponses

from workflow_harness.github.auth import PersonalAccessTokenAuth
from workflow_harness.github.classifier import ErrorKind
from workflow_harness.github.client import GitHubClient, GitHubClientConfig
from workflow_harness.github.exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
    GitHubSecondaryRateLimitError,
    GitHubServerError,
    GitHubValidationError,
)
from workflow_harness.github.retry import RetryPolicy

API = "https://api.github.com"
ISSUE_URL = f"{API}/repos/octo/sandbox/issues/1"
RATE_LIMITED = {
    "status": 403,
    "payload": {"message": "API rate limit exceeded"},
    "headers": {"X-RateLimit-Remaining": "0", "Retry-After": "2"},
}


@pytest.fixture
async def client() -> AsyncIterator[GitHubClient]:
    """Client with the default retry policy (3 retries)."""
    github = GitHubClient(
        auth=PersonalAccessTokenAuth("test-token"),
        config=GitHubClientConfig(base_url=API),
    )
    yield github
    await github.close()


@pytest.fixture
def sleep() -> Iterator[AsyncMock]:
    with patch("workflow_harness.github.client.asyncio.sleep", new=AsyncMock()) as mocked:
        yield mocked


class TestGitHubClientConfig:
    """Test GitHubClientConfig defaults."""

    def test_defaults(self) -> None:
        config = GitHubClientConfig()

        assert config.base_url == "https://api.github.com"
        assert config.timeout == 30
        assert config.user_agent == "Workflow-Validation-Harness/1.0"


class TestGitHubClientRetry:
    """Test retry behaviour of GitHubClient.request."""

    async def test_success_after_three_rate_limits(
        self, client: GitHubClient, sleep: AsyncMock
    ) -> None:
        """
        Why: Three consecutive rate limits followed by a success must succeed
             without exceeding the attempt ceiling
        What: Returns the final payload after exactly three backoff waits
        How: Scripts three 403 rate-limit responses, then a 200
        """
        with aioresponses() as m:
            for _ in range(3):
                m.get(ISSUE_URL, **RATE_LIMITED)
            m.get(ISSUE_URL, payload={"number": 1})

            result = await client.get("/repos/octo/sandbox/issues/1")

        assert result == {"number": 1}
        assert sleep.await_count == 3
        sleep.assert_awaited_with(2.0)

    async def test_rate_limit_exhausted_raises(
        self, client: GitHubClient, sleep: AsyncMock
    ) -> None:
        """
        Why: After the retries are used up the gateway must not hang
        What: Raises GitHubRateLimitError after 1 + 3 requests
        How: Scripts four consecutive rate-limit responses
        """
        with aioresponses() as m:
            for _ in range(4):
                m.get(ISSUE_URL, **RATE_LIMITED)

            with pytest.raises(GitHubRateLimitError) as exc_info:
                await client.get("/repos/octo/sandbox/issues/1")

        assert exc_info.value.attempts == 4
        assert exc_info.value.classification.kind == ErrorKind.RATE_LIMITED
        assert sleep.await_count == 3

    async def test_secondary_rate_limit_exhausted(
        self, sleep: AsyncMock
    ) -> None:
        github = GitHubClient(
            PersonalAccessTokenAuth("test-token"),
            retry_policy=RetryPolicy(max_attempts=1),
        )
        try:
            with aioresponses() as m:
                m.get(ISSUE_URL, status=429, payload={"message": "slow down"})
                m.get(ISSUE_URL, status=429, payload={"message": "slow down"})

                with pytest.raises(GitHubSecondaryRateLimitError):
                    await github.get("/repos/octo/sandbox/issues/1")
        finally:
            await github.close()

        assert sleep.await_count == 1

    @pytest.mark.parametrize(
        "status, message, error_cls",
        [
            (422, "Validation Failed", GitHubValidationError),
            (403, "Resource not accessible by integration", GitHubPermissionError),
            (401, "Bad credentials", GitHubAuthenticationError),
            (500, "Server Error", GitHubServerError),
            (404, "Not Found", GitHubNotFoundError),
        ],
    )
    async def test_non_rate_limit_errors_fail_fast(
        self,
        client: GitHubClient,
        sleep: AsyncMock,
        status: int,
        message: str,
        error_cls: type,
    ) -> None:
        """
        Why: Validation, permission and server errors are never retried locally
        What: Raises the classified error after a single request
        How: Scripts one error response; a second request would hit no mock
        """
        with aioresponses() as m:
            m.get(ISSUE_URL, status=status, payload={"message": message})

            with pytest.raises(error_cls) as exc_info:
                await client.get("/repos/octo/sandbox/issues/1")

        assert exc_info.value.status_code == status
        sleep.assert_not_awaited()

    async def test_connection_error(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.get(ISSUE_URL, exception=aiohttp.ClientConnectionError("boom"))

            with pytest.raises(GitHubConnectionError):
                await client.get("/repos/octo/sandbox/issues/1")


class TestGitHubClientRequests:
    """Test request construction and convenience methods."""

    async def test_sends_token_header(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.get(ISSUE_URL, payload={"number": 1})

            await client.get_issue("octo", "sandbox", 1)

            request = next(iter(m.requests.values()))[0]
        assert request.kwargs["headers"]["Authorization"] == "token test-token"

    async def test_create_issue_payload(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(f"{API}/repos/octo/sandbox/issues", payload={"number": 5})

            issue = await client.create_issue(
                "octo", "sandbox", "[TEST] Foo", body="body", labels=["test-automation"]
            )

            request = next(iter(m.requests.values()))[0]
        assert issue["number"] == 5
        assert request.kwargs["json"] == {
            "title": "[TEST] Foo",
            "body": "body",
            "labels": ["test-automation"],
        }

    async def test_delete_ref_handles_empty_body(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.delete(f"{API}/repos/octo/sandbox/git/refs/heads/topic", status=204)

            assert await client.delete_ref("octo", "sandbox", "heads/topic") is None

    async def test_list_check_runs_unwraps(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.get(
                re.compile(rf"{API}/repos/octo/sandbox/commits/abc/check-runs.*"),
                payload={"total_count": 1, "check_runs": [{"name": "ci"}]},
            )

            runs = await client.list_check_runs("octo", "sandbox", "abc")

        assert runs == [{"name": "ci"}]

    async def test_list_workflow_runs_filters(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.get(
                re.compile(rf"{API}/repos/octo/sandbox/actions/workflows/7/runs.*"),
                payload={"workflow_runs": [{"id": 1}]},
            )

            runs = await client.list_workflow_runs("octo", "sandbox", 7, head_sha="abc")

            request = next(iter(m.requests.values()))[0]
        assert runs == [{"id": 1}]
        assert request.kwargs["params"] == {"per_page": 20, "head_sha": "abc"}

    async def test_response_carries_headers(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.get(
                ISSUE_URL,
                payload={"number": 1},
                headers={"X-RateLimit-Remaining": "4999"},
            )

            response = await client.request("GET", "/repos/octo/sandbox/issues/1")

        assert response.status == 200
        assert response.data == {"number": 1}
        assert response.headers["X-RateLimit-Remaining"] == "4999"
