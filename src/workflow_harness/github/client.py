"""Throttled GitHub API gateway.

Every remote call made by the harness goes through :meth:`GitHubClient.request`.
Failed responses are classified; rate-limit classes are retried according to
the injected :class:`RetryPolicy`, everything else is raised to the caller.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from .auth import AuthProvider
from .classifier import build_error, classify_response
from .exceptions import GitHubConnectionError, GitHubTimeoutError
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    timeout: int = 30
    user_agent: str = "Workflow-Validation-Harness/1.0"


@dataclass(frozen=True)
class GitHubResponse:
    """Successful response with its decoded body."""

    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)


class GitHubClient:
    """Async GitHub API client with classified errors and bounded retry."""

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
            retry_policy: Retry behaviour for rate-limited calls
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.retry_policy = retry_policy or RetryPolicy()

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept": "application/vnd.github+json",
                },
            )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _build_url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        data: dict[str, Any] | None,
        headers: dict[str, str] | None,
        correlation_id: str,
    ) -> tuple[int, dict[str, str], Any]:
        """Send one HTTP request and decode its body.

        Raises:
            GitHubTimeoutError: If the request times out
            GitHubConnectionError: If the transport fails
        """
        await self._ensure_session()
        if not self._session:
            raise GitHubConnectionError("Failed to initialize HTTP session")

        request_headers = dict(headers or {})
        auth_token = await self.auth.get_token()
        request_headers.update(auth_token.to_header())

        request_kwargs: dict[str, Any] = {"params": params, "headers": request_headers}
        if data is not None:
            request_kwargs["json"] = data

        start_time = time.time()
        try:
            async with self._session.request(method, url, **request_kwargs) as response:
                response_headers = dict(response.headers)
                body: Any = None
                if response.status != 204:
                    text = await response.text()
                    if text:
                        try:
                            body = json.loads(text)
                        except json.JSONDecodeError:
                            body = {"message": text}
        except TimeoutError as e:
            raise GitHubTimeoutError(f"Request timeout for {method} {url}") from e
        except aiohttp.ClientError as e:
            raise GitHubConnectionError(
                f"Connection error for {method} {url}: {e}"
            ) from e

        logger.debug(
            f"GitHub API response [{correlation_id}] {response.status} "
            f"in {time.time() - start_time:.2f}s"
        )
        return response.status, response_headers, body

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> GitHubResponse:
        """Make an API call through the retry policy.

        Args:
            method: HTTP method
            path: API path (e.g., '/repos/owner/repo/issues')
            params: Query parameters
            data: Request body data
            headers: Additional headers

        Returns:
            Decoded successful response

        Raises:
            GitHubError: Classified error for any non-2xx response that is not
                retried, or a rate-limit error once retries are exhausted
        """
        url = self._build_url(path)
        correlation_id = str(uuid.uuid4())[:8]
        attempt = 0

        while True:
            logger.debug(
                f"GitHub API request [{correlation_id}] {method} {url} "
                f"(attempt {attempt + 1})"
            )
            status, response_headers, body = await self._send(
                method, url, params, data, headers, correlation_id
            )

            if 200 <= status < 300:
                return GitHubResponse(status, body, response_headers)

            message = ""
            if isinstance(body, dict):
                message = str(body.get("message", ""))
            classified = classify_response(status, message, response_headers)
            attempt += 1

            if not self.retry_policy.should_retry(attempt, classified):
                if classified.is_rate_limit:
                    logger.error(
                        f"Rate limit exceeded for {method} {path} "
                        f"[{correlation_id}]; giving up after {attempt} attempt(s)"
                    )
                else:
                    logger.debug(
                        f"GitHub API error [{correlation_id}] {status} "
                        f"({classified.kind.value}): {message}"
                    )
                raise build_error(
                    classified,
                    body if isinstance(body, dict) else None,
                    response_headers,
                    attempts=attempt,
                )

            wait_time = self.retry_policy.wait_time(attempt, classified)
            logger.warning(
                f"{classified.kind.value} on {method} {path} [{correlation_id}]; "
                f"retrying in {wait_time:.1f}s "
                f"(attempt {attempt}/{self.retry_policy.max_attempts})"
            )
            await asyncio.sleep(wait_time)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request and return the decoded body."""
        return (await self.request("GET", path, params=params)).data

    async def post(self, path: str, data: dict[str, Any] | None = None) -> Any:
        """Make POST request and return the decoded body."""
        return (await self.request("POST", path, data=data)).data

    async def patch(self, path: str, data: dict[str, Any] | None = None) -> Any:
        """Make PATCH request and return the decoded body."""
        return (await self.request("PATCH", path, data=data)).data

    async def put(self, path: str, data: dict[str, Any] | None = None) -> Any:
        """Make PUT request and return the decoded body."""
        return (await self.request("PUT", path, data=data)).data

    async def delete(self, path: str) -> Any:
        """Make DELETE request; returns None for 204 No Content."""
        return (await self.request("DELETE", path)).data

    # Convenience methods for the tracker endpoints the harness drives

    async def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create an issue."""
        payload: dict[str, Any] = {"title": title}
        if body is not None:
            payload["body"] = body
        if labels:
            payload["labels"] = labels
        return await self.post(f"/repos/{owner}/{repo}/issues", payload)

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Get a single issue (pull requests are issues too)."""
        return await self.get(f"/repos/{owner}/{repo}/issues/{number}")

    async def update_issue(
        self, owner: str, repo: str, number: int, **fields: Any
    ) -> dict[str, Any]:
        """Update issue fields such as title, body, state, labels, milestone."""
        return await self.patch(f"/repos/{owner}/{repo}/issues/{number}", fields)

    async def create_issue_comment(
        self, owner: str, repo: str, number: int, body: str
    ) -> dict[str, Any]:
        """Add a comment to an issue or pull request."""
        return await self.post(
            f"/repos/{owner}/{repo}/issues/{number}/comments", {"body": body}
        )

    async def list_issue_comments(
        self, owner: str, repo: str, number: int, per_page: int = 100
    ) -> list[dict[str, Any]]:
        """List comments on an issue or pull request."""
        return await self.get(
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            params={"per_page": per_page},
        )

    async def get_ref(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        """Get a git reference, e.g. ``heads/main``."""
        return await self.get(f"/repos/{owner}/{repo}/git/ref/{ref}")

    async def create_ref(
        self, owner: str, repo: str, ref: str, sha: str
    ) -> dict[str, Any]:
        """Create a fully qualified reference, e.g. ``refs/heads/topic``."""
        return await self.post(
            f"/repos/{owner}/{repo}/git/refs", {"ref": ref, "sha": sha}
        )

    async def delete_ref(self, owner: str, repo: str, ref: str) -> None:
        """Delete a reference, e.g. ``heads/topic``."""
        await self.delete(f"/repos/{owner}/{repo}/git/refs/{ref}")

    async def get_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> dict[str, Any]:
        """Get file metadata and content from a branch."""
        params = {"ref": ref} if ref else None
        return await self.get(f"/repos/{owner}/{repo}/contents/{path}", params=params)

    async def create_or_update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        content: str,
        branch: str,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """Create or update a file; ``content`` must be base64 encoded."""
        payload: dict[str, Any] = {
            "message": message,
            "content": content,
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        return await self.put(f"/repos/{owner}/{repo}/contents/{path}", payload)

    async def create_pull(
        self, owner: str, repo: str, title: str, body: str, head: str, base: str
    ) -> dict[str, Any]:
        """Open a pull request."""
        return await self.post(
            f"/repos/{owner}/{repo}/pulls",
            {"title": title, "body": body, "head": head, "base": base},
        )

    async def get_pull(self, owner: str, repo: str, pull_number: int) -> dict[str, Any]:
        """Get specific pull request."""
        return await self.get(f"/repos/{owner}/{repo}/pulls/{pull_number}")

    async def update_pull(
        self, owner: str, repo: str, pull_number: int, **fields: Any
    ) -> dict[str, Any]:
        """Update pull request fields such as state."""
        return await self.patch(f"/repos/{owner}/{repo}/pulls/{pull_number}", fields)

    async def list_check_runs(
        self, owner: str, repo: str, ref: str, per_page: int = 100
    ) -> list[dict[str, Any]]:
        """List check runs for a commit."""
        data = await self.get(
            f"/repos/{owner}/{repo}/commits/{ref}/check-runs",
            params={"per_page": per_page},
        )
        return list((data or {}).get("check_runs", []))

    async def create_milestone(
        self, owner: str, repo: str, title: str, description: str = ""
    ) -> dict[str, Any]:
        """Create a milestone."""
        return await self.post(
            f"/repos/{owner}/{repo}/milestones",
            {"title": title, "description": description},
        )

    async def get_milestone(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Get a milestone."""
        return await self.get(f"/repos/{owner}/{repo}/milestones/{number}")

    async def list_milestones(
        self, owner: str, repo: str, state: str = "all", per_page: int = 100
    ) -> list[dict[str, Any]]:
        """List milestones."""
        return await self.get(
            f"/repos/{owner}/{repo}/milestones",
            params={"state": state, "per_page": per_page},
        )

    async def update_milestone(
        self, owner: str, repo: str, number: int, **fields: Any
    ) -> dict[str, Any]:
        """Update milestone fields such as state."""
        return await self.patch(f"/repos/{owner}/{repo}/milestones/{number}", fields)

    async def delete_milestone(self, owner: str, repo: str, number: int) -> None:
        """Delete a milestone."""
        await self.delete(f"/repos/{owner}/{repo}/milestones/{number}")

    async def list_workflows(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List repository workflows."""
        data = await self.get(f"/repos/{owner}/{repo}/actions/workflows")
        return list((data or {}).get("workflows", []))

    async def list_workflow_runs(
        self,
        owner: str,
        repo: str,
        workflow_id: int | str,
        branch: str | None = None,
        head_sha: str | None = None,
        per_page: int = 20,
    ) -> list[dict[str, Any]]:
        """List runs of one workflow, optionally filtered by branch or SHA."""
        params: dict[str, Any] = {"per_page": per_page}
        if branch:
            params["branch"] = branch
        if head_sha:
            params["head_sha"] = head_sha
        data = await self.get(
            f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs",
            params=params,
        )
        return list((data or {}).get("workflow_runs", []))

    async def get_workflow_run(
        self, owner: str, repo: str, run_id: int
    ) -> dict[str, Any]:
        """Get a single workflow run."""
        return await self.get(f"/repos/{owner}/{repo}/actions/runs/{run_id}")
