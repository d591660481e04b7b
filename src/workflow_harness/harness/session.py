"""Per-run harness session.

A ``HarnessSession`` is built once per process invocation and handed to
every test case. It owns the gateway, the resource tracker, the fixture
factory, the failure injector and the waiter, and offers the read/update
queries scenarios use to observe the automation under test.
"""

import logging
from collections.abc import Callable
from typing import Any

from ..config.loader import require_token
from ..config.models import Config, WaitTiming
from ..github.auth import PersonalAccessTokenAuth
from ..github.client import GitHubClient, GitHubClientConfig
from ..github.exceptions import GitHubNotFoundError
from ..github.retry import RetryPolicy, server_advised_backoff
from .cleanup import ResourceTracker
from .expectations import find_check, label_names
from .failures import FailureInjector
from .resources import ResourceFactory
from .waiter import Waiter

logger = logging.getLogger(__name__)


def build_client(config: Config) -> GitHubClient:
    """Create the gateway described by ``config``.

    Raises:
        ConfigurationMissingError: If no token is configured
    """
    token = require_token(config)
    policy = RetryPolicy(
        max_attempts=config.retry.max_attempts,
        backoff_fn=server_advised_backoff(
            config.retry.default_retry_after, config.retry.backoff_factor
        ),
    )
    return GitHubClient(
        auth=PersonalAccessTokenAuth(token),
        config=GitHubClientConfig(
            base_url=config.github.base_url,
            timeout=config.github.timeout,
            user_agent=config.github.user_agent,
        ),
        retry_policy=policy,
    )


class HarnessSession:
    """Explicit run state shared by every test case."""

    def __init__(
        self,
        config: Config,
        client: GitHubClient,
        waiter: Waiter | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.owner = config.github.owner
        self.repo = config.github.repo
        self.waiter = waiter or Waiter()
        self.tracker = ResourceTracker(client, self.owner, self.repo)
        self.factory = ResourceFactory(client, self.tracker, config.harness)
        self.failures = FailureInjector(self.factory)

    @classmethod
    def from_config(cls, config: Config) -> "HarnessSession":
        return cls(config, build_client(config))

    async def __aenter__(self) -> "HarnessSession":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.client.close()

    @property
    def waits(self):
        return self.config.waits

    # Issues

    async def get_issue(self, issue_number: int) -> dict[str, Any]:
        return await self.client.get_issue(self.owner, self.repo, issue_number)

    async def get_issue_labels(self, issue_number: int) -> list[str]:
        return label_names(await self.get_issue(issue_number))

    async def get_issue_comments(self, issue_number: int) -> list[dict[str, Any]]:
        return await self.client.list_issue_comments(self.owner, self.repo, issue_number)

    async def update_issue(self, issue_number: int, **fields: Any) -> dict[str, Any]:
        return await self.client.update_issue(
            self.owner, self.repo, issue_number, **fields
        )

    async def close_issue(self, issue_number: int) -> dict[str, Any]:
        return await self.update_issue(issue_number, state="closed")

    async def comment(self, issue_number: int, body: str) -> dict[str, Any]:
        return await self.client.create_issue_comment(
            self.owner, self.repo, issue_number, body
        )

    # Pull requests and checks

    async def get_pull_request(self, pr_number: int) -> dict[str, Any]:
        return await self.client.get_pull(self.owner, self.repo, pr_number)

    async def get_head_sha(self, pr_number: int) -> str:
        pr = await self.get_pull_request(pr_number)
        return pr["head"]["sha"]

    async def get_pr_checks(self, pr_number: int) -> list[dict[str, Any]]:
        """Check runs attached to the pull request's head commit."""
        sha = await self.get_head_sha(pr_number)
        return await self.client.list_check_runs(self.owner, self.repo, sha)

    # Milestones

    async def get_milestone(self, milestone_number: int) -> dict[str, Any]:
        return await self.client.get_milestone(self.owner, self.repo, milestone_number)

    async def set_milestone_state(self, milestone: int | str, state: str) -> dict[str, Any]:
        """Open or close a milestone by number or by title fragment.

        Raises:
            LookupError: If no milestone title contains the fragment
        """
        if isinstance(milestone, str):
            milestones = await self.client.list_milestones(self.owner, self.repo)
            match = next((m for m in milestones if milestone in m["title"]), None)
            if match is None:
                raise LookupError(f"Milestone not found: {milestone}")
            number = match["number"]
        else:
            number = milestone
        return await self.client.update_milestone(
            self.owner, self.repo, number, state=state
        )

    async def close_milestone(self, milestone: int | str) -> dict[str, Any]:
        return await self.set_milestone_state(milestone, "closed")

    async def open_milestone(self, milestone: int | str) -> dict[str, Any]:
        return await self.set_milestone_state(milestone, "open")

    # Workflow runs

    async def get_workflow_runs(
        self, workflow_name: str, branch: str | None = None, sha: str | None = None
    ) -> list[dict[str, Any]]:
        """Runs of the named workflow, newest first.

        Raises:
            LookupError: If the repository has no workflow with that name
        """
        workflows = await self.client.list_workflows(self.owner, self.repo)
        workflow = next((w for w in workflows if w.get("name") == workflow_name), None)
        if workflow is None:
            raise LookupError(f"Workflow not found: {workflow_name}")
        return await self.client.list_workflow_runs(
            self.owner, self.repo, workflow["id"], branch=branch, head_sha=sha
        )

    async def wait_for_workflow_run(
        self, run_id: int, timeout: float = 180.0, interval: float = 5.0
    ) -> dict[str, Any]:
        """Poll a workflow run until it completes.

        Raises:
            TimeoutError: If the run has not completed within ``timeout``
        """

        async def fetch() -> dict[str, Any] | None:
            try:
                return await self.client.get_workflow_run(self.owner, self.repo, run_id)
            except GitHubNotFoundError:
                # The run may not be visible yet.
                return None

        run = await self.waiter.await_value(
            fetch,
            lambda r: r is not None and r.get("status") == "completed",
            interval=interval,
            timeout=timeout,
            description=f"workflow run {run_id} completion",
        )
        if run is None or run.get("status") != "completed":
            raise TimeoutError(
                f"Workflow run {run_id} did not complete within {timeout:.0f}s"
            )
        return run

    # Eventual-consistency helpers

    async def wait_for_check(
        self, pr_number: int, check_name: str, timing: WaitTiming | None = None
    ) -> dict[str, Any] | None:
        """Wait until the named check run on the PR head has a conclusion."""
        timing = timing or self.waits.check_run

        async def fetch() -> dict[str, Any] | None:
            return find_check(await self.get_pr_checks(pr_number), check_name)

        return await self.waiter.await_value(
            fetch,
            lambda c: c is not None and c.get("conclusion") is not None,
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=f"check '{check_name}' on PR #{pr_number}",
        )

    async def wait_for_label(
        self,
        issue_number: int,
        label: str,
        present: bool = True,
        timing: WaitTiming | None = None,
    ) -> bool:
        """Wait until the label is present (or absent) on the issue."""
        timing = timing or self.waits.label

        async def predicate() -> bool:
            return (label in await self.get_issue_labels(issue_number)) == present

        return await self.waiter.await_with(
            predicate,
            timing,
            description=f"label '{label}' {'on' if present else 'off'} #{issue_number}",
        )

    async def wait_for_issue(
        self,
        issue_number: int,
        accept: Callable[[dict[str, Any]], bool],
        timing: WaitTiming | None = None,
    ) -> dict[str, Any] | None:
        """Wait until the issue payload satisfies ``accept``; returns last seen."""
        timing = timing or self.waits.milestone
        return await self.waiter.await_value(
            lambda: self.get_issue(issue_number),
            accept,
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=f"issue #{issue_number} state",
        )

    async def wait_for_milestone_state(
        self, milestone_number: int, state: str, timing: WaitTiming | None = None
    ) -> dict[str, Any] | None:
        """Wait until the milestone reaches ``state``; returns last seen."""
        timing = timing or self.waits.milestone
        return await self.waiter.await_value(
            lambda: self.get_milestone(milestone_number),
            lambda m: m is not None and m.get("state") == state,
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=f"milestone #{milestone_number} {state}",
        )

    async def wait_for_comments(
        self,
        issue_number: int,
        accept: Callable[[list[dict[str, Any]]], bool],
        timing: WaitTiming | None = None,
    ) -> list[dict[str, Any]]:
        """Wait until the comment list satisfies ``accept``; returns last seen."""
        timing = timing or self.waits.comment
        comments = await self.waiter.await_value(
            lambda: self.get_issue_comments(issue_number),
            accept,
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=f"comments on #{issue_number}",
        )
        return comments or []

    async def wait_for_workflow_runs(
        self, workflow_name: str, sha: str, timing: WaitTiming | None = None
    ) -> list[dict[str, Any]]:
        """Wait until at least one run of the workflow exists for ``sha``."""
        timing = timing or self.waits.workflow_run
        runs = await self.waiter.await_value(
            lambda: self.get_workflow_runs(workflow_name, sha=sha),
            lambda r: bool(r),
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=f"'{workflow_name}' runs for {sha[:7]}",
        )
        return runs or []

    async def watch_workflow_runs(
        self,
        workflow_name: str,
        sha: str,
        limit: int,
        timing: WaitTiming | None = None,
    ) -> list[dict[str, Any]]:
        """Observe the workflow's runs for ``sha`` across the whole window.

        Unlike :meth:`wait_for_workflow_runs` this keeps polling after the
        first run appears, so runs that accumulate later are counted.
        Returns as soon as more than ``limit`` runs exist, otherwise the runs
        seen at the deadline.
        """
        timing = timing or self.waits.workflow_run
        runs = await self.waiter.await_value(
            lambda: self.get_workflow_runs(workflow_name, sha=sha),
            lambda r: len(r) > limit,
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=f"'{workflow_name}' runs for {sha[:7]} beyond {limit}",
        )
        return runs or []
