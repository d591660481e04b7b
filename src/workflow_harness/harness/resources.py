"""Fixture factory for tracker resources.

Every creator records the new resource with the tracker in the same call
that creates it, so cleanup coverage is complete even when a later step of
a multi-step fixture (branch, commit, pull request) fails.
"""

import base64
import logging
import time
from collections.abc import Sequence
from typing import Any

from ..config.models import HarnessSettings
from ..github.client import GitHubClient
from ..github.exceptions import GitHubNotFoundError
from .cleanup import ResourceTracker
from .models import FileSpec, ResourceKind, TrackedResource

logger = logging.getLogger(__name__)

DEFAULT_ISSUE_BODY = "This is a test issue created by automated tests."
DEFAULT_PR_BODY = "This is a test PR created by automated tests."


def unique_suffix() -> str:
    """Millisecond timestamp used to keep fixture names distinct."""
    return str(int(time.time() * 1000))


class ResourceFactory:
    """Creates issues, branches, pull requests and milestones for scenarios."""

    def __init__(
        self,
        client: GitHubClient,
        tracker: ResourceTracker,
        settings: HarnessSettings | None = None,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.settings = settings or HarnessSettings()

    @property
    def owner(self) -> str:
        return self.tracker.owner

    @property
    def repo(self) -> str:
        return self.tracker.repo

    def marked(self, title: str) -> str:
        """Prefix a title with the test marker."""
        return f"{self.settings.test_marker} {title}"

    async def create_issue(
        self,
        title: str,
        body: str | None = None,
        labels: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """Create a marked, labelled test issue.

        Args:
            title: Issue title, without the marker
            body: Issue body
            labels: Extra labels; the automation label is always added

        Returns:
            Created issue data
        """
        all_labels = [self.settings.automation_label]
        all_labels.extend(label for label in labels or () if label not in all_labels)

        issue = await self.client.create_issue(
            self.owner,
            self.repo,
            title=self.marked(title),
            body=body or DEFAULT_ISSUE_BODY,
            labels=all_labels,
        )
        self.tracker.track(TrackedResource(ResourceKind.ISSUE, issue["number"]))
        logger.info(f"Created issue #{issue['number']}: {issue.get('title', title)}")
        return issue

    async def _branch_exists(self, branch: str) -> bool:
        try:
            await self.client.get_ref(self.owner, self.repo, f"heads/{branch}")
        except GitHubNotFoundError:
            return False
        return True

    async def _existing_file_sha(self, path: str, branch: str) -> str | None:
        try:
            existing = await self.client.get_content(
                self.owner, self.repo, path, ref=branch
            )
        except GitHubNotFoundError:
            return None
        if isinstance(existing, dict):
            return existing.get("sha")
        return None

    async def commit_file(
        self, branch: str, path: str, content: str, message: str | None = None
    ) -> dict[str, Any]:
        """Create or update one file on an existing branch."""
        sha = await self._existing_file_sha(path, branch)
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        return await self.client.create_or_update_file(
            self.owner,
            self.repo,
            path,
            message=message or f"Add/Update {path}",
            content=encoded,
            branch=branch,
            sha=sha,
        )

    async def create_branch_with_commit(
        self, branch: str, files: Sequence[FileSpec], default_message: str | None = None
    ) -> list[dict[str, Any]]:
        """Create ``branch`` from the default branch if absent and commit files.

        Returns:
            Commit results, one per file
        """
        if not files:
            raise ValueError("At least one file is required")

        base_ref = await self.client.get_ref(
            self.owner, self.repo, f"heads/{self.settings.default_branch}"
        )
        base_sha = base_ref["object"]["sha"]

        if not await self._branch_exists(branch):
            await self.client.create_ref(
                self.owner, self.repo, f"refs/heads/{branch}", base_sha
            )
            self.tracker.track(TrackedResource(ResourceKind.BRANCH, branch))
            logger.debug(f"Created branch {branch} at {base_sha[:7]}")

        results = []
        for spec in files:
            results.append(
                await self.commit_file(
                    branch,
                    spec.path,
                    spec.content,
                    spec.commit_message or default_message,
                )
            )
        return results

    async def create_pull_request(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        branch_name: str | None = None,
        commit_message: str | None = None,
        files: Sequence[FileSpec] | None = None,
    ) -> dict[str, Any]:
        """Commit files to a fresh branch and open a pull request for it.

        Args:
            issue_number: Issue the pull request belongs to
            title: Pull request title
            body: Pull request body; closing keywords are left to the caller
            branch_name: Branch to create; timestamped when omitted
            commit_message: Default commit message for files without their own
            files: Files to commit; a single placeholder file when omitted

        Returns:
            Created pull request data
        """
        branch = branch_name or f"test-pr-{unique_suffix()}"
        default_message = commit_message or f"test: Add test files for #{issue_number}"
        specs = list(files) if files else [
            FileSpec("test-file.txt", f"Test PR for #{issue_number}")
        ]
        for spec in specs:
            if not spec.path or not spec.content:
                raise ValueError("Each file must have path and content")

        await self.create_branch_with_commit(branch, specs, default_message)

        if body is None:
            body = f"{DEFAULT_PR_BODY}\n\nCloses #{issue_number}"
        pr = await self.client.create_pull(
            self.owner,
            self.repo,
            title=title or self.marked(f"PR for Issue #{issue_number}"),
            body=body,
            head=branch,
            base=self.settings.default_branch,
        )
        self.tracker.track(
            TrackedResource(
                ResourceKind.PULL_REQUEST, pr["number"], {"branch_name": branch}
            )
        )
        logger.info(f"Created pull request #{pr['number']} from {branch}")
        return pr

    async def create_milestone(
        self, title: str, description: str = ""
    ) -> dict[str, Any]:
        """Create a milestone."""
        milestone = await self.client.create_milestone(
            self.owner, self.repo, title, description
        )
        self.tracker.track(TrackedResource(ResourceKind.MILESTONE, milestone["number"]))
        logger.info(f"Created milestone #{milestone['number']}: {title}")
        return milestone

    async def assign_issue_to_milestone(
        self, issue_number: int, milestone_number: int
    ) -> dict[str, Any]:
        """Attach an issue to a milestone."""
        return await self.client.update_issue(
            self.owner, self.repo, issue_number, milestone=milestone_number
        )
