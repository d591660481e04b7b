"""Resource tracking and best-effort cleanup.

The tracker keeps an append-only log of every remote resource the harness
creates. ``cleanup`` walks that log in dependency order (pull requests and
their branches, then stray branches, then issues, then milestones) and
reverses each entry independently, so one failure never blocks the rest.
"""

import logging

from ..github.client import GitHubClient
from ..github.exceptions import (
    GitHubError,
    GitHubNotFoundError,
    GitHubValidationError,
)
from .models import CleanupReport, ResourceKind, TrackedResource

logger = logging.getLogger(__name__)


class ResourceTracker:
    """Cleanup manager owning the log of created resources."""

    def __init__(self, client: GitHubClient, owner: str, repo: str) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo
        self._log: list[TrackedResource] = []
        self._cleaned: set[tuple[str, str]] = set()

    @property
    def resources(self) -> list[TrackedResource]:
        """Copy of the tracking log in creation order."""
        return list(self._log)

    def track(self, resource: TrackedResource) -> TrackedResource:
        """Append one entry to the log."""
        self._log.append(resource)
        logger.debug(f"Tracking {resource.describe()}")
        return resource

    def of_kind(self, kind: ResourceKind) -> list[TrackedResource]:
        return [r for r in self._log if r.kind == kind]

    def is_cleaned(self, resource: TrackedResource) -> bool:
        return resource.key in self._cleaned

    async def _delete_branch(self, branch: str) -> None:
        try:
            await self.client.delete_ref(self.owner, self.repo, f"heads/{branch}")
        except GitHubNotFoundError:
            logger.debug(f"Branch {branch} already deleted")
        except GitHubValidationError as e:
            if "reference does not exist" not in str(e).lower():
                raise
            logger.debug(f"Branch {branch} already deleted")

    async def _reverse(self, resource: TrackedResource) -> None:
        """Undo one resource. Already-closed or already-gone counts as done."""
        if resource.kind == ResourceKind.PULL_REQUEST:
            await self.client.update_pull(
                self.owner, self.repo, int(resource.id), state="closed"
            )
        elif resource.kind == ResourceKind.BRANCH:
            await self._delete_branch(str(resource.id))
        elif resource.kind == ResourceKind.ISSUE:
            await self.client.update_issue(
                self.owner, self.repo, int(resource.id), state="closed"
            )
        elif resource.kind == ResourceKind.MILESTONE:
            try:
                await self.client.delete_milestone(
                    self.owner, self.repo, int(resource.id)
                )
            except GitHubNotFoundError:
                logger.debug(f"Milestone #{resource.id} already deleted")

    async def _attempt(self, resource: TrackedResource, report: CleanupReport) -> bool:
        if self.is_cleaned(resource):
            report.record(resource)
            return True
        try:
            await self._reverse(resource)
        except GitHubError as e:
            logger.warning(f"Failed to clean up {resource.describe()}: {e}")
            report.record(resource, str(e))
            return False
        self._cleaned.add(resource.key)
        report.record(resource)
        return True

    def _pr_branches(self) -> list[TrackedResource]:
        """Branch entries for the branches of tracked pull requests."""
        branches = []
        for pr in self.of_kind(ResourceKind.PULL_REQUEST):
            if pr.branch_name:
                branches.append(TrackedResource(ResourceKind.BRANCH, pr.branch_name))
        return branches

    async def cleanup(self) -> CleanupReport:
        """Reverse every tracked resource, best effort.

        Safe to call more than once: entries cleaned by an earlier pass are
        counted as successful without another remote call.
        """
        report = CleanupReport()
        if not self._log:
            return report

        logger.info(
            f"Cleaning up {len(self.of_kind(ResourceKind.ISSUE))} issue(s), "
            f"{len(self.of_kind(ResourceKind.PULL_REQUEST))} pull request(s), "
            f"{len(self.of_kind(ResourceKind.MILESTONE))} milestone(s)"
        )

        branch_entries: dict[tuple[str, str], TrackedResource] = {}
        for branch in self.of_kind(ResourceKind.BRANCH) + self._pr_branches():
            branch_entries.setdefault(branch.key, branch)

        # Pull requests first, each followed by its branch.
        for pr in self.of_kind(ResourceKind.PULL_REQUEST):
            closed = await self._attempt(pr, report)
            if closed and pr.branch_name:
                branch = branch_entries.pop(
                    (ResourceKind.BRANCH.value, pr.branch_name), None
                )
                if branch is not None:
                    await self._attempt(branch, report)

        # Branches whose pull request was never opened or failed to close.
        for branch in branch_entries.values():
            await self._attempt(branch, report)

        for issue in self.of_kind(ResourceKind.ISSUE):
            await self._attempt(issue, report)

        for milestone in self.of_kind(ResourceKind.MILESTONE):
            await self._attempt(milestone, report)

        logger.info(f"Cleanup complete: {report.summary()}")
        if not report.complete:
            logger.warning(
                f"{len(report.failures)} item(s) failed to clean up. "
                "Manual cleanup may be required."
            )
        return report
