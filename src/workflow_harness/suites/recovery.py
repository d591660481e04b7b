"""Recovery layer scenarios for the auto-retry workflow.

Each case opens a pull request whose CI fails in a known way and then
watches the retry workflow's runs for the pull request's head commit.
"""

import logging

from ..harness.failures import FailureType
from ..harness.session import HarnessSession

logger = logging.getLogger(__name__)

SUITE = "recovery"

RETRY_WORKFLOW = "Auto Retry Failed Workflows"
RETRY_CEILING = 3
RETRY_COMMENT_MARKERS = ("リトライ", "🔄")


async def _failing_pr(session: HarnessSession, title: str, failure: FailureType) -> tuple[int, str]:
    issue = await session.factory.create_issue(title)
    pr = await session.failures.inject_failure(failure, issue["number"])
    logger.info(f"Created PR #{pr['number']} with {failure.value} error")
    return pr["number"], await session.get_head_sha(pr["number"])


def is_retry_comment(comment: dict) -> bool:
    body = comment.get("body") or ""
    return any(marker in body for marker in RETRY_COMMENT_MARKERS)


async def retryable_error_retried(session: HarnessSession) -> None:
    _, sha = await _failing_pr(session, "Test auto-retry: Network error", FailureType.NETWORK)
    runs = await session.wait_for_workflow_runs(RETRY_WORKFLOW, sha)
    if not runs:
        raise AssertionError("Auto-retry workflow was not triggered")


async def non_retryable_error_handled(session: HarnessSession) -> None:
    _, sha = await _failing_pr(
        session, "Test auto-retry: Logic error (non-retryable)", FailureType.LOGIC
    )
    runs = await session.wait_for_workflow_runs(
        RETRY_WORKFLOW, sha, timing=session.waits.workflow_run.settle()
    )
    logger.info(f"Found {len(runs)} auto-retry workflow run(s)")
    if not runs:
        return

    latest = await session.wait_for_workflow_run(runs[0]["id"])
    if latest.get("conclusion") != "failure":
        logger.warning(
            f"Expected auto-retry conclusion 'failure', got '{latest.get('conclusion')}'"
        )


async def retry_ceiling(session: HarnessSession) -> None:
    number, sha = await _failing_pr(
        session, "Test auto-retry: Max retry limit", FailureType.NETWORK
    )
    runs = await session.watch_workflow_runs(RETRY_WORKFLOW, sha, RETRY_CEILING)
    logger.info(f"Observed {len(runs)} auto-retry workflow run(s) for {sha[:7]}")
    if len(runs) > RETRY_CEILING:
        raise AssertionError(
            f"Auto-retry ran {len(runs)} times for {sha[:7]}, ceiling is {RETRY_CEILING}"
        )

    comments = await session.get_issue_comments(number)
    if not any(is_retry_comment(c) for c in comments):
        logger.warning(f"No retry comments found on PR #{number}")


CASES = [
    ("Retryable error - Auto-retry triggered", retryable_error_retried),
    ("Non-retryable error - Handled correctly", non_retryable_error_handled),
    ("Max retry limit", retry_ceiling),
]


def register(runner) -> None:
    for name, run in CASES:
        runner.add_test(f"Recovery - {name}", run, suite=SUITE)
