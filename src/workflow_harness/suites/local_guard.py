"""Local guard scenarios: branch naming and commit message checks."""

from ..harness.models import FileSpec
from ..harness.session import HarnessSession
from .detection import expect_check

SUITE = "local_guard"

BRANCH_NAME_CHECK = "Check Branch Naming Convention"
COMMIT_MESSAGE_CHECK = "Check Commit Message Format"


async def _guarded_pr(
    session: HarnessSession,
    issue_title: str,
    pr_title: str,
    branch: str,
    commit_message: str | None = None,
    files: list[FileSpec] | None = None,
) -> int:
    issue = await session.factory.create_issue(issue_title)
    n = issue["number"]
    pr = await session.factory.create_pull_request(
        n,
        title=pr_title.format(n=n),
        body=f"Closes #{n}",
        branch_name=branch.format(n=n),
        commit_message=commit_message.format(n=n) if commit_message else None,
        files=[
            FileSpec(f.path, f.content, f.commit_message.format(n=n) if f.commit_message else None)
            for f in files or ()
        ],
    )
    return pr["number"]


# Branch naming


async def valid_feature_branch(session: HarnessSession) -> None:
    pr = await _guarded_pr(
        session,
        "Test Issue for valid branch",
        "Test: Valid branch name for #{n}",
        "feature/{n}-valid-branch-test",
    )
    await expect_check(session, pr, BRANCH_NAME_CHECK, "success")


async def branch_without_issue_number(session: HarnessSession) -> None:
    pr = await _guarded_pr(
        session,
        "Test Issue for invalid branch",
        "Test: Invalid branch name",
        "feature/invalid-branch-without-number",
    )
    await expect_check(session, pr, BRANCH_NAME_CHECK, "failure")


async def valid_hotfix_branch(session: HarnessSession) -> None:
    pr = await _guarded_pr(
        session,
        "Test Issue for hotfix",
        "Hotfix: #{n}",
        "hotfix/{n}-urgent-fix",
    )
    await expect_check(session, pr, BRANCH_NAME_CHECK, "success")


# Commit messages


async def valid_commit_message(session: HarnessSession) -> None:
    pr = await _guarded_pr(
        session,
        "Test Issue for commit message",
        "Test: Valid commit message",
        "feature/{n}-valid-commit-test",
        commit_message="fix: #{n} test valid commit message",
    )
    await expect_check(session, pr, COMMIT_MESSAGE_CHECK, "success")


async def commit_without_issue(session: HarnessSession) -> None:
    pr = await _guarded_pr(
        session,
        "Test Issue for invalid commit",
        "Test: Invalid commit message",
        "feature/{n}-invalid-commit-test",
        commit_message="fix: test without issue number",
    )
    await expect_check(session, pr, COMMIT_MESSAGE_CHECK, "failure")


async def multiple_valid_commits(session: HarnessSession) -> None:
    pr = await _guarded_pr(
        session,
        "Test Issue for multiple commits",
        "Test: Multiple commits",
        "feature/{n}-multiple-commits",
        files=[
            FileSpec("test-file-1.txt", "First commit", "feat: #{n} first commit"),
            FileSpec("test-file-2.txt", "Second commit", "feat: #{n} second commit"),
        ],
    )
    await expect_check(session, pr, COMMIT_MESSAGE_CHECK, "success")


CASES = [
    ("Valid feature branch", valid_feature_branch),
    ("Invalid branch (reject)", branch_without_issue_number),
    ("Valid hotfix branch", valid_hotfix_branch),
    ("Valid commit message", valid_commit_message),
    ("Invalid commit (reject)", commit_without_issue),
    ("Multiple valid commits", multiple_valid_commits),
]


def register(runner) -> None:
    for name, run in CASES:
        runner.add_test(f"Local Guard - {name}", run, suite=SUITE)
