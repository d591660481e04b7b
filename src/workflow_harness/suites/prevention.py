"""Prevention layer scenarios: milestone auto-assignment and validation."""

from typing import Any

from ..harness.models import SkipCase
from ..harness.resources import unique_suffix
from ..harness.session import HarnessSession

SUITE = "prevention"

PHASE_MILESTONES = {
    1: "フェーズ1: GitHub Actions基礎理解",
    2: "フェーズ2: LLM統合の概念",
}
PHASE_PREFIX = "フェーズ"
PRE_EXISTING_PHASE = "フェーズ0"


def milestone_title(issue: dict[str, Any] | None) -> str | None:
    if not issue or not issue.get("milestone"):
        return None
    return issue["milestone"].get("title")


def is_bot_comment(comment: dict[str, Any]) -> bool:
    return (comment.get("user") or {}).get("type") == "Bot"


async def expect_phase_milestone(session: HarnessSession, title: str, phase: int) -> None:
    expected = PHASE_MILESTONES[phase]
    issue = await session.factory.create_issue(title)
    updated = await session.wait_for_issue(
        issue["number"], lambda i: milestone_title(i) == expected
    )
    observed = milestone_title(updated)
    if observed != expected:
        raise AssertionError(f"Expected {expected} milestone, got {observed or 'none'}")


# Auto-milestone


async def phase1_auto_assignment(session: HarnessSession) -> None:
    await expect_phase_milestone(session, "📚 フェーズ1: テスト用Issue", 1)


async def phase2_auto_assignment(session: HarnessSession) -> None:
    await expect_phase_milestone(session, "📚 フェーズ2: LLM統合テスト", 2)


async def no_phase_number(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("バグ修正: テスト")
    updated = await session.wait_for_issue(
        issue["number"],
        lambda i: bool(milestone_title(i)),
        timing=session.waits.milestone.settle(),
    )
    title = milestone_title(updated)
    if title and title.startswith(PHASE_PREFIX):
        raise AssertionError(f"Unexpected phase milestone: {title}")


async def existing_milestone_kept(session: HarnessSession) -> None:
    milestones = await session.client.list_milestones(session.owner, session.repo)
    existing = next((m for m in milestones if PRE_EXISTING_PHASE in m["title"]), None)
    if existing is None:
        raise SkipCase(f"No {PRE_EXISTING_PHASE} milestone in {session.owner}/{session.repo}")

    issue = await session.factory.create_issue("テスト: 既存Milestone")
    n = issue["number"]
    await session.update_issue(n, milestone=existing["number"])
    # Retitling fires the auto-milestone workflow again.
    await session.update_issue(n, title=session.factory.marked("📚 フェーズ1: 既存Milestoneテスト"))

    updated = await session.wait_for_issue(
        n,
        lambda i: milestone_title(i) != existing["title"],
        timing=session.waits.milestone.settle(),
    )
    title = milestone_title(updated)
    if not title or PRE_EXISTING_PHASE not in title:
        raise AssertionError(f"Milestone was overwritten: {title}")


async def success_comment(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("📚 フェーズ3: コメントテスト")
    comments = await session.wait_for_comments(
        issue["number"], lambda cs: any(is_bot_comment(c) for c in cs)
    )
    if not any(is_bot_comment(c) for c in comments):
        raise AssertionError("No comment from github-actions bot")


async def phase_progression(session: HarnessSession) -> None:
    raise SkipCase("Phase progression checks are not automated")


# Milestone validation


async def _milestone_with_issues(session: HarnessSession, label: str, count: int):
    milestone = await session.factory.create_milestone(
        session.factory.marked(f"Validation Test {label} {unique_suffix()}")
    )
    issues = []
    for i in range(1, count + 1):
        issue = await session.factory.create_issue(f"Issue {i} for milestone {label}")
        await session.factory.assign_issue_to_milestone(issue["number"], milestone["number"])
        issues.append(issue["number"])
    return milestone["number"], issues


async def _expect_milestone_state(
    session: HarnessSession, number: int, state: str, settle: bool
) -> None:
    timing = session.waits.milestone.settle() if settle else session.waits.milestone
    milestone = await session.wait_for_milestone_state(number, state, timing=timing)
    observed = milestone.get("state") if milestone else "missing"
    if observed != state:
        raise AssertionError(f"Milestone #{number} should be {state} but is {observed}")


async def all_issues_closed(session: HarnessSession) -> None:
    number, issues = await _milestone_with_issues(session, "closed", 2)
    for issue in issues:
        await session.close_issue(issue)
    await session.close_milestone(number)
    await _expect_milestone_state(session, number, "closed", settle=True)


async def open_issues_reopen(session: HarnessSession) -> None:
    number, issues = await _milestone_with_issues(session, "reopen", 2)
    await session.close_issue(issues[0])
    await session.close_milestone(number)
    await _expect_milestone_state(session, number, "open", settle=False)


async def empty_milestone_closed(session: HarnessSession) -> None:
    number, _ = await _milestone_with_issues(session, "empty", 0)
    await session.close_milestone(number)
    await _expect_milestone_state(session, number, "closed", settle=True)


CASES = [
    ("Phase 1 milestone auto-assignment", phase1_auto_assignment),
    ("Phase 2 milestone auto-assignment", phase2_auto_assignment),
    ("No phase number (skip)", no_phase_number),
    ("Existing milestone (no overwrite)", existing_milestone_kept),
    ("Success comment added", success_comment),
    ("Phase progression checks", phase_progression),
    ("All issues closed - Milestone stays closed", all_issues_closed),
    ("Open issues exist - Milestone reopens", open_issues_reopen),
    ("No issues - Milestone stays closed", empty_milestone_closed),
]


def register(runner) -> None:
    for name, run in CASES:
        runner.add_test(f"Prevention - {name}", run, suite=SUITE)
