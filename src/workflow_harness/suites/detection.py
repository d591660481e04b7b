"""Detection layer scenarios.

Covers the pull request validation checks (issue reference, required
files, workflow YAML syntax), the missing-test warning comment and the
circular dependency detector.
"""

from ..harness.expectations import (
    check_satisfied,
    closes_issue,
    find_circular_dependencies,
)
from ..harness.models import FileSpec
from ..harness.session import HarnessSession

SUITE = "detection"

ISSUE_REFERENCE_CHECK = "Check Issue Reference"
REQUIRED_FILES_CHECK = "Check Required File Changes"
YAML_SYNTAX_CHECK = "Validate YAML Syntax"
CIRCULAR_LABEL = "circular-dependency"
MISSING_TEST_WARNING = "テストファイルの変更が見つかりません"

VALID_WORKFLOW = """\
name: Test Valid Workflow

on: push

jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - name: Checkout
        uses: actions/checkout@v4
      - name: Test
        run: echo "Valid workflow"
"""

INVALID_WORKFLOW = """\
name: Test Invalid Workflow

on: push

jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - name: Checkout
        uses: actions/checkout@v4
      - name: Broken
        run echo "Missing colon"
"""


async def expect_check(
    session: HarnessSession, pr_number: int, check_name: str, conclusion: str
) -> None:
    check = await session.wait_for_check(pr_number, check_name)
    if not check_satisfied(check, conclusion):
        observed = check.get("conclusion") if check else "missing"
        raise AssertionError(
            f"{check_name} on PR #{pr_number}: expected {conclusion}, got {observed}"
        )


async def expect_issue_reference(
    session: HarnessSession, issue_number: int, title: str, body: str
) -> None:
    """Open a PR with ``body`` and compare the check to the closing keywords."""
    pr = await session.factory.create_pull_request(issue_number, title=title, body=body)
    expected = "success" if closes_issue(body, issue_number) else "failure"
    await expect_check(session, pr["number"], ISSUE_REFERENCE_CHECK, expected)


async def expect_circular_labels(
    session: HarnessSession, bodies: dict[int, str]
) -> None:
    """Labels must match the cycles implied by the final issue bodies."""
    circular = find_circular_dependencies(bodies)
    for number in bodies:
        present = number in circular
        if not await session.wait_for_label(number, CIRCULAR_LABEL, present=present):
            state = "missing" if present else "still present"
            raise AssertionError(f"Issue #{number}: {CIRCULAR_LABEL} label {state}")


# Issue reference


async def closes_pattern(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("Test Issue for Closes pattern")
    n = issue["number"]
    await expect_issue_reference(session, n, f"Test PR for #{n}", f"Closes #{n}")


async def fixes_pattern(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("Test Issue for Fixes pattern")
    n = issue["number"]
    await expect_issue_reference(session, n, f"Fix #{n}", f"Fixes #{n}")


async def resolves_pattern(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("Test Issue for Resolves pattern")
    n = issue["number"]
    await expect_issue_reference(session, n, f"Resolve #{n}", f"Resolves #{n}")


async def no_close_pattern(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("Test Issue without close pattern")
    n = issue["number"]
    await expect_issue_reference(
        session,
        n,
        f"Test PR #{n}",
        f"This PR references #{n} but has no close pattern",
    )


async def multiple_issues(session: HarnessSession) -> None:
    first = await session.factory.create_issue("Test Issue 1")
    second = await session.factory.create_issue("Test Issue 2")
    await expect_issue_reference(
        session,
        first["number"],
        "Multiple issues test",
        f"Closes #{first['number']}\nCloses #{second['number']}",
    )


# Required files


async def phase_completion_with_notes(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("フェーズ1: テスト完了")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="フェーズ1完了",
        body=f"Closes #{issue['number']}",
        files=[
            FileSpec(
                "docs/learning/phase1/notes.md",
                "# 学習メモ\n\n## 学んだこと\n- GitHub Actionsの基礎",
            )
        ],
    )
    await expect_check(session, pr["number"], REQUIRED_FILES_CHECK, "success")


async def phase_completion_without_notes(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("フェーズ2: テスト完了（notes.mdなし）")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="フェーズ2完了",
        body=f"Closes #{issue['number']}",
        files=[FileSpec("README.md", "# Updated README")],
    )
    await expect_check(session, pr["number"], REQUIRED_FILES_CHECK, "failure")


def _has_missing_test_warning(comments: list[dict]) -> bool:
    return any(MISSING_TEST_WARNING in (c.get("body") or "") for c in comments)


async def source_with_tests(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("ソースコードとテストの変更")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="テスト: ソースとテスト両方変更",
        body=f"Closes #{issue['number']}",
        files=[
            FileSpec("src/newFeature.ts", "export function newFeature() { return true; }"),
            FileSpec(
                "src/newFeature.spec.ts",
                'test("newFeature", () => { expect(true).toBe(true); });',
            ),
        ],
    )
    comments = await session.wait_for_comments(
        pr["number"], _has_missing_test_warning, timing=session.waits.comment.settle()
    )
    if _has_missing_test_warning(comments):
        raise AssertionError("Should not warn when both source and test are changed")


async def source_without_tests(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("テストなしのソース変更")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="テスト: ソースのみ変更",
        body=f"Closes #{issue['number']}",
        files=[
            FileSpec(
                "src/anotherFeature.ts",
                "export function anotherFeature() { return false; }",
            )
        ],
    )
    comments = await session.wait_for_comments(pr["number"], _has_missing_test_warning)
    if not _has_missing_test_warning(comments):
        raise AssertionError("Should warn when source is changed without tests")


async def non_phase_pull_request(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("通常のバグ修正")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="バグ修正: テスト",
        body=f"Closes #{issue['number']}",
        files=[FileSpec("src/index.ts", "export function test() {}")],
    )
    check = await session.wait_for_check(pr["number"], REQUIRED_FILES_CHECK)
    if check_satisfied(check, "failure"):
        raise AssertionError("Non-phase completion PR should not fail file check")


# Workflow syntax


async def valid_yaml(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("正常なワークフローYAML")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="テスト: 正常なワークフロー追加",
        body=f"Closes #{issue['number']}",
        files=[FileSpec(".github/workflows/test-valid.yml", VALID_WORKFLOW)],
    )
    await expect_check(session, pr["number"], YAML_SYNTAX_CHECK, "success")


async def invalid_yaml(session: HarnessSession) -> None:
    issue = await session.factory.create_issue("壊れたワークフローYAML")
    pr = await session.factory.create_pull_request(
        issue["number"],
        title="テスト: 壊れたワークフロー",
        body=f"Closes #{issue['number']}",
        files=[FileSpec(".github/workflows/test-invalid.yml", INVALID_WORKFLOW)],
    )
    await expect_check(session, pr["number"], YAML_SYNTAX_CHECK, "failure")


# Circular dependencies


async def simple_cycle(session: HarnessSession) -> None:
    a = (await session.factory.create_issue("Circular Test A", "Initial content"))["number"]
    b_body = f"depends on #{a}"
    b = (await session.factory.create_issue("Circular Test B", b_body))["number"]
    a_body = f"depends on #{b}"
    await session.update_issue(a, body=a_body)
    await expect_circular_labels(session, {a: a_body, b: b_body})


async def three_way_cycle(session: HarnessSession) -> None:
    a = (await session.factory.create_issue("Three-way Test A", "Initial content"))["number"]
    b = (await session.factory.create_issue("Three-way Test B", "Initial content"))["number"]
    c_body = f"depends on #{a}"
    c = (await session.factory.create_issue("Three-way Test C", c_body))["number"]
    bodies = {a: f"depends on #{b}", b: f"depends on #{c}", c: c_body}
    await session.update_issue(a, body=bodies[a])
    await session.update_issue(b, body=bodies[b])
    await expect_circular_labels(session, bodies)


async def self_dependency(session: HarnessSession) -> None:
    n = (await session.factory.create_issue("Self Dependency Test", "Initial content"))["number"]
    body = f"depends on #{n}"
    await session.update_issue(n, body=body)
    await expect_circular_labels(session, {n: body})


async def no_cycle(session: HarnessSession) -> None:
    b = (await session.factory.create_issue("No Circular Test B", "No dependencies"))["number"]
    a_body = f"depends on #{b}"
    a = (await session.factory.create_issue("No Circular Test A", a_body))["number"]
    await expect_circular_labels(session, {a: a_body, b: "No dependencies"})


async def cycle_resolution(session: HarnessSession) -> None:
    a = (await session.factory.create_issue("Resolution Test A", "Initial content"))["number"]
    b_body = f"depends on #{a}"
    b = (await session.factory.create_issue("Resolution Test B", b_body))["number"]
    a_body = f"depends on #{b}"
    await session.update_issue(a, body=a_body)
    await expect_circular_labels(session, {a: a_body, b: b_body})

    resolved = "No dependencies anymore"
    await session.update_issue(a, body=resolved)
    await expect_circular_labels(session, {a: resolved, b: b_body})


CASES = [
    ("Closes pattern", closes_pattern),
    ("Fixes pattern", fixes_pattern),
    ("Resolves pattern", resolves_pattern),
    ("No close pattern (reject)", no_close_pattern),
    ("Multiple issues", multiple_issues),
    ("Phase completion with notes.md", phase_completion_with_notes),
    ("Phase completion without notes.md (reject)", phase_completion_without_notes),
    ("Source + test changes (no warning)", source_with_tests),
    ("Source without test (warning)", source_without_tests),
    ("Non-phase completion PR (skip)", non_phase_pull_request),
    ("Valid YAML syntax", valid_yaml),
    ("Invalid YAML syntax (reject)", invalid_yaml),
    ("Simple circular dependency (A→B→A)", simple_cycle),
    ("Three-way circular (A→B→C→A)", three_way_cycle),
    ("Self-dependency detection", self_dependency),
    ("No circular dependency (normal)", no_cycle),
    ("Circular dependency resolution", cycle_resolution),
]


def register(runner) -> None:
    for name, run in CASES:
        runner.add_test(f"Detection - {name}", run, suite=SUITE)
