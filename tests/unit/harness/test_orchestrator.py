"""
Unit tests for the sequential test orchestrator.

Why: A failing scenario must not stop the run or skip cleanup, and the
     process exit status must reflect scenario outcomes only.

What: Tests case registration, selection, error isolation, unconditional
      cleanup and the summary text.

How: Registers small async cases against a session backed by FakeGitHub.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from workflow_harness.config.models import Config, GitHubSettings, HarnessSettings
from workflow_harness.harness.models import (
    CleanupReport,
    ResourceKind,
    SkipCase,
    SuiteReport,
    TestResult,
    TestStatus,
    TrackedResource,
)
from workflow_harness.harness.orchestrator import TestOrchestrator, format_summary
from workflow_harness.harness.session import HarnessSession


async def passing(session):
    await session.factory.create_issue("Passing case")


async def failing(session):
    await session.factory.create_issue("Failing case")
    raise AssertionError("label never appeared")


async def skipped(session):
    raise SkipCase("not implemented yet")


class TestRegistration:
    """Test add_test and select."""

    def test_registration_order(self):
        runner = TestOrchestrator()
        runner.add_test("a", passing, suite="detection")
        runner.add_test("b", failing, suite="recovery")

        assert [c.name for c in runner.cases] == ["a", "b"]

    def test_duplicate_name_rejected(self):
        runner = TestOrchestrator()
        runner.add_test("a", passing)

        with pytest.raises(ValueError, match="Duplicate"):
            runner.add_test("a", failing)

    def test_select_by_suite_or_name(self):
        runner = TestOrchestrator()
        runner.add_test("a", passing, suite="detection")
        runner.add_test("b", passing, suite="detection")
        runner.add_test("c", passing, suite="recovery")

        runner.select(["recovery", "a"])

        assert [c.name for c in runner.cases] == ["a", "c"]

    def test_empty_selection_keeps_everything(self):
        runner = TestOrchestrator()
        runner.add_test("a", passing)

        runner.select([])

        assert len(runner.cases) == 1


class TestRunAll:
    """Test TestOrchestrator.run_all."""

    async def test_failure_isolated_and_cleanup_covers_all(self, session, fake_github):
        """
        Why: One failing scenario must neither abort the run nor leak its
             fixtures
        What: Exactly one fail and one pass; both issues are cleaned up
        How: Registers a failing case before a passing one
        """
        runner = TestOrchestrator(session)
        runner.add_test("fails", failing)
        runner.add_test("passes", passing)

        report = await runner.run_all()

        assert [(r.name, r.status) for r in report.results] == [
            ("fails", TestStatus.FAIL),
            ("passes", TestStatus.PASS),
        ]
        assert report.results[0].error == "label never appeared"
        assert report.exit_code == 1
        assert report.cleanup.tallies[ResourceKind.ISSUE].succeeded == 2
        assert all(i["state"] == "closed" for i in fake_github.issues.values())

    async def test_skip_does_not_fail_run(self, session):
        runner = TestOrchestrator(session)
        runner.add_test("skipped", skipped, suite="prevention")

        report = await runner.run_all()

        result = report.results[0]
        assert result.status == TestStatus.SKIP
        assert result.error == "not implemented yet"
        assert result.suite == "prevention"
        assert report.exit_code == 0

    async def test_empty_error_message_uses_type_name(self, session):
        async def bare(session):
            raise RuntimeError()

        runner = TestOrchestrator(session)
        runner.add_test("bare", bare)

        report = await runner.run_all()

        assert report.results[0].error == "RuntimeError"

    async def test_cancellation_still_cleans_up(self, session, fake_github):
        """
        Why: An interrupted run must still reverse what it created
        What: Cleanup runs before the cancellation propagates
        How: A case creates an issue then raises CancelledError
        """

        async def interrupted(session):
            await session.factory.create_issue("Interrupted")
            raise asyncio.CancelledError()

        runner = TestOrchestrator(session)
        runner.add_test("interrupted", interrupted)
        runner.add_test("never runs", passing)

        with pytest.raises(asyncio.CancelledError):
            await runner.run_all()

        assert len(fake_github.issues) == 1
        assert all(i["state"] == "closed" for i in fake_github.issues.values())

    async def test_cleanup_disabled(self, fake_github, waiter):
        config = Config(
            github=GitHubSettings(token="t", repository="octo/sandbox"),
            harness=HarnessSettings(cleanup_after_tests=False),
        )
        runner = TestOrchestrator(HarnessSession(config, fake_github, waiter=waiter))
        runner.add_test("passes", passing)

        report = await runner.run_all()

        assert report.cleanup.skipped
        assert fake_github.called("update_issue") == []

    async def test_cleanup_crash_does_not_change_outcome(self, session):
        session.tracker.cleanup = AsyncMock(side_effect=RuntimeError("tracker gone"))
        runner = TestOrchestrator(session)
        runner.add_test("passes", passing)

        report = await runner.run_all()

        assert report.exit_code == 0
        assert report.cleanup.attempted == 0

    async def test_requires_session(self):
        runner = TestOrchestrator()
        runner.add_test("a", passing)

        with pytest.raises(RuntimeError):
            await runner.run_all()


class TestFormatSummary:
    """Test format_summary."""

    def test_lists_results_and_totals(self):
        report = SuiteReport(
            results=[
                TestResult("ok", TestStatus.PASS),
                TestResult("bad", TestStatus.FAIL, error="boom"),
                TestResult("later", TestStatus.SKIP),
            ],
            cleanup=CleanupReport(skipped=True),
        )

        text = format_summary(report)

        assert "[PASS] ok" in text
        assert "[FAIL] bad: boom" in text
        assert "[SKIP] later" in text
        assert "Passed:  1" in text
        assert "Failed:  1" in text
        assert "Total:   3" in text
        assert "Cleanup: skipped" in text

    def test_reports_manual_cleanup(self):
        cleanup = CleanupReport()
        cleanup.record(TrackedResource(ResourceKind.ISSUE, 5))
        cleanup.record(TrackedResource(ResourceKind.BRANCH, "topic"), "server error")

        text = format_summary(SuiteReport(cleanup=cleanup))

        assert "Cleanup: 1/2 succeeded" in text
        assert "needs manual cleanup: branch topic (server error)" in text
