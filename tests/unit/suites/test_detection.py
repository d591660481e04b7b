"""
Unit tests for detection scenarios.

Why: A scenario must turn the observed check conclusion or label state into
     a pass or a descriptive failure; the remote automation itself is out of
     reach in unit tests.

What: Runs detection cases against FakeGitHub with the session's wait
      helpers replaced by scripted observations.

How: Patches wait_for_check and wait_for_label on the session instance.
"""

from unittest.mock import AsyncMock

import pytest

from workflow_harness.suites import detection


def scripted_check(conclusion):
    return AsyncMock(
        side_effect=lambda pr, name, timing=None: {"name": name, "conclusion": conclusion}
    )


class TestIssueReferenceCases:
    """Test issue reference scenarios."""

    async def test_closes_pattern_passes_on_success(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await detection.closes_pattern(session)

        pr = next(iter(fake_github.pulls.values()))
        issue_number = next(iter(fake_github.issues))
        assert pr["body"] == f"Closes #{issue_number}"
        session.wait_for_check.assert_awaited_once_with(
            pr["number"], detection.ISSUE_REFERENCE_CHECK
        )

    async def test_no_close_pattern_expects_failure(self, session):
        session.wait_for_check = scripted_check("success")

        with pytest.raises(AssertionError, match="expected failure, got success"):
            await detection.no_close_pattern(session)

    async def test_missing_check_reported(self, session):
        session.wait_for_check = AsyncMock(return_value=None)

        with pytest.raises(AssertionError, match="got missing"):
            await detection.valid_yaml(session)

    async def test_multiple_issues_body(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await detection.multiple_issues(session)

        first, second = list(fake_github.issues)
        pr = next(iter(fake_github.pulls.values()))
        assert pr["body"] == f"Closes #{first}\nCloses #{second}"


class TestRequiredFilesCases:
    """Test required file and missing-test scenarios."""

    async def test_phase_completion_commits_notes(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await detection.phase_completion_with_notes(session)

        paths = [args[0] for args, _ in fake_github.called("create_or_update_file")]
        assert paths == ["docs/learning/phase1/notes.md"]

    async def test_warning_expected_without_tests(self, session):
        with pytest.raises(AssertionError, match="Should warn"):
            await detection.source_without_tests(session)

    async def test_no_warning_when_tests_included(self, session):
        await detection.source_with_tests(session)

    async def test_unwanted_warning_fails(self, session, fake_github):
        session.wait_for_comments = AsyncMock(
            return_value=[{"body": f"⚠️ {detection.MISSING_TEST_WARNING}"}]
        )

        with pytest.raises(AssertionError, match="Should not warn"):
            await detection.source_with_tests(session)

    async def test_non_phase_pr_tolerates_missing_check(self, session):
        session.wait_for_check = AsyncMock(return_value=None)

        await detection.non_phase_pull_request(session)


class TestCircularDependencyCases:
    """Test circular dependency scenarios."""

    async def test_simple_cycle_expects_both_labelled(self, session, fake_github):
        session.wait_for_label = AsyncMock(return_value=True)

        await detection.simple_cycle(session)

        a, b = list(fake_github.issues)
        assert fake_github.issues[a]["body"] == f"depends on #{b}"
        presence = {
            call.args[0]: call.kwargs["present"]
            for call in session.wait_for_label.await_args_list
        }
        assert presence == {a: True, b: True}

    async def test_no_cycle_expects_no_labels(self, session):
        session.wait_for_label = AsyncMock(return_value=True)

        await detection.no_cycle(session)

        assert all(
            call.kwargs["present"] is False
            for call in session.wait_for_label.await_args_list
        )

    async def test_resolution_checks_label_removed(self, session, fake_github):
        session.wait_for_label = AsyncMock(return_value=True)

        await detection.cycle_resolution(session)

        calls = session.wait_for_label.await_args_list
        assert [c.kwargs["present"] for c in calls] == [True, True, False, False]

    async def test_label_missing_fails(self, session):
        session.wait_for_label = AsyncMock(return_value=False)

        with pytest.raises(AssertionError, match="circular-dependency label missing"):
            await detection.self_dependency(session)
