"""Unit tests for local guard scenarios."""

from unittest.mock import AsyncMock

import pytest

from workflow_harness.suites import local_guard


def scripted_check(conclusion):
    return AsyncMock(
        side_effect=lambda pr, name, timing=None: {"name": name, "conclusion": conclusion}
    )


class TestBranchNamingCases:
    """Test branch naming scenarios."""

    async def test_feature_branch_carries_issue_number(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await local_guard.valid_feature_branch(session)

        n = next(iter(fake_github.issues))
        pr = next(iter(fake_github.pulls.values()))
        assert pr["head"]["ref"] == f"feature/{n}-valid-branch-test"
        assert pr["title"] == f"Test: Valid branch name for #{n}"

    async def test_invalid_branch_must_fail(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        with pytest.raises(AssertionError, match="expected failure"):
            await local_guard.branch_without_issue_number(session)

        pr = next(iter(fake_github.pulls.values()))
        assert pr["head"]["ref"] == "feature/invalid-branch-without-number"

    async def test_hotfix_branch(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await local_guard.valid_hotfix_branch(session)

        n = next(iter(fake_github.issues))
        assert next(iter(fake_github.pulls.values()))["head"]["ref"] == f"hotfix/{n}-urgent-fix"


class TestCommitMessageCases:
    """Test commit message scenarios."""

    async def test_commit_message_formatted(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await local_guard.valid_commit_message(session)

        n = next(iter(fake_github.issues))
        _, kwargs = fake_github.called("create_or_update_file")[0]
        assert kwargs["message"] == f"fix: #{n} test valid commit message"
        session.wait_for_check.assert_awaited_once()
        assert session.wait_for_check.await_args.args[1] == local_guard.COMMIT_MESSAGE_CHECK

    async def test_invalid_commit_passes_on_failure_check(self, session):
        session.wait_for_check = scripted_check("failure")

        await local_guard.commit_without_issue(session)

    async def test_multiple_commits(self, session, fake_github):
        session.wait_for_check = scripted_check("success")

        await local_guard.multiple_valid_commits(session)

        n = next(iter(fake_github.issues))
        messages = [kw["message"] for _, kw in fake_github.called("create_or_update_file")]
        assert messages == [f"feat: #{n} first commit", f"feat: #{n} second commit"]
