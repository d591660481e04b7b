"""
Unit tests for GitHub authentication.

Why: The harness authenticates with a single personal access token; it
     must reject blank tokens early and never leak the token in logs.

What: Tests AuthToken and PersonalAccessTokenAuth.

How: Constructs providers directly and from a patched environment.
"""

from unittest.mock import patch

import pytest

from workflow_harness.github.auth import AuthToken, PersonalAccessTokenAuth
from workflow_harness.github.exceptions import GitHubAuthenticationError


class TestAuthToken:
    """Test AuthToken data class."""

    def test_to_header(self) -> None:
        token = AuthToken(token="abc", token_type="token")

        assert token.to_header() == {"Authorization": "token abc"}

    def test_repr_masks_token(self) -> None:
        assert "abc" not in repr(AuthToken(token="abc"))


class TestPersonalAccessTokenAuth:
    """Test PersonalAccessTokenAuth provider."""

    async def test_get_token_strips_whitespace(self) -> None:
        auth = PersonalAccessTokenAuth("  ghp_test  ")

        token = await auth.get_token()

        assert token.token == "ghp_test"
        assert token.token_type == "token"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_token_rejected(self, value: str) -> None:
        with pytest.raises(GitHubAuthenticationError):
            PersonalAccessTokenAuth(value)

    async def test_from_env(self) -> None:
        with patch.dict("os.environ", {"GITHUB_TOKEN": "ghp_env"}):
            auth = PersonalAccessTokenAuth.from_env()

        assert (await auth.get_token()).token == "ghp_env"

    def test_from_env_missing(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(GitHubAuthenticationError):
                PersonalAccessTokenAuth.from_env()
