"""Failure-injection pull requests.

Each error type maps to a test file that fails in one specific way when the
target repository's CI runs it. The pull requests probe whether the recovery
automation under test retries transient failures and leaves permanent ones
alone; the injected code itself is never the subject of a test.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .models import FileSpec
from .resources import ResourceFactory

logger = logging.getLogger(__name__)


class FailureType(str, Enum):
    """Ways an injected test file can fail."""

    NETWORK = "network"
    LOGIC = "logic"
    SYNTAX = "syntax"

    @property
    def retryable(self) -> bool:
        """Whether a correct recovery automation should retry this failure."""
        return self is FailureType.NETWORK


@dataclass(frozen=True)
class FailurePayload:
    path: str
    content: str


_NETWORK_TEST = """\
const axios = require('axios');

describe('Network Error Test', () => {
  test('should fail with network error', async () => {
    await axios.get('http://nonexistent-host-for-testing-12345.example.com', {
      timeout: 5000
    });
  }, 10000);
});
"""

_LOGIC_TEST = """\
describe('Logic Error Test', () => {
  test('should fail with assertion error', () => {
    const expected = 'correct value';
    const actual = 'wrong value';
    expect(actual).toBe(expected);
  });
});
"""

_SYNTAX_TEST = """\
describe('Syntax Error Test', () => {
  test('should fail with syntax error', () => {
    const broken = ;
  });
});
"""

PAYLOADS: dict[FailureType, FailurePayload] = {
    FailureType.NETWORK: FailurePayload("tests/network-failure.test.js", _NETWORK_TEST),
    FailureType.LOGIC: FailurePayload("tests/logic-failure.test.js", _LOGIC_TEST),
    FailureType.SYNTAX: FailurePayload("tests/syntax-failure.test.js", _SYNTAX_TEST),
}


class FailureInjector:
    """Builds pull requests carrying deliberately failing test files."""

    def __init__(self, factory: ResourceFactory) -> None:
        self.factory = factory

    async def inject_failure(
        self, error_type: FailureType | str, issue_number: int | None
    ) -> dict[str, Any]:
        """Open a pull request whose CI fails in the requested way.

        Args:
            error_type: network, logic or syntax
            issue_number: Issue the pull request closes

        Returns:
            Created pull request data

        Raises:
            ValueError: For an unknown error type or a missing issue number,
                before any remote call is made
        """
        try:
            failure = FailureType(error_type)
        except ValueError:
            raise ValueError(f"Unknown error type: {error_type}") from None
        if not issue_number:
            raise ValueError("issue_number is required")

        payload = PAYLOADS[failure]
        pr = await self.factory.create_pull_request(
            issue_number,
            title=f"Test: {failure.value} error for Issue #{issue_number}",
            body=(
                f"Closes #{issue_number}\n\n"
                f"This PR intentionally triggers a {failure.value} error for testing."
            ),
            files=[FileSpec(payload.path, payload.content)],
        )
        logger.info(f"Injected {failure.value} failure in pull request #{pr['number']}")
        return pr
