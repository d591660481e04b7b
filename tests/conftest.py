"""
Shared pytest fixtures for the harness test suite.

Provides an in-memory tracker, a deterministic clock for the waiter, and
a fully wired HarnessSession so unit tests never touch the network or sleep.
"""

import pytest

from tests.fixtures.github.fake_tracker import FakeGitHub
from workflow_harness.config.models import Config, GitHubSettings
from workflow_harness.harness.session import HarnessSession
from workflow_harness.harness.waiter import Waiter


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """
    Deterministic clock for waiter tests.

    Why: Poll loops must be tested without real sleeps
    What: Provides a clock object that doubles as the waiter's sleep
    How: Each sleep call records its duration and advances ``now``
    """
    return FakeClock()


@pytest.fixture
def waiter(clock: FakeClock) -> Waiter:
    return Waiter(sleep=clock.sleep, clock=clock)


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def config() -> Config:
    """Configuration pointing at a throwaway repository."""
    return Config(
        github=GitHubSettings(token="test-token", repository="octo/sandbox")
    )


@pytest.fixture
def session(config: Config, fake_github: FakeGitHub, waiter: Waiter) -> HarnessSession:
    """
    HarnessSession wired to the in-memory tracker.

    Why: Factory, cleanup, session and orchestrator tests share one setup
    What: Provides a session whose gateway is FakeGitHub and whose waiter
          never really sleeps
    How: Passes the fake client and waiter straight into the constructor
    """
    return HarnessSession(config, fake_github, waiter=waiter)
