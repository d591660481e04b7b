"""Data models for test cases, results and tracked resources.

All records are frozen: a TestCase is immutable after registration, a
TestResult is never mutated after the orchestrator creates it, and a
TrackedResource entry is a log line that stays in the tracker for the whole
run, whatever happens during cleanup.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .session import HarnessSession

CaseFn = Callable[["HarnessSession"], Awaitable[None]]


class SkipCase(Exception):
    """Raised by a test case that deliberately does not run."""


class TestStatus(str, Enum):
    """Outcome of one test case."""

    __test__ = False

    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


class ResourceKind(str, Enum):
    """Kinds of remote resources the harness creates."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    BRANCH = "branch"
    MILESTONE = "milestone"


@dataclass(frozen=True)
class TestCase:
    """A named scenario registered with the orchestrator."""

    __test__ = False

    name: str
    run: CaseFn
    suite: str | None = None


@dataclass(frozen=True)
class TestResult:
    """Recorded outcome of one test case."""

    __test__ = False

    name: str
    status: TestStatus
    error: str | None = None
    duration_seconds: float = 0.0
    suite: str | None = None


@dataclass(frozen=True)
class TrackedResource:
    """Log entry for one remote resource created during the run."""

    kind: ResourceKind
    id: int | str
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> tuple[str, str]:
        """Identity used to record cleanup outcomes."""
        return (self.kind.value, str(self.id))

    @property
    def branch_name(self) -> str | None:
        """Branch attached to a pull request entry, if any."""
        return self.extra.get("branch_name")

    def describe(self) -> str:
        """Human-readable label for logs."""
        if self.kind == ResourceKind.BRANCH:
            return f"branch {self.id}"
        return f"{self.kind.value.replace('_', ' ')} #{self.id}"


@dataclass(frozen=True)
class FileSpec:
    """One file to commit onto a fixture branch."""

    path: str
    content: str
    commit_message: str | None = None


@dataclass
class CleanupTally:
    """Attempted versus successful cleanups for one resource kind."""

    attempted: int = 0
    succeeded: int = 0

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded


@dataclass
class CleanupReport:
    """Result of one cleanup pass."""

    tallies: dict[ResourceKind, CleanupTally] = field(
        default_factory=lambda: {kind: CleanupTally() for kind in ResourceKind}
    )
    failures: list[tuple[TrackedResource, str]] = field(default_factory=list)
    skipped: bool = False

    def record(self, resource: TrackedResource, error: str | None = None) -> None:
        """Tally one cleanup action."""
        tally = self.tallies[resource.kind]
        tally.attempted += 1
        if error is None:
            tally.succeeded += 1
        else:
            self.failures.append((resource, error))

    @property
    def attempted(self) -> int:
        return sum(t.attempted for t in self.tallies.values())

    @property
    def succeeded(self) -> int:
        return sum(t.succeeded for t in self.tallies.values())

    @property
    def complete(self) -> bool:
        """True when every attempted cleanup succeeded."""
        return not self.failures

    def summary(self) -> str:
        """One-line tally per kind."""
        parts = [
            f"{tally.succeeded}/{tally.attempted} {kind.value}s"
            for kind, tally in self.tallies.items()
        ]
        return ", ".join(parts)


@dataclass
class SuiteReport:
    """Aggregated results of one suite run."""

    results: list[TestResult] = field(default_factory=list)
    cleanup: CleanupReport | None = None

    def count(self, status: TestStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def passed(self) -> int:
        return self.count(TestStatus.PASS)

    @property
    def failed(self) -> int:
        return self.count(TestStatus.FAIL)

    @property
    def skipped(self) -> int:
        return self.count(TestStatus.SKIP)

    @property
    def exit_code(self) -> int:
        """Non-zero iff any result failed; cleanup never affects it."""
        return 1 if self.failed else 0
