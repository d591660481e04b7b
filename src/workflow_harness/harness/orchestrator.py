"""Sequential test orchestrator.

Runs registered cases one at a time in registration order, isolates each
case's errors at the case boundary, and always hands the tracked resources
to the cleanup manager once the run ends, however it ends.
"""

import logging
import time
from collections.abc import Iterable

from .models import (
    CaseFn,
    CleanupReport,
    SkipCase,
    SuiteReport,
    TestCase,
    TestResult,
    TestStatus,
)
from .session import HarnessSession

logger = logging.getLogger(__name__)

RULE = "━" * 40


class TestOrchestrator:
    """Registers named test cases and runs them against one session."""

    __test__ = False

    def __init__(self, session: HarnessSession | None = None) -> None:
        self.session = session
        self._cases: list[TestCase] = []

    @property
    def cases(self) -> list[TestCase]:
        return list(self._cases)

    def add_test(self, name: str, run: CaseFn, suite: str | None = None) -> TestCase:
        """Register a case.

        Raises:
            ValueError: If a case with the same name is already registered
        """
        if any(case.name == name for case in self._cases):
            raise ValueError(f"Duplicate test case name: {name}")
        case = TestCase(name=name, run=run, suite=suite)
        self._cases.append(case)
        return case

    def select(self, names: Iterable[str]) -> None:
        """Keep only cases whose suite or case name is in ``names``.

        An empty selection keeps everything.
        """
        wanted = {n for n in names if n}
        if not wanted:
            return
        self._cases = [
            case for case in self._cases if case.name in wanted or case.suite in wanted
        ]

    async def _run_case(self, case: TestCase) -> TestResult:
        logger.info(f"▶ {case.name}")
        start = time.monotonic()
        try:
            await case.run(self.session)
        except SkipCase as e:
            status, error = TestStatus.SKIP, str(e) or None
            logger.info(f"  SKIP {case.name}: {error}")
        except Exception as e:
            status, error = TestStatus.FAIL, str(e) or type(e).__name__
            logger.error(f"  FAIL {case.name}: {error}")
            logger.debug("Case traceback", exc_info=True)
        else:
            status, error = TestStatus.PASS, None
            logger.info(f"  PASS {case.name}")
        return TestResult(
            name=case.name,
            status=status,
            error=error,
            duration_seconds=time.monotonic() - start,
            suite=case.suite,
        )

    async def _cleanup(self) -> CleanupReport:
        if not self.session.config.harness.cleanup_after_tests:
            logger.warning("Cleanup disabled by configuration; tracked resources remain")
            return CleanupReport(skipped=True)
        try:
            return await self.session.tracker.cleanup()
        except Exception as e:
            # Cleanup never changes the suite outcome.
            logger.error(f"Cleanup failed: {e}")
            return CleanupReport()

    async def run_all(self) -> SuiteReport:
        """Run every registered case, then clean up unconditionally."""
        if self.session is None:
            raise RuntimeError("A session is required to run test cases")
        report = SuiteReport()
        logger.info(f"Running {len(self._cases)} test case(s)")
        try:
            for case in self._cases:
                report.results.append(await self._run_case(case))
        finally:
            report.cleanup = await self._cleanup()
        return report


def format_summary(report: SuiteReport) -> str:
    """Render the end-of-run summary printed by the CLI."""
    lines = [RULE, "Test Results", RULE]
    for result in report.results:
        line = f"[{result.status.value.upper():4}] {result.name}"
        if result.error:
            line += f": {result.error}"
        lines.append(line)
    lines.append(RULE)
    lines.append(f"Passed:  {report.passed}")
    lines.append(f"Failed:  {report.failed}")
    lines.append(f"Skipped: {report.skipped}")
    lines.append(f"Total:   {len(report.results)}")

    cleanup = report.cleanup
    if cleanup is not None:
        if cleanup.skipped:
            lines.append("Cleanup: skipped")
        else:
            lines.append(f"Cleanup: {cleanup.succeeded}/{cleanup.attempted} succeeded")
            for resource, message in cleanup.failures:
                lines.append(f"  needs manual cleanup: {resource.describe()} ({message})")
    lines.append(RULE)
    return "\n".join(lines)
