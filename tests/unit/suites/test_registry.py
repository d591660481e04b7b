"""Unit tests for the static suite manifest."""

from workflow_harness.harness.orchestrator import TestOrchestrator
from workflow_harness.suites import SUITES, register_all

PREFIXES = {
    "detection": "Detection - ",
    "local_guard": "Local Guard - ",
    "prevention": "Prevention - ",
    "recovery": "Recovery - ",
}


class TestSuiteManifest:
    """Test SUITES and register_all."""

    def test_manifest_order(self):
        assert list(SUITES) == ["detection", "local_guard", "prevention", "recovery"]

    def test_register_all(self):
        """
        Why: The CLI selects cases by suite id and prints them by name
        What: Every case carries its suite id and the suite's name prefix
        How: Registers everything into an orchestrator without a session
        """
        runner = TestOrchestrator()

        register_all(runner)

        cases = runner.cases
        assert len(cases) == 35
        assert len({c.name for c in cases}) == len(cases)
        for case in cases:
            assert case.name.startswith(PREFIXES[case.suite])

    def test_counts_per_suite(self):
        runner = TestOrchestrator()
        register_all(runner)

        counts = {}
        for case in runner.cases:
            counts[case.suite] = counts.get(case.suite, 0) + 1

        assert counts == {"detection": 17, "local_guard": 6, "prevention": 9, "recovery": 3}
