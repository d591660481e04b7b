"""Expected-outcome helpers shared by the scenario suites.

These functions compute, from the fixtures a scenario creates, what the
automation under test ought to report, so assertions compare the observed
remote state against an explicit expectation.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

CLOSING_KEYWORD = re.compile(
    r"\b(?:close[sd]?|fix(?:e[sd])?|resolve[sd]?)\s*:?\s+#(\d+)\b", re.IGNORECASE
)
ISSUE_REFERENCE = re.compile(r"#(\d+)\b")
DEPENDENCY = re.compile(r"\bdepends\s+on\s+#(\d+)\b", re.IGNORECASE)


def closing_references(body: str | None) -> set[int]:
    """Issue numbers closed by keyword (Closes/Fixes/Resolves #N)."""
    return {int(n) for n in CLOSING_KEYWORD.findall(body or "")}


def closes_issue(body: str | None, issue_number: int) -> bool:
    """True iff the body links ``issue_number`` with a closing keyword."""
    return issue_number in closing_references(body)


def issue_references(body: str | None) -> set[int]:
    """Every ``#N`` mentioned in the body, closing keyword or not."""
    return {int(n) for n in ISSUE_REFERENCE.findall(body or "")}


def parse_dependencies(body: str | None) -> set[int]:
    """Issue numbers declared with ``depends on #N``."""
    return {int(n) for n in DEPENDENCY.findall(body or "")}


def find_circular_dependencies(bodies: Mapping[int, str | None]) -> set[int]:
    """Issues that sit on a dependency cycle.

    An issue that depends on itself is circular. Dependencies on issues not
    present in ``bodies`` cannot close a cycle and are ignored.
    """
    graph = {
        number: {dep for dep in parse_dependencies(body) if dep in bodies}
        for number, body in bodies.items()
    }

    def reaches(start: int, target: int) -> bool:
        seen: set[int] = set()
        stack = list(graph[start])
        while stack:
            node = stack.pop()
            if node == target:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(graph[node])
        return False

    return {number for number in graph if reaches(number, number)}


def find_check(check_runs: Iterable[dict[str, Any]], name: str) -> dict[str, Any] | None:
    """First check run with the given name, if any."""
    for check in check_runs:
        if check.get("name") == name:
            return check
    return None


def check_satisfied(check_run: dict[str, Any] | None, expected_conclusion: str) -> bool:
    """True iff the check run completed with the expected conclusion."""
    return check_run is not None and check_run.get("conclusion") == expected_conclusion


def label_names(issue: Mapping[str, Any]) -> list[str]:
    """Label names of an issue payload."""
    return [
        label["name"] if isinstance(label, dict) else str(label)
        for label in issue.get("labels", [])
    ]
