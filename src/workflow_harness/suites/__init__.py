"""Scenario suites.

``SUITES`` is the static manifest: each entry maps a suite name to the
``register(runner)`` function of its module, in run order.
"""

from collections.abc import Callable

from . import detection, local_guard, prevention, recovery

SUITES: dict[str, Callable] = {
    detection.SUITE: detection.register,
    local_guard.SUITE: local_guard.register,
    prevention.SUITE: prevention.register,
    recovery.SUITE: recovery.register,
}


def register_all(runner) -> None:
    """Register every suite in manifest order."""
    for register in SUITES.values():
        register(runner)
