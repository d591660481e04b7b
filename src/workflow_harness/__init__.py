"""Workflow validation harness.

Black-box, end-to-end tests for repository automation: the harness creates
real issues, pull requests, branches and milestones in a disposable
repository, polls for the automation's reactions, and cleans up after
itself.
"""

__version__ = "0.1.0"
