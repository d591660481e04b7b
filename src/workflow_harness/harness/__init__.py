"""End-to-end workflow validation harness."""

from .autorun import AutorunResult, autorun, select_agent
from .cleanup import ResourceTracker
from .failures import FailureInjector, FailureType
from .models import (
    CleanupReport,
    FileSpec,
    ResourceKind,
    SkipCase,
    SuiteReport,
    TestCase,
    TestResult,
    TestStatus,
    TrackedResource,
)
from .orchestrator import TestOrchestrator, format_summary
from .resources import ResourceFactory
from .session import HarnessSession, build_client
from .waiter import Waiter

__all__ = [
    "AutorunResult",
    "CleanupReport",
    "FailureInjector",
    "FailureType",
    "FileSpec",
    "HarnessSession",
    "ResourceFactory",
    "ResourceKind",
    "ResourceTracker",
    "SkipCase",
    "SuiteReport",
    "TestCase",
    "TestOrchestrator",
    "TestResult",
    "TestStatus",
    "TrackedResource",
    "Waiter",
    "autorun",
    "build_client",
    "format_summary",
    "select_agent",
]
