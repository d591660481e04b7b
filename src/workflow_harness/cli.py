"""Command line entry point for the workflow validation harness.

Usage:
    workflow-harness [SELECTION ...]
    workflow-harness run [SELECTION ...]
    workflow-harness autorun --issue N [--agent NAME|auto]
    workflow-harness list

SELECTION names suites (detection, local_guard, prevention, recovery) or
individual test cases; with no selection every registered case runs.
"""

import argparse
import asyncio
import logging
import sys

from .config import ConfigurationError, load_config
from .config.models import Config, LogLevel
from .github.exceptions import GitHubError
from .harness.autorun import AUTO, autorun
from .harness.orchestrator import TestOrchestrator, format_summary
from .harness.session import HarnessSession
from .suites import register_all

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

COMMANDS = ("run", "autorun", "list")
VALUE_OPTIONS = ("--config", "-c", "--log-level")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-harness",
        description="End-to-end validation of repository automation workflows",
    )
    parser.add_argument("--config", "-c", help="Configuration file path")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=[level.value for level in LogLevel],
        help="Log level (default: from configuration, INFO)",
    )

    subparsers = parser.add_subparsers(dest="command")

    run = subparsers.add_parser("run", help="Run test suites (default)")
    run.add_argument("selection", nargs="*", help="Suite or test case names")

    auto = subparsers.add_parser("autorun", help="Plan an agent run for an issue")
    auto.add_argument("--issue", type=int, required=True, help="Issue number")
    auto.add_argument("--agent", default=AUTO, help="Agent name or 'auto'")

    subparsers.add_parser("list", help="List registered suites and test cases")
    return parser


def normalize_argv(argv: list[str]) -> list[str]:
    """Insert the implicit ``run`` command before a bare selection.

    ``workflow-harness detection`` is shorthand for
    ``workflow-harness run detection``.
    """
    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg in VALUE_OPTIONS:
            index += 2
        elif arg.startswith("-"):
            index += 1
        elif arg in COMMANDS:
            return list(argv)
        else:
            return [*argv[:index], "run", *argv[index:]]
    return list(argv)


def build_runner(session: HarnessSession | None = None) -> TestOrchestrator:
    runner = TestOrchestrator(session)
    register_all(runner)
    return runner


async def run_suites(config: Config, selection: list[str]) -> int:
    async with HarnessSession.from_config(config) as session:
        runner = build_runner(session)
        runner.select(selection)
        if not runner.cases:
            logger.error(f"No test cases match selection: {' '.join(selection)}")
            return 1
        report = await runner.run_all()

    print(format_summary(report))
    return report.exit_code


async def run_autorun(config: Config, issue_number: int, agent: str) -> int:
    async with HarnessSession.from_config(config) as session:
        try:
            result = await autorun(session, issue_number, agent)
        except (GitHubError, FileNotFoundError) as e:
            logger.error(f"Autorun failed: {e}")
            return 1
    print(f"Agent {result.agent} planned on branch {result.branch}")
    return 0


def list_cases() -> int:
    for case in build_runner().cases:
        print(f"{case.suite:12} {case.name}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    args = parser.parse_args(normalize_argv(argv))

    logging.basicConfig(
        level=args.log_level or LogLevel.INFO.value,
        format=LOG_FORMAT,
    )

    if args.command == "list":
        return list_cases()

    try:
        config = load_config(args.config)
        if args.log_level is None:
            logging.getLogger().setLevel(config.system.log_level.value)

        if args.command == "autorun":
            return asyncio.run(run_autorun(config, args.issue, args.agent))
        return asyncio.run(run_suites(config, getattr(args, "selection", [])))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
