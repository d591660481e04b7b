"""Agent autorun diagnostic.

Picks an agent profile for an issue from its labels and title, works out
the branch the agent would use, and reports the plan back on the issue.
No agent is actually executed.
"""

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .expectations import label_names
from .session import HarnessSession

logger = logging.getLogger(__name__)

AUTO = "auto"
DEFAULT_AGENT = "workflow-implementer"

LABEL_RULES: list[tuple[tuple[str, ...], str]] = [
    (("workflow", "workflow-bug"), "workflow-implementer"),
    (("test", "testing"), "test-implementer"),
    (("test-infra", "test-infrastructure"), "test-infrastructure"),
]
TITLE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("workflow", "github actions"), "workflow-implementer"),
    (("test", "testing"), "test-implementer"),
]


@dataclass(frozen=True)
class AutorunResult:
    issue_number: int
    agent: str
    branch: str
    agent_path: Path
    success: bool = True


def select_agent(issue: dict[str, Any]) -> str:
    """Choose an agent profile; labels win over title keywords."""
    labels = {name.lower() for name in label_names(issue)}
    title = (issue.get("title") or "").lower()

    for keys, agent in LABEL_RULES:
        if labels.intersection(keys):
            return agent
    for keys, agent in TITLE_RULES:
        if any(key in title for key in keys):
            return agent

    logger.warning(f"No specific agent matched. Using {DEFAULT_AGENT} as default.")
    return DEFAULT_AGENT


def branch_name(issue_number: int, title: str, timestamp: int | None = None) -> str:
    """``feature/<N>-<sanitized title>-<unix ts>``."""
    if timestamp is None:
        timestamp = int(time.time())
    sanitized = re.sub(r"[^a-z0-9]+", "-", title.lower())[:30]
    return f"feature/{issue_number}-{sanitized}-{timestamp}"


def report_comment(result: AutorunResult) -> str:
    return (
        "🤖 **Auto-Agent Execution Report**\n\n"
        f"✅ Agent selected: `{result.agent}`\n"
        f"🌿 Branch would be created: `{result.branch}`\n"
        f"📝 Agent definition: `{result.agent_path}`\n\n"
        "**Next Steps:**\n"
        "Agent execution is not automated yet. Run the selected agent manually "
        "with this issue as context."
    )


def error_comment(error: Exception) -> str:
    return (
        "❌ **Auto-Agent Execution Failed**\n\n"
        f"```\n{error}\n```\n\n"
        "Please check the workflow logs for details."
    )


async def autorun(
    session: HarnessSession, issue_number: int, agent: str = AUTO
) -> AutorunResult:
    """Plan an agent run for an issue and comment the plan on it.

    Raises:
        FileNotFoundError: If the agent definition file does not exist
        GitHubError: On tracker failures
    """
    logger.info(f"Auto-running agent for issue #{issue_number} in {session.owner}/{session.repo}")
    try:
        issue = await session.get_issue(issue_number)
        chosen = select_agent(issue) if agent == AUTO else agent
        logger.info(f"Selected agent: {chosen}")

        branch = branch_name(issue_number, issue.get("title") or "")
        agent_path = Path(session.config.harness.agents_dir) / f"{chosen}.md"
        if not agent_path.is_file():
            raise FileNotFoundError(f"Agent definition not found: {agent_path}")

        result = AutorunResult(issue_number, chosen, branch, agent_path)
        await session.comment(issue_number, report_comment(result))
        logger.info(f"Autorun report added to issue #{issue_number}")
        return result
    except Exception as e:
        logger.error(f"Autorun failed: {e}")
        try:
            await session.comment(issue_number, error_comment(e))
        except Exception as comment_error:
            logger.error(f"Failed to add error comment: {comment_error}")
        raise
