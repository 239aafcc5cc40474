"""Choosing which agents receive installed skills.

Preferences are saved per project in ``.llms/agent-prefs.json`` so a choice
made during ``init`` sticks for later ``install`` and ``update`` runs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from llmstxt.agents.definitions import AGENTS, AgentConfig, detect_installed_agents

logger = logging.getLogger(__name__)

PREFS_DIR = ".llms"
PREFS_FILE = "agent-prefs.json"

DEFAULT_AGENTS = ("claude-code", "cursor", "codex")


def detect_project_agents(
    project_dir: str | Path, agents: tuple[AgentConfig, ...] = AGENTS
) -> list[str]:
    """Names of non-universal agents whose config dir (e.g. ``.cursor/``) exists in the project."""
    detected = []
    for agent in agents:
        if agent.is_universal:
            continue
        config_dir = agent.skills_dir.split("/")[0]
        if config_dir and (Path(project_dir) / config_dir).is_dir():
            detected.append(agent.name)
    return detected


def initial_agents(
    saved: list[str] | None,
    project_dir: str | Path | None = None,
    agents: tuple[AgentConfig, ...] = AGENTS,
) -> list[str]:
    """Pre-selection for the agent picker.

    Priority: saved preferences, then agent directories already present in
    the project, then the built-in defaults.
    """
    valid = {a.name for a in agents}

    if saved:
        filtered = [name for name in saved if name in valid]
        if filtered:
            return filtered

    if project_dir is not None:
        detected = detect_project_agents(project_dir, agents)
        if detected:
            return detected

    return [name for name in DEFAULT_AGENTS if name in valid]


def ensure_universal_agents(
    selected: list[str], agents: tuple[AgentConfig, ...] = AGENTS
) -> list[str]:
    """Universal agents read the canonical directory, so they are always included."""
    result = list(selected)
    for agent in agents:
        if agent.is_universal and agent.name not in result:
            result.append(agent.name)
    return result


def load_agent_prefs(project_dir: str | Path) -> list[str] | None:
    path = Path(project_dir) / PREFS_DIR / PREFS_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.debug("Ignoring unreadable agent preferences %s: %s", path, e)
        return None

    agents = data.get("agents") if isinstance(data, dict) else None
    if isinstance(agents, list) and all(isinstance(a, str) for a in agents):
        return agents
    return None


def save_agent_prefs(project_dir: str | Path, names: list[str]) -> None:
    path = Path(project_dir) / PREFS_DIR / PREFS_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"agents": names}, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        logger.debug("Could not save agent preferences: %s", e)


def resolve_target_agents(
    project_dir: str | Path, home: Path | None = None
) -> list[AgentConfig]:
    """Agents that an install should materialize into.

    Saved preferences win; otherwise every agent detected on this machine.
    """
    saved = load_agent_prefs(project_dir)
    if saved:
        names = ensure_universal_agents([n for n in saved if any(a.name == n for a in AGENTS)])
        return [a for a in AGENTS if a.name in names]
    return detect_installed_agents(home)
