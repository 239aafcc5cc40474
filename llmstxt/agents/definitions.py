"""Supported AI coding agents and where each one reads project skills."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# Universal agents read skills straight from here; everyone else gets a link.
CANONICAL_DIR = ".agents/skills"


@dataclass(frozen=True)
class AgentConfig:
    """An AI coding agent that can consume installed skills."""

    name: str
    display_name: str
    skills_dir: str  # relative to the project root
    is_universal: bool = False
    markers: tuple[str, ...] = ()  # home-relative paths that signal an install

    def is_installed(self, home: Path | None = None) -> bool:
        base = home or Path.home()
        return any((base / marker).exists() for marker in self.markers)


AGENTS: tuple[AgentConfig, ...] = (
    AgentConfig("claude-code", "Claude Code", ".claude/skills", markers=(".claude",)),
    AgentConfig("cursor", "Cursor", ".cursor/skills", markers=(".cursor",)),
    AgentConfig(
        "opencode",
        "OpenCode",
        CANONICAL_DIR,
        is_universal=True,
        markers=(".config/opencode", ".agents"),
    ),
    AgentConfig("codex", "Codex", CANONICAL_DIR, is_universal=True, markers=(".codex",)),
    AgentConfig("windsurf", "Windsurf", ".windsurf/skills", markers=(".codeium/windsurf",)),
    AgentConfig("cline", "Cline", ".cline/skills", markers=(".cline",)),
)


def get_agent(name: str) -> AgentConfig | None:
    for agent in AGENTS:
        if agent.name == name:
            return agent
    return None


def detect_installed_agents(home: Path | None = None) -> list[AgentConfig]:
    """Return the agents whose config directories exist under *home*."""
    return [a for a in AGENTS if a.is_installed(home)]
