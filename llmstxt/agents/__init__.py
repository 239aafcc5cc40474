"""Target directories for installed skills, one per AI coding tool."""

from llmstxt.agents.definitions import AGENTS, CANONICAL_DIR, AgentConfig
from llmstxt.agents.storage import AgentStorage, SkillDocument

__all__ = ["AGENTS", "CANONICAL_DIR", "AgentConfig", "AgentStorage", "SkillDocument"]
