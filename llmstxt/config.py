"""Runtime configuration for the llmstxt CLI.

Every setting comes from the environment so the tool can be pointed at a
mirror registry, a scratch cache directory, or have telemetry switched off
without any config file on disk.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_REGISTRY_URL = (
    "https://raw.githubusercontent.com/thedaviddias/llms-txt-hub/main/"
    "packages/cli/data/registry.json"
)
DEFAULT_TELEMETRY_URL = "https://llmstxt.directory/api/cli/telemetry"

REGISTRY_CACHE_TTL_SECONDS = 24 * 60 * 60
STALE_AFTER_DAYS = 30

CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "GITLAB_CI", "CIRCLECI", "TRAVIS")


def _default_cache_dir() -> Path:
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / "llmstxt"


@dataclass
class Settings:
    """Resolved settings for one CLI invocation."""

    registry_url: str = DEFAULT_REGISTRY_URL
    cache_dir: Path = field(default_factory=_default_cache_dir)
    cache_ttl_seconds: int = REGISTRY_CACHE_TTL_SECONDS
    telemetry_url: str = DEFAULT_TELEMETRY_URL
    telemetry_disabled: bool = False
    ci: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        cache_dir = env.get("LLMSTXT_CACHE_DIR", "")
        return cls(
            registry_url=env.get("LLMSTXT_REGISTRY_URL", "") or DEFAULT_REGISTRY_URL,
            cache_dir=Path(cache_dir) if cache_dir else _default_cache_dir(),
            telemetry_url=env.get("LLMSTXT_TELEMETRY_URL", "") or DEFAULT_TELEMETRY_URL,
            telemetry_disabled=(
                env.get("DO_NOT_TRACK") == "1"
                or env.get("LLMSTXT_TELEMETRY_DISABLED") == "1"
            ),
            ci=any(env.get(name) for name in CI_ENV_VARS),
        )
