"""Agent storage — materializing installed skills on disk.

Each skill is written once to the canonical ``.agents/skills/<slug>/``
directory; every non-universal target agent gets a relative symlink to it
(or a copy where symlinks are unavailable). Writes and removals are
idempotent.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

import yaml

from llmstxt.agents.definitions import AGENTS, CANONICAL_DIR, AgentConfig
from llmstxt.errors import UnsafePathError

logger = logging.getLogger(__name__)

SKILL_FILE = "SKILL.md"
REFERENCE_FILE = "reference.md"
LARGE_FILE_THRESHOLD = 500  # lines

GITIGNORE_ENTRIES = (
    ".llms/",
    ".agents/skills/",
    ".claude/skills/",
    ".cursor/skills/",
    ".windsurf/skills/",
    ".cline/skills/",
)


@dataclass(frozen=True)
class SkillDocument:
    """Metadata rendered into the SKILL.md header."""

    slug: str
    name: str
    description: str
    source_url: str
    format: str = "llms.txt"


def checksum(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def content_size(content: str) -> int:
    return len(content.encode("utf-8"))


def render_skill(doc: SkillDocument, content: str) -> tuple[str, str | None]:
    """Return ``(skill_md, reference_md)``.

    Artifacts longer than the threshold move to ``reference.md`` and SKILL.md
    only points at it, keeping the file agents load eagerly small.
    """
    label = "full " if doc.format == "llms-full.txt" else ""
    frontmatter = yaml.safe_dump(
        {
            "name": f"{doc.slug}-docs",
            "description": (
                f"Official {doc.name} {label}documentation. "
                f"Reference when working with {doc.name}."
            ),
            "user-invocable": False,
        },
        sort_keys=False,
        allow_unicode=True,
        width=1000,
    )
    header = [
        "---",
        frontmatter.rstrip("\n"),
        "---",
        "",
        f"# {doc.name} Documentation",
        "",
    ]
    if doc.description:
        header += [doc.description, ""]
    header += [f"Source: {doc.source_url}", ""]

    if len(content.split("\n")) > LARGE_FILE_THRESHOLD:
        header.append(f"For complete documentation, see [{REFERENCE_FILE}]({REFERENCE_FILE}).")
        return "\n".join(header) + "\n", content

    header += ["---", "", content]
    return "\n".join(header), None


class AgentStorage:
    """Writes and removes skills for one project."""

    def __init__(self, project_dir: str | Path, agents: list[AgentConfig] | None = None):
        self.project_dir = Path(project_dir)
        self.agents = list(agents or [])
        self.canonical_root = self.project_dir / CANONICAL_DIR

    def skill_path(self, slug: str) -> Path:
        return _slug_dir(self.canonical_root, slug) / SKILL_FILE

    def is_installed(self, slug: str) -> bool:
        try:
            return self.skill_path(slug).is_file()
        except UnsafePathError:
            return False

    def write(self, slug: str, content: str, doc: SkillDocument) -> list[str]:
        """Materialize *content* for *slug*; returns the touched skill directories."""
        canonical = _slug_dir(self.canonical_root, slug)
        agent_paths = [
            (agent.skills_dir, _slug_dir(self.project_dir / agent.skills_dir, slug))
            for agent in self.agents
            if not agent.is_universal
        ]
        canonical.mkdir(parents=True, exist_ok=True)

        skill_md, reference_md = render_skill(doc, content)
        (canonical / SKILL_FILE).write_text(skill_md, encoding="utf-8")
        reference = canonical / REFERENCE_FILE
        if reference_md is not None:
            reference.write_text(reference_md, encoding="utf-8")
        else:
            reference.unlink(missing_ok=True)

        touched = [CANONICAL_DIR]
        for skills_dir, agent_path in agent_paths:
            if skills_dir in touched:
                continue
            self._link(canonical, agent_path)
            touched.append(skills_dir)
        return touched

    def remove(self, slug: str) -> list[str]:
        """Delete *slug* from the canonical dir and every known agent dir."""
        canonical = _slug_dir(self.canonical_root, slug)
        agent_paths = [
            (agent.skills_dir, _slug_dir(self.project_dir / agent.skills_dir, slug))
            for agent in AGENTS
            if not agent.is_universal
        ]

        touched = []
        if canonical.exists():
            shutil.rmtree(canonical)
            touched.append(CANONICAL_DIR)

        for skills_dir, agent_path in agent_paths:
            if skills_dir in touched:
                continue
            if _remove_path(agent_path):
                touched.append(skills_dir)
        return touched

    def _link(self, canonical: Path, agent_path: Path) -> None:
        agent_path.parent.mkdir(parents=True, exist_ok=True)
        target = os.path.relpath(canonical, agent_path.parent)

        if agent_path.is_symlink():
            if os.readlink(agent_path) == target:
                return
            agent_path.unlink()
        elif agent_path.exists():
            _remove_path(agent_path)

        try:
            agent_path.symlink_to(target, target_is_directory=True)
        except OSError as e:
            logger.debug("Symlink failed for %s (%s); copying instead", agent_path, e)
            shutil.copytree(canonical, agent_path)


def _slug_dir(root: Path, slug: str) -> Path:
    """Return ``root / slug``, refusing any slug that is not a single directory below *root*."""
    base = root.resolve()
    # normpath, not resolve: agent entries are symlinks into the canonical dir.
    target = Path(os.path.normpath(base / slug))
    if not slug or target.parent != base:
        raise UnsafePathError(f"Refusing to use {slug!r} as a skill directory under {root}")
    return root / slug


def _remove_path(path: Path) -> bool:
    """Remove a symlink (dangling or not), file, or directory. ``False`` if absent."""
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def add_to_gitignore(project_dir: str | Path) -> bool:
    """Append the managed directories to ``.gitignore``; ``False`` if already present."""
    path = Path(project_dir) / ".gitignore"
    if path.exists():
        existing = path.read_text(encoding="utf-8")
        missing = [e for e in GITIGNORE_ENTRIES if e not in existing]
        if not missing:
            return False
        prefix = "" if existing.endswith("\n") or not existing else "\n"
        with open(path, "a", encoding="utf-8") as f:
            f.write(prefix + "\n# llms.txt documentation\n" + "\n".join(missing) + "\n")
    else:
        path.write_text(
            "# llms.txt documentation\n" + "\n".join(GITIGNORE_ENTRIES) + "\n", encoding="utf-8"
        )
    return True
