"""Tests for agent storage and agent selection."""

import tempfile
from pathlib import Path

import pytest
import yaml

from llmstxt.agents.definitions import AGENTS, detect_installed_agents, get_agent
from llmstxt.agents.selection import (
    ensure_universal_agents,
    initial_agents,
    load_agent_prefs,
    resolve_target_agents,
    save_agent_prefs,
)
from llmstxt.agents.storage import (
    AgentStorage,
    SkillDocument,
    add_to_gitignore,
    render_skill,
)
from llmstxt.errors import UnsafePathError

DOC = SkillDocument(
    slug="react",
    name="React",
    description="The library for web and native user interfaces",
    source_url="https://react.dev/llms.txt",
)


def _agents(*names: str):
    return [get_agent(n) for n in names]


# --- Rendering ---


def test_render_skill_has_frontmatter_and_content():
    skill_md, reference = render_skill(DOC, "# React\n\nHooks.\n")
    assert reference is None
    assert skill_md.startswith("---\n")

    frontmatter = yaml.safe_load(skill_md.split("---\n")[1])
    assert frontmatter["name"] == "react-docs"
    assert frontmatter["user-invocable"] is False
    assert "Source: https://react.dev/llms.txt" in skill_md
    assert skill_md.endswith("# React\n\nHooks.\n")


def test_render_skill_splits_large_files():
    content = "\n".join(f"line {i}" for i in range(600))
    skill_md, reference = render_skill(DOC, content)
    assert reference == content
    assert "reference.md" in skill_md
    assert "line 599" not in skill_md


# --- Writing & removing ---


def test_write_creates_canonical_and_links():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = AgentStorage(tmpdir, _agents("claude-code", "codex"))
        touched = storage.write("react", "# React\n", DOC)

        assert touched == [".agents/skills", ".claude/skills"]
        assert storage.is_installed("react")
        claude = Path(tmpdir) / ".claude/skills/react/SKILL.md"
        assert claude.read_text() == storage.skill_path("react").read_text()


def test_write_twice_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = AgentStorage(tmpdir, _agents("claude-code", "cursor"))
        storage.write("react", "# React\n", DOC)
        first = storage.skill_path("react").read_text()
        touched = storage.write("react", "# React\n", DOC)

        assert storage.skill_path("react").read_text() == first
        assert touched == [".agents/skills", ".claude/skills", ".cursor/skills"]


def test_write_drops_stale_reference_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = AgentStorage(tmpdir, [])
        storage.write("react", "\n".join(["x"] * 600), DOC)
        reference = Path(tmpdir) / ".agents/skills/react/reference.md"
        assert reference.exists()

        storage.write("react", "short\n", DOC)
        assert not reference.exists()


def test_remove_clears_every_agent_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        AgentStorage(tmpdir, _agents("claude-code", "cursor")).write("react", "# React\n", DOC)

        # A storage configured for fewer agents still removes every link.
        touched = AgentStorage(tmpdir, []).remove("react")
        assert touched == [".agents/skills", ".claude/skills", ".cursor/skills"]
        assert not (Path(tmpdir) / ".claude/skills/react").exists()
        assert not (Path(tmpdir) / ".cursor/skills/react").is_symlink()


def test_remove_twice_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = AgentStorage(tmpdir, _agents("claude-code"))
        storage.write("react", "# React\n", DOC)
        storage.remove("react")
        assert storage.remove("react") == []
        assert not storage.is_installed("react")


def test_add_to_gitignore_appends_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        gitignore = Path(tmpdir) / ".gitignore"
        gitignore.write_text("node_modules/")

        assert add_to_gitignore(tmpdir) is True
        assert add_to_gitignore(tmpdir) is False
        text = gitignore.read_text()
        assert text.startswith("node_modules/\n")
        assert text.count(".llms/") == 1


def test_write_refuses_slug_outside_skills_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        project = Path(tmpdir) / "project"
        project.mkdir()
        storage = AgentStorage(project, _agents("claude-code"))

        for slug in ("../../../escaped", "..", "nested/slug", ""):
            with pytest.raises(UnsafePathError):
                storage.write(slug, "# Evil\n", DOC)

        assert not (Path(tmpdir) / "escaped").exists()
        assert not (project / ".agents").exists()
        assert not storage.is_installed("../../../escaped")


def test_remove_refuses_parent_slug():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = AgentStorage(tmpdir, _agents("claude-code"))
        storage.write("react", "# React\n", DOC)
        (Path(tmpdir) / ".claude/settings.json").write_text("{}")

        with pytest.raises(UnsafePathError):
            storage.remove("..")

        assert storage.is_installed("react")
        assert (Path(tmpdir) / ".claude/settings.json").exists()


# --- Agent selection ---


def test_detect_installed_agents_uses_home_markers():
    with tempfile.TemporaryDirectory() as home:
        (Path(home) / ".claude").mkdir()
        (Path(home) / ".codex").mkdir()
        names = [a.name for a in detect_installed_agents(Path(home))]
        assert names == ["claude-code", "codex"]


def test_initial_agents_priority():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert initial_agents(None, tmpdir) == ["claude-code", "cursor", "codex"]

        (Path(tmpdir) / ".windsurf").mkdir()
        assert initial_agents(None, tmpdir) == ["windsurf"]
        assert initial_agents(["cline", "bogus"], tmpdir) == ["cline"]


def test_ensure_universal_agents():
    universal = [a.name for a in AGENTS if a.is_universal]
    result = ensure_universal_agents(["cursor"])
    assert result[0] == "cursor"
    assert all(name in result for name in universal)


def test_prefs_round_trip_and_resolution():
    with tempfile.TemporaryDirectory() as tmpdir, tempfile.TemporaryDirectory() as home:
        assert load_agent_prefs(tmpdir) is None
        assert resolve_target_agents(tmpdir, Path(home)) == []

        save_agent_prefs(tmpdir, ["cursor"])
        assert load_agent_prefs(tmpdir) == ["cursor"]
        names = [a.name for a in resolve_target_agents(tmpdir, Path(home))]
        assert names == ["cursor", "opencode", "codex"]
