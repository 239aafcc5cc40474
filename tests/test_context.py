"""Tests for the CLAUDE.md managed section."""

import tempfile
from pathlib import Path

from llmstxt.context import (
    END_MARKER,
    START_MARKER,
    build_section,
    render_context,
    split_document,
    sync_claude_md,
)
from llmstxt.lockfile.models import LockfileEntry
from llmstxt.lockfile.store import LockfileStore


def _entry(slug: str, name: str) -> LockfileEntry:
    return LockfileEntry(
        slug=slug,
        format="llms.txt",
        source_url=f"https://{slug}.dev/llms.txt",
        fetched_at="2026-10-01T00:00:00Z",
        checksum="0" * 64,
        size=10,
        name=name,
    )


ENTRIES = [_entry("react", "React"), _entry("astro", "Astro")]


def test_split_without_markers():
    doc = split_document("# Project\n")
    assert doc.prefix == "# Project\n"
    assert not doc.has_start


def test_split_three_regions():
    content = f"intro\n{START_MARKER}\nold\n{END_MARKER}\noutro\n"
    doc = split_document(content)
    assert doc.prefix == "intro\n"
    assert doc.section == f"{START_MARKER}\nold\n{END_MARKER}"
    assert doc.suffix == "\noutro\n"
    assert doc.prefix + doc.section + doc.suffix == content


def test_split_missing_end_marker_claims_rest():
    doc = split_document(f"intro\n{START_MARKER}\ntruncated")
    assert doc.has_start
    assert doc.end_missing
    assert doc.suffix == ""


def test_build_section_sorted_by_name():
    section = build_section(ENTRIES)
    assert section.startswith(START_MARKER)
    assert section.endswith(END_MARKER)
    assert section.index("- Astro:") < section.index("- React:")
    assert "- React: .agents/skills/react/SKILL.md" in section


def test_render_appends_after_existing_content():
    result, warnings = render_context("# My project\n", ENTRIES)
    assert warnings == []
    assert result.startswith("# My project\n\n" + START_MARKER)
    assert result.endswith(END_MARKER + "\n")


def test_render_replaces_only_managed_section():
    content = f"before\n\n{START_MARKER}\n- Old: x\n{END_MARKER}\n\nafter\n"
    result, _ = render_context(content, ENTRIES)
    assert result.startswith("before\n\n")
    assert result.endswith(f"{END_MARKER}\n\nafter\n")
    assert "Old" not in result


def test_render_is_idempotent():
    once, _ = render_context("# Notes\n", ENTRIES)
    twice, _ = render_context(once, ENTRIES)
    assert once == twice


def test_render_removes_section_when_empty():
    content = f"before\n\n{START_MARKER}\n- React: x\n{END_MARKER}\n\nafter\n"
    result, _ = render_context(content, [])
    assert result == "before\n\nafter\n"
    assert START_MARKER not in result


def test_render_leaves_unmanaged_file_alone():
    content = "# Notes without a trailing newline"
    result, warnings = render_context(content, [])
    assert result == content
    assert warnings == []


def test_sync_without_entries_keeps_user_file_bytes():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "CLAUDE.md"
        path.write_text("# Hand written, no newline")

        result = sync_claude_md(tmpdir, LockfileStore(tmpdir))
        assert not result.written
        assert path.read_text() == "# Hand written, no newline"


def test_render_repairs_missing_end_marker():
    content = f"keep me\n\n{START_MARKER}\n- Broken: x\n"
    result, warnings = render_context(content, ENTRIES)
    assert len(warnings) == 1
    assert result.startswith("keep me\n\n")
    assert result.count(START_MARKER) == 1
    assert result.count(END_MARKER) == 1
    assert "Broken" not in result


def test_sync_creates_file_only_when_needed():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = LockfileStore(tmpdir)
        result = sync_claude_md(tmpdir, store)
        assert not result.written
        assert not (Path(tmpdir) / "CLAUDE.md").exists()

        store.upsert(ENTRIES[0])
        result = sync_claude_md(tmpdir, store)
        assert result.written
        assert "- React:" in (Path(tmpdir) / "CLAUDE.md").read_text()


def test_sync_twice_writes_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = LockfileStore(tmpdir)
        for entry in ENTRIES:
            store.upsert(entry)
        (Path(tmpdir) / "CLAUDE.md").write_text("# Guide\n")

        assert sync_claude_md(tmpdir, store).written
        before = (Path(tmpdir) / "CLAUDE.md").read_bytes()
        assert not sync_claude_md(tmpdir, store).written
        assert (Path(tmpdir) / "CLAUDE.md").read_bytes() == before


def test_sync_reports_unreadable_file_as_warning():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = LockfileStore(tmpdir)
        store.upsert(ENTRIES[0])
        (Path(tmpdir) / "CLAUDE.md").write_bytes(b"\xff\xfe\x00bad")

        result = sync_claude_md(tmpdir, store)
        assert not result.written
        assert result.warnings
