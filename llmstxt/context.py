"""CLAUDE.md managed section — keeps the project's agent context in sync.

The tool owns the region between the start and end markers and rebuilds it
from the lockfile after every mutating command. Everything before and after
the markers is left untouched. The rebuild is idempotent: running it twice
against the same lockfile produces the same bytes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from llmstxt.agents.definitions import CANONICAL_DIR
from llmstxt.lockfile.models import LockfileEntry
from llmstxt.lockfile.store import LockfileStore

logger = logging.getLogger(__name__)

CONTEXT_FILE = "CLAUDE.md"
START_MARKER = "<!-- llmstxt:start -->"
END_MARKER = "<!-- llmstxt:end -->"


@dataclass
class SplitDocument:
    """A markdown file cut into prefix / managed section / suffix."""

    prefix: str
    section: str = ""  # includes both markers when present
    suffix: str = ""
    has_start: bool = False
    end_missing: bool = False


@dataclass
class ContextSyncResult:
    path: Path
    written: bool = False
    warnings: list[str] = field(default_factory=list)


def split_document(content: str) -> SplitDocument:
    """Locate the managed section.

    A start marker without a matching end marker claims everything up to
    the end of the file, which repairs a section truncated by a bad edit.
    """
    start = content.find(START_MARKER)
    if start == -1:
        return SplitDocument(prefix=content)

    end = content.find(END_MARKER, start + len(START_MARKER))
    if end == -1:
        return SplitDocument(
            prefix=content[:start], section=content[start:], has_start=True, end_missing=True
        )

    end += len(END_MARKER)
    return SplitDocument(
        prefix=content[:start],
        section=content[start:end],
        suffix=content[end:],
        has_start=True,
    )


def build_section(entries: list[LockfileEntry]) -> str:
    if not entries:
        return ""

    lines = [
        START_MARKER,
        "## Installed Documentation (llmstxt)",
        "",
        "When working with these technologies, read the corresponding skill for detailed reference:",
        "",
    ]
    for entry in sorted(entries, key=lambda e: (e.name.lower(), e.slug)):
        lines.append(f"- {entry.name}: {CANONICAL_DIR}/{entry.slug}/SKILL.md")
    lines.append(END_MARKER)
    return "\n".join(lines)


def render_context(content: str, entries: list[LockfileEntry]) -> tuple[str, list[str]]:
    """Return the new file content and any repair warnings."""
    doc = split_document(content)
    section = build_section(entries)
    warnings = []

    if doc.end_missing:
        warnings.append(
            f"{CONTEXT_FILE} has a start marker but no end marker; "
            "replaced everything after the start marker"
        )

    if doc.has_start:
        if section:
            result = doc.prefix + section + doc.suffix
        else:
            before = doc.prefix.rstrip("\n")
            after = doc.suffix.lstrip("\n")
            result = before + "\n\n" + after if before and after else before + after
    elif section:
        result = _append(content, section)
    else:
        # Nothing managed and nothing to add: the file is not ours to touch.
        return content, warnings

    if result and not result.endswith("\n"):
        result += "\n"
    return result, warnings


def _append(content: str, section: str) -> str:
    if not content:
        return section
    if content.endswith("\n\n"):
        return content + section
    if content.endswith("\n"):
        return content + "\n" + section
    return content + "\n\n" + section


def sync_claude_md(
    project_dir: str | Path, store: LockfileStore | None = None
) -> ContextSyncResult:
    """Rebuild the managed section of ``CLAUDE.md`` from the lockfile.

    I/O problems are reported as warnings on the result, never raised: the
    section is a convenience, the lockfile is the record.
    """
    path = Path(project_dir) / CONTEXT_FILE
    result = ContextSyncResult(path=path)
    store = store or LockfileStore(project_dir)

    try:
        existed = path.exists()
        content = path.read_text(encoding="utf-8") if existed else ""
        new_content, warnings = render_context(content, store.entries())
        result.warnings.extend(warnings)

        if new_content == content or (not existed and not new_content.strip()):
            return result

        path.write_text(new_content, encoding="utf-8")
        result.written = True
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Context sync failed", exc_info=True)
        result.warnings.append(f"Could not update {CONTEXT_FILE}: {e}")

    return result
