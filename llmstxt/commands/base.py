"""Shared plumbing for lifecycle commands.

Every command follows the same pipeline: resolve entries, fetch them
concurrently through the shared :class:`Fetcher`, persist each success to
the lockfile and agent storage, rebuild the CLAUDE.md section once the
whole batch has settled, report, then emit a single telemetry event.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path

import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from llmstxt.agents.definitions import AgentConfig
from llmstxt.agents.selection import resolve_target_agents
from llmstxt.agents.storage import AgentStorage, SkillDocument, checksum, content_size
from llmstxt.config import Settings
from llmstxt.context import sync_claude_md
from llmstxt.errors import FetchError, UnsafePathError
from llmstxt.fetcher import Fetcher
from llmstxt.lockfile.models import LockfileEntry, utc_now_iso
from llmstxt.lockfile.store import LockfileStore
from llmstxt.registry.cache import RegistryCache
from llmstxt.registry.client import RegistryClient
from llmstxt.registry.models import PRIMARY_CATEGORIES, RegistryEntry
from llmstxt.telemetry import Telemetry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass
class CommandContext:
    """Everything a command needs, constructed once per CLI invocation."""

    project_dir: Path
    settings: Settings
    registry: RegistryClient
    fetcher: Fetcher
    lockfile: LockfileStore
    telemetry: Telemetry
    console: Console
    interactive: bool = False
    home: Path | None = None

    @classmethod
    def create(
        cls,
        project_dir: str | Path = ".",
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        console: Console | None = None,
        interactive: bool | None = None,
        home: Path | None = None,
    ) -> CommandContext:
        settings = settings or Settings.from_env()
        project = Path(project_dir).resolve()
        cache = RegistryCache(settings.cache_dir, settings.cache_ttl_seconds)
        return cls(
            project_dir=project,
            settings=settings,
            registry=RegistryClient(settings.registry_url, cache, transport=transport),
            fetcher=Fetcher(transport=transport),
            lockfile=LockfileStore(project),
            telemetry=Telemetry(settings, transport=transport),
            console=console or Console(),
            interactive=sys.stdin.isatty() if interactive is None else interactive,
            home=home,
        )

    def target_agents(self) -> list[AgentConfig]:
        return resolve_target_agents(self.project_dir, self.home)

    def storage(self, agents: list[AgentConfig] | None = None) -> AgentStorage:
        return AgentStorage(
            self.project_dir, self.target_agents() if agents is None else agents
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Status:
    INSTALLED = "installed"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class Outcome:
    """Per-entry result of a batch operation."""

    slug: str
    name: str
    status: str
    detail: str = ""


@dataclass
class BatchReport:
    """Aggregated outcomes for one command invocation."""

    outcomes: list[Outcome] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)

    def slugs(self, *statuses: str) -> list[str]:
        return [o.slug for o in self.outcomes if o.status in statuses]

    @property
    def changed(self) -> list[str]:
        return self.slugs(Status.INSTALLED, Status.UPDATED)

    @property
    def failure_count(self) -> int:
        return len(self.slugs(Status.FAILED)) + len(self.not_found)

    @property
    def success_count(self) -> int:
        return len(self.outcomes) - len(self.slugs(Status.FAILED))

    @property
    def exit_code(self) -> int:
        """Non-zero only when something failed and nothing succeeded."""
        if self.failure_count and not self.success_count:
            return 1
        return 0


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------


def resolve_categories(category: str | None, all_categories: bool) -> list[str] | None:
    if all_categories:
        return None
    if category:
        return [c.strip() for c in category.split(",") if c.strip()]
    return list(PRIMARY_CATEGORIES)


async def load_registry(ctx: CommandContext) -> list[RegistryEntry]:
    with ctx.console.status("Loading registry..."):
        return await ctx.registry.load_registry()


def persist(
    ctx: CommandContext,
    storage: AgentStorage,
    doc: SkillDocument,
    content: str,
    etag: str | None,
    last_modified: str | None,
) -> list[str]:
    """Record fetched content in the lockfile, then write it to disk.

    The lockfile goes first so a failed lockfile write leaves agent storage
    untouched. If the storage write then fails, the previous lockfile entry
    is put back (or the new one dropped) before the error propagates.
    """
    previous = ctx.lockfile.get_entry(doc.slug)
    ctx.lockfile.upsert(
        LockfileEntry(
            slug=doc.slug,
            format=doc.format,
            source_url=doc.source_url,
            etag=etag,
            last_modified=last_modified,
            fetched_at=utc_now_iso(),
            checksum=checksum(content),
            size=content_size(content),
            name=doc.name,
        )
    )
    try:
        return storage.write(doc.slug, content, doc)
    except (OSError, UnsafePathError):
        if previous is not None:
            ctx.lockfile.upsert(previous)
        else:
            ctx.lockfile.remove(doc.slug)
        raise


async def install_entry(
    ctx: CommandContext, storage: AgentStorage, entry: RegistryEntry, full: bool
) -> Outcome:
    url, fmt = entry.url_for(full)
    try:
        result = await ctx.fetcher.fetch(url)
        doc = SkillDocument(entry.slug, entry.name, entry.description, url, fmt)
        touched = persist(ctx, storage, doc, result.content, result.etag, result.last_modified)
    except FetchError as e:
        return Outcome(entry.slug, entry.name, Status.FAILED, str(e))
    return Outcome(entry.slug, entry.name, Status.INSTALLED, "-> " + ", ".join(touched))


async def install_entries(
    ctx: CommandContext,
    storage: AgentStorage,
    entries: list[RegistryEntry],
    full: bool = False,
    force: bool = False,
) -> list[Outcome]:
    """Fetch and install *entries* concurrently; already-installed ones are skipped."""
    outcomes: dict[str, Outcome] = {}
    pending: list[RegistryEntry] = []

    for entry in entries:
        if entry.slug in outcomes or any(p.slug == entry.slug for p in pending):
            continue
        if not force and storage.is_installed(entry.slug) and ctx.lockfile.get_entry(entry.slug):
            outcomes[entry.slug] = Outcome(
                entry.slug,
                entry.name,
                Status.SKIPPED,
                "already installed (use --force to re-download)",
            )
            continue
        if full and not entry.has_full:
            ctx.console.print(
                f"  [yellow]![/] {escape(entry.name)} has no llms-full.txt; installing llms.txt instead"
            )
        pending.append(entry)

    if pending:
        with ctx.console.status(f"Fetching {len(pending)} skill(s)..."):
            results = await asyncio.gather(
                *(install_entry(ctx, storage, e, full) for e in pending)
            )
        for outcome in results:
            outcomes[outcome.slug] = outcome

    return [outcomes[e.slug] for e in entries if e.slug in outcomes]


def sync_context(ctx: CommandContext) -> None:
    result = sync_claude_md(ctx.project_dir, ctx.lockfile)
    for warning in result.warnings:
        ctx.console.print(f"  [yellow]![/] {escape(warning)}")
    if result.written:
        logger.debug("Updated %s", result.path)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

_MARKS = {
    Status.INSTALLED: "[green]v[/]",
    Status.UPDATED: "[green]v[/]",
    Status.UNCHANGED: "[dim]o[/]",
    Status.SKIPPED: "[dim]o[/]",
    Status.FAILED: "[red]x[/]",
}


def print_outcomes(console: Console, outcomes: list[Outcome]) -> None:
    for o in outcomes:
        mark = _MARKS.get(o.status, " ")
        detail = f" [dim]{escape(o.detail)}[/]" if o.detail else ""
        if o.status == Status.FAILED:
            detail = f": [red]{escape(o.detail)}[/]"
        console.print(f"  {mark} {escape(o.name)}{detail}")


def print_summary(console: Console, report: BatchReport) -> None:
    counts = [
        ("[green]v[/] Installed", len(report.slugs(Status.INSTALLED))),
        ("[green]v[/] Updated", len(report.slugs(Status.UPDATED))),
        ("[dim]o[/] Unchanged", len(report.slugs(Status.UNCHANGED))),
        ("[dim]o[/] Skipped", len(report.slugs(Status.SKIPPED))),
        ("[red]x[/] Failed", report.failure_count),
    ]
    lines = [f"{label}: {count}" for label, count in counts if count]
    if lines:
        console.print(Panel("\n".join(lines), title="Summary", expand=False))


def refresh_fetched_at(entry: LockfileEntry, etag: str | None, last_modified: str | None) -> LockfileEntry:
    return replace(entry, etag=etag, last_modified=last_modified, fetched_at=utc_now_iso())
