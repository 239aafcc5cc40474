"""``llmstxt update`` — re-fetch installed skills using stored validators."""

from __future__ import annotations

import asyncio
import logging

from llmstxt.agents.storage import AgentStorage, SkillDocument, checksum
from llmstxt.commands.base import (
    BatchReport,
    CommandContext,
    Outcome,
    Status,
    load_registry,
    persist,
    print_outcomes,
    print_summary,
    refresh_fetched_at,
    sync_context,
)
from llmstxt.errors import FetchError, NotInstalledError, RegistryError
from llmstxt.lockfile.models import LockfileEntry

logger = logging.getLogger(__name__)


async def update_entry(
    ctx: CommandContext, storage: AgentStorage, entry: LockfileEntry, force: bool
) -> Outcome:
    """Conditionally re-fetch one installed entry.

    A 304 or an identical checksum keeps the stored checksum and size; only
    the validators and ``fetched_at`` move forward.
    """
    etag, last_modified = (None, None) if force else (entry.etag, entry.last_modified)
    try:
        result = await ctx.fetcher.fetch(entry.source_url, etag, last_modified)
    except FetchError as e:
        return Outcome(entry.slug, entry.name, Status.FAILED, str(e))

    if result.not_modified:
        ctx.lockfile.upsert(refresh_fetched_at(entry, result.etag, result.last_modified))
        return Outcome(entry.slug, entry.name, Status.UNCHANGED, "not modified")

    if (
        not force
        and checksum(result.content) == entry.checksum
        and storage.is_installed(entry.slug)
    ):
        ctx.lockfile.upsert(refresh_fetched_at(entry, result.etag, result.last_modified))
        return Outcome(entry.slug, entry.name, Status.UNCHANGED, "same content")

    registry_entry = ctx.registry.get_entry(entry.slug)
    doc = SkillDocument(
        slug=entry.slug,
        name=registry_entry.name if registry_entry else entry.name,
        description=registry_entry.description if registry_entry else "",
        source_url=entry.source_url,
        format=entry.format,
    )
    persist(ctx, storage, doc, result.content, result.etag, result.last_modified)
    return Outcome(entry.slug, entry.name, Status.UPDATED)


async def update(
    ctx: CommandContext, name: str | None = None, force: bool = False
) -> BatchReport:
    report = BatchReport()
    installed = ctx.lockfile.entries()
    if not installed:
        ctx.console.print("No llms.txt files installed. Run `llmstxt init` first.")
        ctx.telemetry.track("update")
        return report

    if name:
        match = ctx.lockfile.find(name)
        if match is None:
            raise NotInstalledError(f'"{name}" not found in installed files')
        targets = [match]
    else:
        targets = installed

    # Registry metadata only refreshes SKILL.md headers; lockfile data is enough without it.
    try:
        await load_registry(ctx)
    except RegistryError as e:
        logger.warning("%s; updating from lockfile metadata only", e)

    storage = ctx.storage()
    with ctx.console.status(f"Checking {len(targets)} skill(s)..."):
        report.outcomes = list(
            await asyncio.gather(*(update_entry(ctx, storage, e, force) for e in targets))
        )
    print_outcomes(ctx.console, report.outcomes)

    sync_context(ctx)
    print_summary(ctx.console, report)
    ctx.telemetry.track("update", skills=report.changed)
    return report
