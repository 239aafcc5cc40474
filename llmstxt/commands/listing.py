"""Read-only views of installed state: ``list`` and ``info``."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.markup import escape
from rich.table import Table

from llmstxt.commands.base import CommandContext, load_registry
from llmstxt.config import STALE_AFTER_DAYS
from llmstxt.errors import NotFoundError


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_age(days: int | None) -> str:
    if days is None:
        return "unknown"
    if days <= 0:
        return "today"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


async def list_installed(ctx: CommandContext, now: datetime | None = None) -> list[str]:
    """Print installed skills; returns the slugs flagged as stale."""
    entries = ctx.lockfile.entries()
    if not entries:
        ctx.console.print("[yellow]No llms.txt files installed.[/]")
        ctx.console.print(
            "[dim]Run `llmstxt init` to auto-detect or `llmstxt install <name>` to add entries[/]"
        )
        ctx.telemetry.track("list")
        return []

    now = now or datetime.now(timezone.utc)
    storage = ctx.storage([])

    table = Table(title=f"Installed llms.txt files ({len(entries)})")
    table.add_column("Name", style="cyan")
    table.add_column("Format")
    table.add_column("Size", justify="right")
    table.add_column("Fetched")
    table.add_column("Source", style="dim")

    stale = []
    for entry in entries:
        age = format_age(entry.age_days(now))
        if entry.is_stale(STALE_AFTER_DAYS, now):
            stale.append(entry.slug)
            age += " [yellow](stale)[/]"
        if not storage.is_installed(entry.slug):
            age += " [red](missing)[/]"
        table.add_row(
            escape(entry.name), entry.format, format_size(entry.size), age, escape(entry.source_url)
        )

    ctx.console.print(table)

    if stale:
        ctx.console.print(
            f"[yellow]![/] {len(stale)} file(s) older than {STALE_AFTER_DAYS} days. "
            "Run `llmstxt update` to refresh."
        )
    ctx.telemetry.track("list", skills=[e.slug for e in entries])
    return stale


async def show_info(ctx: CommandContext, name: str) -> None:
    await load_registry(ctx)

    entry = ctx.registry.resolve_slug(name)
    if entry is None:
        raise NotFoundError(
            f'"{name}" not found in registry. Try `llmstxt search "{name}"` to find matching entries.'
        )

    console = ctx.console
    console.print(f"\n[bold cyan]{escape(entry.name)}[/] [dim]({entry.slug})[/]")
    if entry.description:
        console.print(escape(entry.description))
    console.print(f"  [dim]Category:[/]  {escape(entry.category)}")
    console.print(f"  [dim]Domain:[/]    {escape(entry.domain)}")
    console.print(f"  [dim]llms.txt:[/]  {escape(entry.llms_txt_url)}")
    if entry.llms_full_txt_url:
        console.print(f"  [dim]Full:[/]      {escape(entry.llms_full_txt_url)}")

    lock_entry = ctx.lockfile.get_entry(entry.slug)
    if lock_entry and ctx.storage([]).is_installed(entry.slug):
        console.print("\n[green]v[/] Installed")
        console.print(f"  Format:   {lock_entry.format}")
        console.print(f"  Size:     {format_size(lock_entry.size)}")
        console.print(f"  Fetched:  {format_age(lock_entry.age_days())}")
    else:
        console.print("\n[dim]o Not installed[/]")
        console.print(f"  Install with: [cyan]llmstxt install {entry.slug}[/]")

    ctx.telemetry.track("info", skills=[entry.slug])
