"""Ranked search over the registry."""

from __future__ import annotations

from rich.markup import escape

from llmstxt.commands.base import CommandContext, load_registry, resolve_categories
from llmstxt.registry.models import RegistryEntry

RESULT_LIMIT = 10


async def search(
    ctx: CommandContext,
    query: str,
    category: str | None = None,
    all_categories: bool = False,
) -> list[RegistryEntry]:
    await load_registry(ctx)

    categories = resolve_categories(category, all_categories)
    results = ctx.registry.search(query, categories)[:RESULT_LIMIT]

    if not results:
        ctx.console.print(f'[yellow]No results for "{escape(query)}".[/]')
        if categories:
            ctx.console.print("[dim]Try `--all-categories` to search everything[/]")
        ctx.telemetry.track("search")
        return []

    ctx.console.print(f'\n[bold]Results for "{escape(query)}":[/]\n')
    for entry in results:
        ctx.console.print(f"  [bold cyan]{escape(entry.name)}[/] [dim]({entry.slug})[/]")
        if entry.description:
            ctx.console.print(f"    {escape(entry.description)}")
        ctx.console.print(f"    [dim]{escape(entry.category)} · {escape(entry.llms_txt_url)}[/]")
        if entry.llms_full_txt_url:
            ctx.console.print(f"    [dim]full: {escape(entry.llms_full_txt_url)}[/]")

    ctx.console.print(
        f"\n[dim]Showing {len(results)} result(s). Install with: llmstxt install <name>[/]"
    )
    ctx.telemetry.track("search", skills=[e.slug for e in results])
    return results
