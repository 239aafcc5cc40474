"""``llmstxt install`` — fetch and install skills by name or slug."""

from __future__ import annotations

import click
from rich.markup import escape

from llmstxt.agents.storage import add_to_gitignore
from llmstxt.commands.base import (
    BatchReport,
    CommandContext,
    install_entries,
    load_registry,
    print_outcomes,
    print_summary,
    sync_context,
)
from llmstxt.registry.models import RegistryEntry

SUGGESTION_LIMIT = 5


def _resolve(ctx: CommandContext, name: str) -> RegistryEntry | None:
    """Resolve *name*, offering close matches when it does not resolve exactly."""
    entry = ctx.registry.resolve_slug(name)
    if entry:
        return entry

    suggestions = ctx.registry.search(name)[:SUGGESTION_LIMIT]
    if suggestions and ctx.interactive:
        choices = [s.slug for s in suggestions]
        ctx.console.print(f'  [yellow]![/] "{escape(name)}" not found. Did you mean one of these?')
        for i, s in enumerate(suggestions, 1):
            ctx.console.print(f"    {i}. [cyan]{escape(s.name)}[/] [dim]({s.slug}, {s.category})[/]")
        picked = click.prompt(
            "  Pick a number (0 to skip)",
            type=click.IntRange(0, len(choices)),
            default=0,
            show_default=False,
        )
        if picked:
            return ctx.registry.get_entry(choices[picked - 1])
        ctx.console.print(f'  [yellow]![/] Skipped "{escape(name)}"')
        return None

    ctx.console.print(f'  [red]x[/] "{escape(name)}" not found in registry')
    if suggestions:
        hint = ", ".join(s.slug for s in suggestions)
        ctx.console.print(f"    [dim]Did you mean: {escape(hint)}?[/]")
    else:
        ctx.console.print(f'    [dim]Try `llmstxt search "{escape(name)}"` to find matching entries[/]')
    return None


async def install(
    ctx: CommandContext, names: list[str], full: bool = False, force: bool = False
) -> BatchReport:
    await load_registry(ctx)

    agents = ctx.target_agents()
    if agents:
        ctx.console.print(f"[dim]Detected: {', '.join(a.display_name for a in agents)}[/]")

    report = BatchReport()
    entries: list[RegistryEntry] = []
    for name in names:
        entry = _resolve(ctx, name)
        if entry is None:
            report.not_found.append(name)
        else:
            entries.append(entry)

    storage = ctx.storage(agents)
    report.outcomes = await install_entries(ctx, storage, entries, full=full, force=force)
    print_outcomes(ctx.console, report.outcomes)

    if report.changed:
        add_to_gitignore(ctx.project_dir)
        sync_context(ctx)

    print_summary(ctx.console, report)
    ctx.telemetry.track("install", skills=report.changed, agents=[a.name for a in agents])
    return report
