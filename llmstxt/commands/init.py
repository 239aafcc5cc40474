"""``llmstxt init`` — detect project dependencies and install matching skills."""

from __future__ import annotations

import click
from rich.markup import escape

from llmstxt.agents.definitions import AGENTS, AgentConfig
from llmstxt.agents.selection import (
    ensure_universal_agents,
    initial_agents,
    load_agent_prefs,
    save_agent_prefs,
)
from llmstxt.agents.storage import add_to_gitignore
from llmstxt.commands.base import (
    BatchReport,
    CommandContext,
    install_entries,
    load_registry,
    print_outcomes,
    print_summary,
    resolve_categories,
    sync_context,
)
from llmstxt.detector import DetectedMatch, detect_dependencies


def _print_matches(ctx: CommandContext, matches: list[DetectedMatch]) -> None:
    ctx.console.print(f"\n[bold]Found {len(matches)} matching llms.txt file(s):[/]")
    for m in matches:
        full = " [dim](full available)[/]" if m.entry.has_full else ""
        packages = ", ".join(m.matched_packages)
        ctx.console.print(
            f"  [cyan]{escape(m.entry.name)}[/] [dim]({m.slug}, from {escape(packages)})[/]{full}"
        )


def _choose_agents(ctx: CommandContext) -> list[AgentConfig]:
    """Prompt for target agents, remembering the answer for later runs."""
    default = initial_agents(load_agent_prefs(ctx.project_dir), ctx.project_dir)
    ctx.console.print("\n[bold]Agents:[/]")
    for agent in AGENTS:
        tag = " [dim](reads .agents/skills directly)[/]" if agent.is_universal else ""
        ctx.console.print(f"  {agent.name:<12} {agent.display_name}{tag}")

    answer = click.prompt(
        "Install for which agents (comma-separated)",
        default=",".join(default),
    )
    valid = {a.name for a in AGENTS}
    picked = [n.strip() for n in answer.split(",") if n.strip() in valid]
    if not picked:
        picked = default
    save_agent_prefs(ctx.project_dir, picked)

    names = ensure_universal_agents(picked)
    return [a for a in AGENTS if a.name in names]


async def init(
    ctx: CommandContext,
    category: str | None = None,
    all_categories: bool = False,
    dry_run: bool = False,
    full: bool = False,
    yes: bool = False,
) -> BatchReport:
    report = BatchReport()
    await load_registry(ctx)

    categories = resolve_categories(category, all_categories)
    matches = detect_dependencies(ctx.project_dir, ctx.registry)
    if categories is not None:
        matches = [m for m in matches if m.entry.category in categories]

    if not matches:
        ctx.console.print("[yellow]No matching llms.txt files found for this project's dependencies.[/]")
        if categories is not None:
            ctx.console.print("[dim]Try `--all-categories` to include every category[/]")
        ctx.console.print("[dim]Browse the registry with `llmstxt search <query>`[/]")
        ctx.telemetry.track("init")
        return report

    _print_matches(ctx, matches)

    if dry_run:
        ctx.console.print("\n[dim]Dry run, nothing installed.[/]")
        ctx.telemetry.track("init", skills=[m.slug for m in matches])
        return report

    prompt = ctx.interactive and not yes
    if prompt:
        if not click.confirm(f"\nInstall {len(matches)} skill(s)?", default=True):
            ctx.console.print("Cancelled.")
            ctx.telemetry.track("init")
            return report
        agents = _choose_agents(ctx)
        if not full and any(m.entry.has_full for m in matches):
            full = click.confirm("Use llms-full.txt where available?", default=False)
    else:
        agents = ctx.target_agents()

    if agents:
        ctx.console.print(f"[dim]Installing for: {', '.join(a.display_name for a in agents)}[/]")

    storage = ctx.storage(agents)
    report.outcomes = await install_entries(
        ctx, storage, [m.entry for m in matches], full=full
    )
    print_outcomes(ctx.console, report.outcomes)

    if report.changed:
        add_to_gitignore(ctx.project_dir)
        sync_context(ctx)

    print_summary(ctx.console, report)
    ctx.telemetry.track("init", skills=report.changed, agents=[a.name for a in agents])
    return report
