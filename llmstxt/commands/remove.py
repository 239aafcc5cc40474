"""Uninstall a skill from every agent directory."""

from __future__ import annotations

import click
from rich.markup import escape

from llmstxt.commands.base import CommandContext, sync_context
from llmstxt.errors import NotInstalledError


async def remove(ctx: CommandContext, name: str, yes: bool = False) -> bool:
    """Remove *name*. Returns ``False`` when the user cancels at the prompt."""
    entry = ctx.lockfile.find(name)
    if entry is None:
        raise NotInstalledError(
            f'"{name}" is not installed. Run `llmstxt list` to see installed files.'
        )

    if ctx.interactive and not yes:
        if not click.confirm(f"Remove {entry.name} from all agent directories?", default=True):
            ctx.console.print("Removal cancelled.")
            ctx.telemetry.track("remove")
            return False

    touched = ctx.storage().remove(entry.slug)
    ctx.lockfile.remove(entry.slug)
    sync_context(ctx)

    where = f" [dim]({', '.join(touched)})[/]" if touched else ""
    ctx.console.print(f"[green]v[/] Removed {escape(entry.name)} from all agent directories{where}")
    ctx.telemetry.track("remove", skills=[entry.slug])
    return True
